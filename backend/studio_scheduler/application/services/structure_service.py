"""
Scheduler structure application service.

Loads catalog and job snapshots through the collaborator, keeps the latest
snapshot per job and derives rows, blocks, classification and stats from it.
Derivations are memoized on snapshot identity and the job's invalidation
token.
"""

import asyncio
import time
from collections.abc import Awaitable, Iterable
from typing import Any, TypeVar

from ...core.config import settings
from ...core.observability import (
    get_logger,
    log_error_with_context,
    log_structure_metrics,
    monitor_performance,
)
from ...domain.scheduling.entities.catalog import Section
from ...domain.scheduling.entities.job import JobDetail
from ...domain.scheduling.read_models.schedule_stats import FleetStats, JobStats, StatsAggregator
from ...domain.scheduling.repositories.collaborators import StudioSchedulerGateway
from ...domain.scheduling.services.block_grouper import group_rows_into_blocks
from ...domain.scheduling.services.canonical_orderer import CanonicalOrderer
from ...domain.scheduling.services.catalog_index import CatalogIndex
from ...domain.scheduling.services.classification_tracker import ClassificationTracker
from ...domain.scheduling.services.row_builder import RowBuildOptions, build_scheduler_rows
from ...domain.scheduling.value_objects.date_only import DateOnly
from ...domain.shared.exceptions import CollaboratorError, DomainError
from ...infrastructure.cache.structure_cache import StructureCache
from ...infrastructure.events.structure_events import StructureChangeNotifier
from ..dtos.scheduling_dtos import JobStructure

logger = get_logger(__name__)

T = TypeVar("T")


class SchedulerStructureService:
    """Coordinates snapshot loading and memoized structure derivation."""

    def __init__(
        self,
        gateway: StudioSchedulerGateway,
        cache: StructureCache | None = None,
        notifier: StructureChangeNotifier | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.gateway = gateway
        self.cache = cache or StructureCache(settings.STRUCTURE_CACHE_MAX_ENTRIES)
        self.notifier = notifier or StructureChangeNotifier()
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.COLLABORATOR_TIMEOUT_SECONDS
        )
        self._catalogs: dict[str, list[Section] | None] = {}
        self._jobs: dict[tuple[str, str], JobDetail] = {}

    async def call_collaborator(self, operation: str, call: Awaitable[T]) -> T:
        """Await a collaborator call with the configured timeout; foreign errors become CollaboratorError."""
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except DomainError:
            raise
        except asyncio.TimeoutError as error:
            raise CollaboratorError(operation, f"timed out after {self.timeout_seconds}s") from error
        except Exception as error:
            raise CollaboratorError(operation, str(error)) from error

    # Snapshots

    async def refresh(self, studio_id: str, job_id: str) -> tuple[list[Section] | None, JobDetail]:
        """
        Fetch catalog and job concurrently and store them as the current snapshot.

        A failed or empty catalog fetch degrades to "no known sections"; a failed
        job fetch propagates.
        """
        catalog_result, job_result = await asyncio.gather(
            self.call_collaborator("fetch_catalog", self.gateway.fetch_catalog(studio_id)),
            self.call_collaborator(
                "fetch_job_detail", self.gateway.fetch_job_detail(studio_id, job_id)
            ),
            return_exceptions=True,
        )
        if isinstance(job_result, BaseException):
            raise job_result

        catalog: list[Section] | None
        if isinstance(catalog_result, BaseException):
            log_error_with_context(
                catalog_result,
                "fetch_catalog",
                {"studio_id": studio_id, "job_id": job_id},
                severity="warning",
                include_traceback=False,
            )
            catalog = None
        elif not catalog_result:
            logger.warning("Catalog empty, no known sections", studio_id=studio_id)
            catalog = None
        else:
            catalog = catalog_result

        self._catalogs[studio_id] = catalog
        self._jobs[(studio_id, job_id)] = job_result
        logger.info(
            "Job snapshot loaded",
            studio_id=studio_id,
            job_id=job_id,
            order_items=len(job_result.order_items),
            manual_tasks=len(job_result.manual_tasks),
            catalog_available=catalog is not None,
        )
        return catalog, job_result

    def current_job(self, studio_id: str, job_id: str) -> JobDetail | None:
        return self._jobs.get((studio_id, job_id))

    def current_catalog(self, studio_id: str) -> list[Section] | None:
        return self._catalogs.get(studio_id)

    def replace_job(self, studio_id: str, job_id: str, job: JobDetail) -> None:
        """Swap in a new job snapshot (optimistic update or rollback)."""
        self._jobs[(studio_id, job_id)] = job

    async def ensure_snapshot(self, studio_id: str, job_id: str) -> tuple[list[Section] | None, JobDetail]:
        job = self.current_job(studio_id, job_id)
        if job is None:
            return await self.refresh(studio_id, job_id)
        return self.current_catalog(studio_id), job

    # Derivations

    def catalog_index(self, catalog: list[Section] | None) -> CatalogIndex:
        if catalog is None:
            return CatalogIndex()
        cached = self.cache.get("catalog_index", (catalog,))
        if cached is None:
            cached = CatalogIndex(catalog)
            self.cache.set("catalog_index", (catalog,), cached)
        return cached

    def build_structure(
        self,
        studio_id: str,
        catalog: list[Section] | None,
        job: JobDetail,
        include_phantoms: bool = True,
        active_section_ids: Iterable[str] | None = None,
    ) -> JobStructure:
        token = self.notifier.token(studio_id, job.id)
        active = frozenset(active_section_ids) if active_section_ids is not None else None
        namespace = f"structure:{int(include_phantoms)}"
        if active is not None:
            namespace += ":" + ",".join(sorted(active))
        cached = self.cache.get(namespace, (catalog, job), token)
        if cached is not None:
            return cached

        started = time.perf_counter()
        index = self.catalog_index(catalog)
        options = RowBuildOptions(
            include_add_task_phantoms=include_phantoms,
            include_add_category_phantoms=include_phantoms,
            active_section_ids=active,
            category_order_by_stage=job.category_order_by_stage,
            uncategorized_section_name=settings.UNCATEGORIZED_SECTION_NAME,
            uncategorized_category_label=settings.UNCATEGORIZED_CATEGORY_LABEL,
        )
        rows = build_scheduler_rows(
            index,
            CanonicalOrderer(index).items_by_id(job.order_items),
            job.manual_tasks,
            job.activated_stage_keys,
            job.custom_categories,
            options,
        )
        structure = JobStructure(
            studio_id=studio_id,
            job=job,
            rows=rows,
            blocks=group_rows_into_blocks(rows),
            classification=ClassificationTracker(index if catalog is not None else None)
            .classification_summary(rows),
            catalog_available=catalog is not None,
            token=token,
        )
        self.cache.set(namespace, (catalog, job), structure, token, tags={f"job:{job.id}"})
        log_structure_metrics(
            studio_id,
            job.id,
            rows=len(rows),
            tasks=structure.task_count,
            unclassified=structure.classification.unclassified_count,
            catalog_available=structure.catalog_available,
            token=token,
            duration_seconds=time.perf_counter() - started,
        )
        return structure

    @monitor_performance("load_structure")
    async def load(
        self,
        studio_id: str,
        job_id: str,
        include_phantoms: bool = True,
        refresh: bool = True,
        active_section_ids: Iterable[str] | None = None,
    ) -> JobStructure:
        if refresh:
            catalog, job = await self.refresh(studio_id, job_id)
        else:
            catalog, job = await self.ensure_snapshot(studio_id, job_id)
        return self.build_structure(studio_id, catalog, job, include_phantoms, active_section_ids)

    def current_structure(self, studio_id: str, job_id: str, include_phantoms: bool = True) -> JobStructure | None:
        job = self.current_job(studio_id, job_id)
        if job is None:
            return None
        return self.build_structure(studio_id, self.current_catalog(studio_id), job, include_phantoms)

    @monitor_performance("job_stats")
    async def job_stats(
        self, studio_id: str, job_id: str, today: DateOnly | None = None, refresh: bool = True
    ) -> tuple[DateOnly, JobStats]:
        if refresh:
            _, job = await self.refresh(studio_id, job_id)
        else:
            _, job = await self.ensure_snapshot(studio_id, job_id)
        aggregator = StatsAggregator(today=today)
        token = self.notifier.token(studio_id, job_id)
        namespace = f"stats:{aggregator.today.epoch_day}"
        stats: Any = self.cache.get(namespace, (job,), token)
        if stats is None:
            stats = aggregator.stats_for_job(job)
            self.cache.set(namespace, (job,), stats, token, tags={f"job:{job_id}"})
        return aggregator.today, stats

    @monitor_performance("fleet_stats")
    async def fleet_stats(self, studio_id: str, today: DateOnly | None = None) -> FleetStats:
        schedules = await self.call_collaborator(
            "fetch_fleet_schedules", self.gateway.fetch_fleet_schedules(studio_id)
        )
        fleet = StatsAggregator(today=today).fleet_stats(schedules)
        logger.info(
            "Fleet stats computed",
            studio_id=studio_id,
            jobs=len(fleet.jobs),
            delayed=fleet.totals.delayed,
        )
        return fleet
