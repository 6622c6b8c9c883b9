"""
In-memory implementation of the studio scheduler collaborator.

Backs the default application wiring and the test suite. Records are stored
per studio and job; every read returns fresh immutable snapshots.
"""

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

from ...core.config import settings
from ...core.observability import get_logger
from ...domain.scheduling.entities.catalog import Section
from ...domain.scheduling.entities.job import JobDetail, JobSchedule
from ...domain.scheduling.entities.manual_task import CustomCategory, ManualTask
from ...domain.scheduling.entities.order_item import OrderItem, ScheduledTask
from ...domain.scheduling.repositories.collaborators import StudioSchedulerGateway, SyncResult
from ...domain.scheduling.services.canonical_orderer import CanonicalOrderer
from ...domain.scheduling.services.catalog_index import CatalogIndex
from ...domain.scheduling.value_objects.date_only import DateOnly
from ...domain.scheduling.value_objects.enums import Stage, TaskCategory
from ...domain.shared.exceptions import (
    JobNotFoundError,
    StudioNotFoundError,
    TaskNotFoundError,
    ValidationError,
)

logger = get_logger(__name__)


@dataclass
class OrderLine:
    item: OrderItem
    status: str = "approved"


@dataclass
class JobRecord:
    job_id: str
    name: str
    event_date: DateOnly | None = None
    lines: list[OrderLine] = field(default_factory=list)
    tasks_by_item: dict[str, ScheduledTask] = field(default_factory=dict)
    manual_tasks: list[ManualTask] = field(default_factory=list)
    activated_stage_keys: list[str] = field(default_factory=list)
    custom_categories: dict[str, list[CustomCategory]] = field(default_factory=dict)
    category_order_by_stage: dict[str, list[str]] = field(default_factory=dict)


class InMemoryStudioSchedulerGateway(StudioSchedulerGateway):
    """Collaborator over plain dictionaries; mutations are serialized per job."""

    def __init__(
        self,
        approved_statuses: Iterable[str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        statuses = approved_statuses if approved_statuses is not None else settings.approved_statuses
        self.approved_statuses = frozenset(s.strip().lower() for s in statuses)
        self._clock = clock
        self._catalogs: dict[str, list[Section]] = {}
        self._jobs: dict[str, dict[str, JobRecord]] = {}
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}

    # Seeding

    def add_studio(self, studio_id: str, catalog: Iterable[Section] = ()) -> None:
        self._catalogs[studio_id] = list(catalog)
        self._jobs.setdefault(studio_id, {})

    def add_job(
        self,
        studio_id: str,
        job_id: str,
        name: str = "",
        event_date: DateOnly | str | None = None,
    ) -> JobRecord:
        self._jobs.setdefault(studio_id, {})
        self._catalogs.setdefault(studio_id, [])
        record = JobRecord(job_id=job_id, name=name or job_id, event_date=DateOnly.parse(event_date))
        self._jobs[studio_id][job_id] = record
        return record

    def add_order_item(
        self, studio_id: str, job_id: str, item: OrderItem, status: str = "approved"
    ) -> None:
        record = self._record(studio_id, job_id)
        if item.scheduled_task is not None:
            record.tasks_by_item[item.id] = item.scheduled_task
        record.lines.append(OrderLine(item=item.model_copy(update={"scheduled_task": None}), status=status))

    def set_order_item_status(self, studio_id: str, job_id: str, item_id: str, status: str) -> None:
        record = self._record(studio_id, job_id)
        for line in record.lines:
            if line.item.id == item_id:
                line.status = status

    def add_manual_task(self, studio_id: str, job_id: str, task: ManualTask) -> None:
        self._record(studio_id, job_id).manual_tasks.append(task)

    def add_custom_category(
        self, studio_id: str, job_id: str, stage_key: str, category: CustomCategory
    ) -> None:
        self._record(studio_id, job_id).custom_categories.setdefault(stage_key, []).append(category)

    def activate_stage(self, studio_id: str, job_id: str, stage_key: str) -> None:
        record = self._record(studio_id, job_id)
        if stage_key not in record.activated_stage_keys:
            record.activated_stage_keys.append(stage_key)

    # Helpers

    def _record(self, studio_id: str, job_id: str) -> JobRecord:
        if studio_id not in self._jobs:
            raise StudioNotFoundError(studio_id)
        record = self._jobs[studio_id].get(job_id)
        if record is None:
            raise JobNotFoundError(studio_id, job_id)
        return record

    def _lock(self, studio_id: str, job_id: str) -> asyncio.Lock:
        return self._locks.setdefault((studio_id, job_id), asyncio.Lock())

    def _is_approved(self, line: OrderLine) -> bool:
        return line.status.strip().lower() in self.approved_statuses

    def _approved_lines(self, record: JobRecord) -> list[OrderLine]:
        return [line for line in record.lines if self._is_approved(line)]

    def _detail(self, record: JobRecord) -> JobDetail:
        items = [
            line.item.model_copy(update={"scheduled_task": record.tasks_by_item.get(line.item.id)})
            for line in self._approved_lines(record)
        ]
        return JobDetail(
            id=record.job_id,
            name=record.name,
            event_date=record.event_date,
            order_items=items,
            manual_tasks=list(record.manual_tasks),
            activated_stage_keys=list(record.activated_stage_keys),
            custom_categories={k: list(v) for k, v in record.custom_categories.items()},
            category_order_by_stage={k: list(v) for k, v in record.category_order_by_stage.items()},
        )

    # StudioSchedulerGateway

    async def fetch_catalog(self, studio_id: str) -> list[Section]:
        if studio_id not in self._catalogs:
            raise StudioNotFoundError(studio_id)
        return list(self._catalogs[studio_id])

    async def fetch_job_detail(self, studio_id: str, job_id: str) -> JobDetail:
        return self._detail(self._record(studio_id, job_id))

    async def sync_tasks_from_order(self, studio_id: str, job_id: str) -> SyncResult:
        record = self._record(studio_id, job_id)
        async with self._lock(studio_id, job_id):
            index = CatalogIndex(self._catalogs.get(studio_id, []))
            approved = [line.item for line in self._approved_lines(record)]
            start = record.event_date or DateOnly.today(self._clock)
            created = updated = skipped = 0

            for item in CanonicalOrderer(index).order(approved):
                existing = record.tasks_by_item.get(item.id)
                duration = item.duration_days or (existing.duration_days if existing else 1)
                if existing is None:
                    record.tasks_by_item[item.id] = ScheduledTask(
                        id=f"task-{item.id}",
                        duration_days=duration,
                        category=item.operational_category or TaskCategory.UNASSIGNED.value,
                        catalog_category_id=item.catalog_category_id,
                        status="PENDING",
                        progress_percent=0,
                        start_date=start,
                        end_date=start.add_days(max(1, duration)),
                    )
                    created += 1
                    continue

                changes: dict[str, object] = {}
                if existing.duration_days != duration:
                    changes["duration_days"] = duration
                if existing.catalog_category_id is None and item.catalog_category_id is not None:
                    changes["catalog_category_id"] = item.catalog_category_id
                if changes:
                    record.tasks_by_item[item.id] = existing.model_copy(update=changes)
                    updated += 1
                else:
                    skipped += 1

            valid_ids = {item.id for item in approved}
            orphan_items = [item_id for item_id in record.tasks_by_item if item_id not in valid_ids]
            orphan_task_ids = {record.tasks_by_item[item_id].id for item_id in orphan_items}
            for item_id in orphan_items:
                del record.tasks_by_item[item_id]
            if orphan_task_ids:
                record.manual_tasks = [
                    task.model_copy(update={"parent_id": None})
                    if task.parent_id in orphan_task_ids
                    else task
                    for task in record.manual_tasks
                ]

        result = SyncResult(created=created, updated=updated, skipped=skipped, removed=len(orphan_items))
        logger.info(
            "Order tasks synchronized",
            studio_id=studio_id,
            job_id=job_id,
            **result.model_dump(),
        )
        return result

    async def reclassify_task(
        self,
        studio_id: str,
        job_id: str,
        task_id: str,
        stage: Stage,
        catalog_category_id: str | None,
    ) -> ScheduledTask | ManualTask:
        record = self._record(studio_id, job_id)
        raw_stage = getattr(stage, "value", stage)
        if raw_stage not in Stage.__members__:
            raise ValidationError("stage", str(raw_stage), "must be one of " + ", ".join(Stage.__members__))
        if catalog_category_id is not None and not CatalogIndex(
            self._catalogs.get(studio_id, [])
        ).has_category(catalog_category_id):
            raise ValidationError(
                "catalog_category_id",
                catalog_category_id,
                "unknown catalog category",
                error_code="UNKNOWN_CATEGORY",
            )
        update = {"category": Stage(raw_stage).value, "catalog_category_id": catalog_category_id}

        async with self._lock(studio_id, job_id):
            for line in record.lines:
                task = record.tasks_by_item.get(line.item.id)
                if task is not None and task.id == task_id:
                    updated_task = task.model_copy(update=update)
                    record.tasks_by_item[line.item.id] = updated_task
                    if catalog_category_id is not None:
                        line.item = line.item.model_copy(update={"catalog_category_id": catalog_category_id})
                    return updated_task
            for position, manual in enumerate(record.manual_tasks):
                if manual.id == task_id:
                    updated_manual = manual.model_copy(update=update)
                    record.manual_tasks[position] = updated_manual
                    return updated_manual
        raise TaskNotFoundError(job_id, task_id)

    async def fetch_fleet_schedules(self, studio_id: str) -> list[JobSchedule]:
        if studio_id not in self._jobs:
            raise StudioNotFoundError(studio_id)
        schedules = []
        for record in self._jobs[studio_id].values():
            approved = self._approved_lines(record)
            tasks = [
                record.tasks_by_item[line.item.id]
                for line in approved
                if line.item.id in record.tasks_by_item
            ]
            schedules.append(
                JobSchedule(id=record.job_id, name=record.name, total_items=len(approved), tasks=tasks)
            )
        return schedules
