"""
Tests for SchedulerStructureService.

Covers snapshot loading through the in-memory collaborator, catalog
degradation, collaborator timeouts and memoization of derived structures.
"""

import asyncio

import pytest

from studio_scheduler.application.services.structure_service import SchedulerStructureService
from studio_scheduler.domain.scheduling.entities.rows import is_leaf_task_row
from studio_scheduler.domain.scheduling.events import StructureChanged
from studio_scheduler.domain.scheduling.value_objects.enums import Stage
from studio_scheduler.domain.scheduling.value_objects.stage_key import SIN_CATEGORIA_SECTION_ID
from studio_scheduler.domain.shared.exceptions import CollaboratorError, JobNotFoundError

from ..fixtures import JOB_ID, STUDIO_ID, TODAY


class TestSchedulerStructureService:
    """Test structure loading and derivation."""

    @pytest.fixture
    def service(self, gateway):
        """Structure service over the seeded collaborator."""
        return SchedulerStructureService(gateway)

    @pytest.mark.asyncio
    async def test_unsynced_items_land_in_sentinel(self, service):
        """Order items without schedule entries are pending classification."""
        structure = await service.load(STUDIO_ID, JOB_ID)

        assert structure.catalog_available
        assert structure.task_count == 2
        assert structure.classification.sentinel_task_count == 2
        assert structure.classification.alert_section_ids == [SIN_CATEGORIA_SECTION_ID]

    @pytest.mark.asyncio
    async def test_classified_task_moves_to_catalog_section(self, service, gateway):
        """A reclassified task is placed under its catalog section."""
        await gateway.sync_tasks_from_order(STUDIO_ID, JOB_ID)
        await gateway.reclassify_task(STUDIO_ID, JOB_ID, "task-A", Stage.PRODUCTION, "cat-editing")

        structure = await service.load(STUDIO_ID, JOB_ID)

        placed = {row.task.id: row.section_id for row in structure.rows if is_leaf_task_row(row)}
        assert placed == {"task-A": "sec-photo", "task-B": SIN_CATEGORIA_SECTION_ID}
        assert [block.section_id for block in structure.blocks] == [
            "sec-photo",
            SIN_CATEGORIA_SECTION_ID,
        ]

    @pytest.mark.asyncio
    async def test_catalog_failure_degrades(self, service, gateway, monkeypatch):
        """A failing catalog fetch yields a structure with no known sections."""

        async def broken_catalog(studio_id):
            raise RuntimeError("catalog service down")

        monkeypatch.setattr(gateway, "fetch_catalog", broken_catalog)
        await gateway.sync_tasks_from_order(STUDIO_ID, JOB_ID)
        await gateway.reclassify_task(STUDIO_ID, JOB_ID, "task-A", Stage.PRODUCTION, "cat-editing")

        structure = await service.load(STUDIO_ID, JOB_ID)

        assert not structure.catalog_available
        assert service.current_catalog(STUDIO_ID) is None
        assert {row.section_id for row in structure.rows} == {SIN_CATEGORIA_SECTION_ID}
        assert structure.task_count == 2
        # any non-empty category id resolves without a catalog
        assert structure.classification.unclassified_task_ids == ["task-B"]

    @pytest.mark.asyncio
    async def test_missing_job_propagates(self, service):
        """A failed job fetch is not degraded."""
        with pytest.raises(JobNotFoundError):
            await service.load(STUDIO_ID, "no-such-job")

    @pytest.mark.asyncio
    async def test_collaborator_timeout(self, gateway, monkeypatch):
        """Slow collaborator calls surface as CollaboratorError."""

        async def slow_job(studio_id, job_id):
            await asyncio.sleep(1)

        monkeypatch.setattr(gateway, "fetch_job_detail", slow_job)
        service = SchedulerStructureService(gateway, timeout_seconds=0.01)

        with pytest.raises(CollaboratorError) as excinfo:
            await service.load(STUDIO_ID, JOB_ID)
        assert excinfo.value.error_type.value == "collaborator"

    @pytest.mark.asyncio
    async def test_structure_is_memoized_until_token_changes(self, service):
        """Same snapshots and token return the same structure object."""
        first = await service.load(STUDIO_ID, JOB_ID)
        again = await service.load(STUDIO_ID, JOB_ID, refresh=False)
        assert again is first

        service.notifier.notify(StructureChanged(studio_id=STUDIO_ID, job_id=JOB_ID, reason="test"))
        after = service.current_structure(STUDIO_ID, JOB_ID)

        assert after is not first
        assert after.token == first.token + 1
        assert after.rows == first.rows

    @pytest.mark.asyncio
    async def test_refresh_produces_new_snapshot(self, service):
        """Every refresh stores fresh snapshot objects."""
        first = await service.load(STUDIO_ID, JOB_ID)
        second = await service.load(STUDIO_ID, JOB_ID)

        assert second is not first
        assert second.rows == first.rows

    @pytest.mark.asyncio
    async def test_variants_are_cached_separately(self, service):
        """Phantom and active-section variants do not share cache entries."""
        with_phantoms = await service.load(STUDIO_ID, JOB_ID)
        without = service.build_structure(
            STUDIO_ID,
            service.current_catalog(STUDIO_ID),
            service.current_job(STUDIO_ID, JOB_ID),
            include_phantoms=False,
        )

        assert without is not with_phantoms
        assert len(without.rows) < len(with_phantoms.rows)
        assert without.task_count == with_phantoms.task_count

    @pytest.mark.asyncio
    async def test_job_stats(self, service, gateway):
        """Synced tasks start on the event date and are pending before it."""
        await gateway.sync_tasks_from_order(STUDIO_ID, JOB_ID)

        today, stats = await service.job_stats(STUDIO_ID, JOB_ID, today=TODAY)

        assert today == TODAY
        assert stats.total == 2
        assert stats.pending == 2
        assert stats.without_crew == 2
        assert stats.percentage == 0

    @pytest.mark.asyncio
    async def test_fleet_stats(self, service, gateway):
        """Fleet totals count unsynced items as unassigned."""
        fleet = await service.fleet_stats(STUDIO_ID, today=TODAY)
        assert fleet.totals.total == 2
        assert fleet.totals.unassigned == 2

        await gateway.sync_tasks_from_order(STUDIO_ID, JOB_ID)
        fleet = await service.fleet_stats(STUDIO_ID, today=TODAY.add_days(20))

        assert fleet.totals.delayed == 2
        assert fleet.delayed_job_ids == [JOB_ID]
