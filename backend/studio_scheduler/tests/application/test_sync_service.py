"""
Tests for OrderSyncService and the in-memory order synchronization.
"""

import asyncio

import pytest

from studio_scheduler.application.services.structure_service import SchedulerStructureService
from studio_scheduler.application.services.sync_service import OrderSyncService
from studio_scheduler.domain.scheduling.events import TasksSynchronized

from ..fixtures import JOB_ID, STUDIO_ID, TODAY, TaskFactory


@pytest.fixture
def structure(gateway):
    return SchedulerStructureService(gateway)


@pytest.fixture
def sync_service(structure):
    return OrderSyncService(structure)


class TestOrderSync:
    """Test order synchronization through the application service."""

    @pytest.mark.asyncio
    async def test_sync_is_idempotent(self, sync_service, structure):
        """A second sync with no order changes creates and updates nothing."""
        first = await sync_service.sync(STUDIO_ID, JOB_ID)
        second = await sync_service.sync(STUDIO_ID, JOB_ID)

        assert first.success
        assert first.data == {"created": 2, "updated": 0, "skipped": 0, "removed": 0}
        assert second.data == {"created": 0, "updated": 0, "skipped": 2, "removed": 0}

        events = structure.notifier.history(JOB_ID)
        assert len(events) == 1
        assert isinstance(events[0], TasksSynchronized)
        assert events[0].created == 2

    @pytest.mark.asyncio
    async def test_sync_refreshes_snapshot(self, sync_service, structure):
        """Created entries start on the event date and last their duration."""
        await sync_service.sync(STUDIO_ID, JOB_ID)

        job = structure.current_job(STUDIO_ID, JOB_ID)
        task_a = job.find_task("task-A")
        task_b = job.find_task("task-B")

        assert task_a.start_date == TODAY.add_days(10)
        assert task_a.end_date == TODAY.add_days(12)
        assert task_a.category == "UNASSIGNED"
        assert task_a.catalog_category_id == "cat-editing"
        assert task_b.end_date == TODAY.add_days(11)

    @pytest.mark.asyncio
    async def test_orphaned_entries_are_removed(self, sync_service, structure, gateway):
        """Entries of items that left the approved set are removed with their links."""
        gateway.add_manual_task(STUDIO_ID, JOB_ID, TaskFactory.manual("m1", parent_id="task-B"))
        await sync_service.sync(STUDIO_ID, JOB_ID)

        gateway.set_order_item_status(STUDIO_ID, JOB_ID, "B", "cancelled")
        result = await sync_service.sync(STUDIO_ID, JOB_ID)

        assert result.data["removed"] == 1
        job = structure.current_job(STUDIO_ID, JOB_ID)
        assert [item.id for item in job.order_items] == ["A"]
        assert job.find_task("task-B") is None
        assert job.find_task("m1").parent_id is None

    @pytest.mark.asyncio
    async def test_new_item_gets_entry(self, sync_service, gateway):
        """Items approved after the first sync get their own entry."""
        await sync_service.sync(STUDIO_ID, JOB_ID)
        gateway.add_order_item(
            STUDIO_ID, JOB_ID, TaskFactory.order_item("C", "cat-editing", duration_days=3)
        )

        result = await sync_service.sync(STUDIO_ID, JOB_ID)

        assert result.data == {"created": 1, "updated": 0, "skipped": 2, "removed": 0}

    @pytest.mark.asyncio
    async def test_unknown_job(self, sync_service):
        """Sync failures come back as a failed result."""
        result = await sync_service.sync(STUDIO_ID, "no-such-job")

        assert not result.success
        assert result.error_type == "not_found"

    @pytest.mark.asyncio
    async def test_newer_sync_supersedes_in_flight_sync(self, sync_service, structure, gateway, monkeypatch):
        """Only the newest sync applies its result."""
        started = asyncio.Event()
        calls = []
        original = gateway.sync_tasks_from_order

        async def slow_first(studio_id, job_id):
            calls.append(job_id)
            if len(calls) == 1:
                started.set()
                await asyncio.Event().wait()
            return await original(studio_id, job_id)

        monkeypatch.setattr(gateway, "sync_tasks_from_order", slow_first)

        first = asyncio.create_task(sync_service.sync(STUDIO_ID, JOB_ID))
        await started.wait()
        assert sync_service.in_flight(STUDIO_ID, JOB_ID)

        second = await sync_service.sync(STUDIO_ID, JOB_ID)
        stale = await first

        assert second.success
        assert second.data["created"] == 2
        assert stale.superseded
        assert not stale.success
        assert stale.error_type == "concurrency"
        assert not sync_service.in_flight(STUDIO_ID, JOB_ID)
        assert len(structure.notifier.history(JOB_ID)) == 1
