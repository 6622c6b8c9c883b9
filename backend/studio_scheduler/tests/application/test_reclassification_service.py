"""
Tests for ReclassificationService.

Covers optimistic application, rollback on rejection and last-request-wins
handling of overlapping requests for the same task.
"""

import asyncio

import pytest
import pytest_asyncio

from studio_scheduler.application.services.reclassification_service import ReclassificationService
from studio_scheduler.application.services.structure_service import SchedulerStructureService
from studio_scheduler.domain.scheduling.events import TaskReclassified
from studio_scheduler.domain.scheduling.value_objects.enums import Stage
from studio_scheduler.domain.shared.exceptions import JobNotFoundError

from ..fixtures import JOB_ID, STUDIO_ID


@pytest_asyncio.fixture
async def structure(gateway):
    """Structure service holding a snapshot of the synced job."""
    await gateway.sync_tasks_from_order(STUDIO_ID, JOB_ID)
    service = SchedulerStructureService(gateway)
    await service.refresh(STUDIO_ID, JOB_ID)
    return service


def current_task(structure, task_id="task-A"):
    return structure.current_job(STUDIO_ID, JOB_ID).find_task(task_id)


class TestReclassificationService:
    """Test the reclassification use case."""

    @pytest.mark.asyncio
    async def test_success_updates_snapshot_and_notifies(self, structure):
        """A confirmed reclassification moves the task out of the sentinel section."""
        service = ReclassificationService(structure)

        result = await service.reclassify(STUDIO_ID, JOB_ID, "task-A", Stage.PRODUCTION, "cat-editing")

        assert result.success
        assert not result.superseded
        assert result.data["task"]["category"] == "PRODUCTION"
        assert result.data["task"]["catalog_category_id"] == "cat-editing"
        assert current_task(structure).category == "PRODUCTION"

        events = structure.notifier.history(JOB_ID)
        assert len(events) == 1
        assert isinstance(events[0], TaskReclassified)
        assert events[0].previous_category == "UNASSIGNED"
        assert events[0].stage == Stage.PRODUCTION

        rebuilt = structure.current_structure(STUDIO_ID, JOB_ID)
        assert rebuilt.classification.sentinel_task_count == 1
        assert service.latest_request(STUDIO_ID, JOB_ID, "task-A") is None

    @pytest.mark.asyncio
    async def test_rejected_change_rolls_back(self, structure):
        """An unknown catalog category is rejected and the task is restored."""
        service = ReclassificationService(structure)

        result = await service.reclassify(STUDIO_ID, JOB_ID, "task-A", Stage.PRODUCTION, "nope")

        assert not result.success
        assert result.error_type == "validation"
        assert current_task(structure).category == "UNASSIGNED"
        assert current_task(structure).catalog_category_id == "cat-editing"
        assert structure.notifier.history() == []

    @pytest.mark.asyncio
    async def test_unknown_task(self, structure):
        """Reclassifying a task that does not exist reports not_found."""
        service = ReclassificationService(structure)

        result = await service.reclassify(STUDIO_ID, JOB_ID, "ghost", Stage.DELIVERY, None)

        assert not result.success
        assert result.error_type == "not_found"

    @pytest.mark.asyncio
    async def test_missing_job_raises(self, gateway):
        """Without a job snapshot the request cannot start."""
        service = ReclassificationService(SchedulerStructureService(gateway))

        with pytest.raises(JobNotFoundError):
            await service.reclassify(STUDIO_ID, "no-such-job", "task-A", Stage.PRODUCTION, None)

    @pytest.mark.asyncio
    async def test_stale_response_is_ignored(self, structure, gateway, monkeypatch):
        """The first of two overlapping requests cannot overwrite the second."""
        release = asyncio.Event()
        calls = []
        original = gateway.reclassify_task

        async def gated(*args):
            calls.append(args)
            if len(calls) == 1:
                await release.wait()
            return await original(*args)

        monkeypatch.setattr(gateway, "reclassify_task", gated)
        service = ReclassificationService(structure)

        first = asyncio.create_task(
            service.reclassify(
                STUDIO_ID, JOB_ID, "task-A", Stage.PRODUCTION, "cat-editing", request_id="r1"
            )
        )
        while not calls:
            await asyncio.sleep(0)
        assert current_task(structure).category == "PRODUCTION"

        second = await service.reclassify(
            STUDIO_ID, JOB_ID, "task-A", Stage.DELIVERY, "cat-editing", request_id="r2"
        )
        release.set()
        stale = await first

        assert second.success and not second.superseded
        assert stale.superseded
        assert stale.request_id == "r1"
        assert current_task(structure).category == "DELIVERY"
        assert len(structure.notifier.history(JOB_ID)) == 1

    @pytest.mark.asyncio
    async def test_stale_failure_does_not_roll_back(self, structure, gateway, monkeypatch):
        """A late rejection of a superseded request leaves newer state alone."""
        release = asyncio.Event()
        calls = []
        original = gateway.reclassify_task

        async def gated(*args):
            calls.append(args)
            if len(calls) == 1:
                await release.wait()
            return await original(*args)

        monkeypatch.setattr(gateway, "reclassify_task", gated)
        service = ReclassificationService(structure)

        first = asyncio.create_task(
            service.reclassify(STUDIO_ID, JOB_ID, "task-A", Stage.PLANNING, "deleted-category")
        )
        while not calls:
            await asyncio.sleep(0)
        await service.reclassify(STUDIO_ID, JOB_ID, "task-A", Stage.DELIVERY, "cat-editing")
        release.set()
        stale = await first

        assert not stale.success
        assert stale.superseded
        assert current_task(structure).category == "DELIVERY"
