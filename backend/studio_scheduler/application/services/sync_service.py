"""
Order sync application service.

Runs ``sync_tasks_from_order`` for a job. Starting a new sync for a job
cancels the one in flight; only the newest generation refreshes the snapshot
and publishes the change, so results are never applied twice.
"""

import asyncio

from ...core.observability import get_logger, log_error_with_context, monitor_performance
from ...domain.scheduling.events import TasksSynchronized
from ...domain.scheduling.repositories.collaborators import SyncResult
from ...domain.shared.exceptions import DomainError, SupersededRequestError
from ..dtos.scheduling_dtos import MutationResult
from .structure_service import SchedulerStructureService

logger = get_logger(__name__)


class OrderSyncService:
    def __init__(self, structure: SchedulerStructureService) -> None:
        self.structure = structure
        self._generation: dict[tuple[str, str], int] = {}
        self._inflight: dict[tuple[str, str], asyncio.Task[SyncResult]] = {}

    def in_flight(self, studio_id: str, job_id: str) -> bool:
        task = self._inflight.get((studio_id, job_id))
        return task is not None and not task.done()

    def _superseded(self, key: tuple[str, str], generation: int) -> MutationResult:
        error = SupersededRequestError(f"sync:{key[1]}")
        logger.info("Order sync superseded", studio_id=key[0], job_id=key[1], generation=generation)
        return MutationResult(
            success=False,
            error=error.message,
            error_type=error.error_type.value,
            superseded=True,
        )

    @monitor_performance("sync_tasks_from_order")
    async def sync(self, studio_id: str, job_id: str) -> MutationResult:
        key = (studio_id, job_id)
        generation = self._generation.get(key, 0) + 1
        self._generation[key] = generation

        previous = self._inflight.get(key)
        if previous is not None and not previous.done():
            previous.cancel()

        task = asyncio.ensure_future(
            self.structure.call_collaborator(
                "sync_tasks_from_order",
                self.structure.gateway.sync_tasks_from_order(studio_id, job_id),
            )
        )
        self._inflight[key] = task
        try:
            result = await task
        except asyncio.CancelledError:
            if self._generation.get(key) != generation:
                return self._superseded(key, generation)
            raise
        except DomainError as error:
            if self._generation.get(key) != generation:
                return self._superseded(key, generation)
            log_error_with_context(
                error,
                "sync_tasks_from_order",
                {"studio_id": studio_id, "job_id": job_id},
                severity="warning",
                include_traceback=False,
            )
            return MutationResult(success=False, error=error.message, error_type=error.error_type.value)
        finally:
            if self._inflight.get(key) is task:
                del self._inflight[key]

        if self._generation.get(key) != generation:
            return self._superseded(key, generation)

        if result.changed:
            await self.structure.refresh(studio_id, job_id)
            if self._generation.get(key) != generation:
                return self._superseded(key, generation)
            self.structure.notifier.notify(
                TasksSynchronized(studio_id=studio_id, job_id=job_id, **result.model_dump())
            )
        logger.info("Order sync applied", studio_id=studio_id, job_id=job_id, **result.model_dump())
        return MutationResult(success=True, data=result.model_dump())
