"""
Reclassification application service.

Applies an optimistic reclassification to the job snapshot, issues the
mutation and either confirms it or rolls the task back. Requests for the same
task follow last-request-wins: only the newest request may confirm or roll
back, so a stale response never overwrites newer optimistic state.
"""

from uuid import uuid4

from ...core.observability import get_logger, log_error_with_context, monitor_performance
from ...domain.scheduling.entities.manual_task import ManualTask
from ...domain.scheduling.entities.order_item import ScheduledTask
from ...domain.scheduling.events import TaskReclassified
from ...domain.scheduling.value_objects.enums import Stage
from ...domain.shared.exceptions import DomainError
from ..dtos.scheduling_dtos import MutationResult
from .structure_service import SchedulerStructureService

logger = get_logger(__name__)


class ReclassificationService:
    def __init__(self, structure: SchedulerStructureService) -> None:
        self.structure = structure
        self._latest: dict[tuple[str, str, str], str] = {}

    def latest_request(self, studio_id: str, job_id: str, task_id: str) -> str | None:
        return self._latest.get((studio_id, job_id, task_id))

    def _is_latest(self, key: tuple[str, str, str], request_id: str) -> bool:
        return self._latest.get(key) == request_id

    @monitor_performance("reclassify_task")
    async def reclassify(
        self,
        studio_id: str,
        job_id: str,
        task_id: str,
        stage: Stage,
        catalog_category_id: str | None,
        request_id: str | None = None,
    ) -> MutationResult:
        """
        Reclassify one task.

        Returns a failed ``MutationResult`` (never raises) when the collaborator
        rejects the change; the optimistic state is rolled back in that case
        unless a newer request for the same task is in flight.
        """
        request_id = request_id or uuid4().hex
        key = (studio_id, job_id, task_id)
        self._latest[key] = request_id

        try:
            _, snapshot = await self.structure.ensure_snapshot(studio_id, job_id)
        except DomainError:
            if self._is_latest(key, request_id):
                self._latest.pop(key, None)
            raise
        previous_task = snapshot.find_task(task_id)
        if previous_task is not None:
            self.structure.replace_job(
                studio_id,
                job_id,
                snapshot.with_reclassified_task(task_id, stage, catalog_category_id),
            )

        try:
            updated = await self.structure.call_collaborator(
                "reclassify_task",
                self.structure.gateway.reclassify_task(
                    studio_id, job_id, task_id, stage, catalog_category_id
                ),
            )
        except DomainError as error:
            if not self._is_latest(key, request_id):
                logger.info(
                    "Stale reclassification failure ignored",
                    job_id=job_id,
                    task_id=task_id,
                    request_id=request_id,
                )
                return MutationResult(
                    success=False,
                    error=error.message,
                    error_type=error.error_type.value,
                    superseded=True,
                    request_id=request_id,
                )
            self._latest.pop(key, None)
            self._rollback(studio_id, job_id, previous_task)
            log_error_with_context(
                error,
                "reclassify_task",
                {"studio_id": studio_id, "job_id": job_id, "task_id": task_id},
                severity="warning",
                include_traceback=False,
            )
            return MutationResult(
                success=False,
                error=error.message,
                error_type=error.error_type.value,
                request_id=request_id,
            )

        if not self._is_latest(key, request_id):
            logger.info(
                "Stale reclassification response ignored",
                job_id=job_id,
                task_id=task_id,
                request_id=request_id,
            )
            return MutationResult(
                success=True,
                superseded=True,
                data={"task": updated.model_dump(mode="json")},
                request_id=request_id,
            )

        self._latest.pop(key, None)
        self._confirm(studio_id, job_id, updated)
        self.structure.notifier.notify(
            TaskReclassified(
                studio_id=studio_id,
                job_id=job_id,
                task_id=task_id,
                previous_category=previous_task.category if previous_task else None,
                previous_catalog_category_id=previous_task.catalog_category_id
                if previous_task
                else None,
                stage=stage,
                catalog_category_id=catalog_category_id,
            )
        )
        return MutationResult(
            success=True,
            data={"task": updated.model_dump(mode="json")},
            request_id=request_id,
        )

    def _confirm(self, studio_id: str, job_id: str, task: ScheduledTask | ManualTask) -> None:
        current = self.structure.current_job(studio_id, job_id)
        if current is not None and current.find_task(task.id) is not None:
            self.structure.replace_job(studio_id, job_id, current.with_task(task))

    def _rollback(
        self, studio_id: str, job_id: str, previous_task: ScheduledTask | ManualTask | None
    ) -> None:
        """Restore the task's pre-mutation state in the current snapshot."""
        if previous_task is None:
            return
        current = self.structure.current_job(studio_id, job_id)
        if current is not None:
            self.structure.replace_job(studio_id, job_id, current.with_task(previous_task))
            logger.info("Reclassification rolled back", job_id=job_id, task_id=previous_task.id)
