"""Job snapshots handed to the structure engine by the collaborator."""

from pydantic import Field

from ...shared.base import Entity
from ..value_objects.date_only import DateOnly
from ..value_objects.enums import Stage
from .manual_task import CustomCategory, ManualTask
from .order_item import OrderItem, ScheduledTask


class JobDetail(Entity):
    """
    Everything needed to build one job's schedule structure.

    ``activated_stage_keys`` lists stage keys (``"{section_id}-{STAGE}"``) that
    must render even when empty. ``custom_categories`` and
    ``category_order_by_stage`` are keyed by stage key as well.
    """

    name: str = ""
    event_date: DateOnly | None = None
    order_items: list[OrderItem] = Field(default_factory=list)
    manual_tasks: list[ManualTask] = Field(default_factory=list)
    activated_stage_keys: list[str] = Field(default_factory=list)
    custom_categories: dict[str, list[CustomCategory]] = Field(default_factory=dict)
    category_order_by_stage: dict[str, list[str]] = Field(default_factory=dict)

    @property
    def job_id(self) -> str:
        return self.id

    def find_task(self, task_id: str) -> ScheduledTask | ManualTask | None:
        for item in self.order_items:
            if item.scheduled_task is not None and item.scheduled_task.id == task_id:
                return item.scheduled_task
        for manual in self.manual_tasks:
            if manual.id == task_id:
                return manual
        return None

    def with_task(self, task: ScheduledTask | ManualTask) -> "JobDetail":
        """Return a new snapshot with ``task`` replacing the task of the same id."""
        if isinstance(task, ManualTask):
            manual = [task if m.id == task.id else m for m in self.manual_tasks]
            return self.model_copy(update={"manual_tasks": manual})
        items = []
        for item in self.order_items:
            if item.scheduled_task is not None and item.scheduled_task.id == task.id:
                item = item.model_copy(update={"scheduled_task": task})
            items.append(item)
        return self.model_copy(update={"order_items": items})

    def with_reclassified_task(
        self, task_id: str, stage: Stage, catalog_category_id: str | None
    ) -> "JobDetail":
        task = self.find_task(task_id)
        if task is None:
            return self
        updated = task.model_copy(
            update={"category": stage.value, "catalog_category_id": catalog_category_id}
        )
        return self.with_task(updated)


class JobSchedule(Entity):
    """Per-job summary used by the fleet overview."""

    name: str
    total_items: int = Field(default=0, ge=0)
    tasks: list[ScheduledTask] = Field(default_factory=list)

    @property
    def job_id(self) -> str:
        return self.id
