"""Uniform task representation consumed by row building and statistics."""

from ...shared.base import ValueObject
from ..value_objects.date_only import DateOnly
from ..value_objects.enums import Stage, TaskCategory, TaskSource


class NormalizedTask(ValueObject):
    """
    One unit of schedulable work, whether it came from an order item or was
    created manually.

    ``scheduled`` is false for order items that have no schedule entry yet; such
    tasks carry no stage, dates or progress.
    """

    id: str
    source: TaskSource
    source_id: str
    name: str
    scheduled: bool = True
    category: str | None = TaskCategory.UNASSIGNED.value
    stage: Stage | None = None
    catalog_category_id: str | None = None
    custom_category_id: str | None = None
    section_hint: str | None = None
    status: str = "PENDING"
    progress_percent: float | None = None
    start_date: DateOnly | None = None
    end_date: DateOnly | None = None
    assigned_to: str | None = None
    parent_id: str | None = None
    duration_days: int = 1
    is_completed: bool = False

    @property
    def is_manual(self) -> bool:
        return self.source == TaskSource.MANUAL

    @property
    def has_dates(self) -> bool:
        return self.start_date is not None and self.end_date is not None
