"""Domain events raised when a job's schedule structure changes."""

from ...shared.base import DomainEvent
from ..value_objects.enums import Stage


class StructureChanged(DomainEvent):
    """Generic structure change; carries the reason for subscribers that log it."""

    reason: str


class TaskReclassified(DomainEvent):
    task_id: str
    previous_category: str | None = None
    previous_catalog_category_id: str | None = None
    stage: Stage
    catalog_category_id: str | None = None


class TasksSynchronized(DomainEvent):
    created: int = 0
    updated: int = 0
    skipped: int = 0
    removed: int = 0
