"""Operator-created tasks and studio-defined custom categories."""

from ...shared.base import Entity
from .order_item import SchedulingFields


class ManualTask(SchedulingFields):
    """A task created directly against a job, with no backing order item."""

    name: str
    custom_category_id: str | None = None
    custom_category_name: str | None = None
    section_id: str | None = None


class CustomCategory(Entity):
    """Studio-defined category scoped to one (section, stage) pair."""

    name: str
