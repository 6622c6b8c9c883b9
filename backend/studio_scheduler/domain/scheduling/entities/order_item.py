"""
Order Item and Scheduled Task Entities

An order item is one approved line of a client order. Once synchronized it
carries a linked scheduled task holding the mutable scheduling fields.
"""

from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from ...shared.base import Entity
from ..value_objects.date_only import DateOnly
from ..value_objects.enums import COMPLETED_STATUS, Stage, TaskCategory


class SchedulingFields(Entity):
    """Scheduling fields shared by scheduled and manual tasks."""

    duration_days: int = Field(default=1, ge=1)
    category: str | None = TaskCategory.UNASSIGNED.value
    catalog_category_id: str | None = None
    status: str = "PENDING"
    progress_percent: float | None = Field(default=None, ge=0, le=100)
    start_date: DateOnly | None = None
    end_date: DateOnly | None = None
    assigned_to: str | None = None
    parent_id: str | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> str | None:
        if isinstance(value, Enum):
            return value.value
        return value

    @property
    def stage(self) -> Stage | None:
        return Stage.from_category(self.category)

    @property
    def is_completed(self) -> bool:
        if (self.status or "").upper() == COMPLETED_STATUS:
            return True
        return self.progress_percent is not None and self.progress_percent >= 100

    @property
    def has_dates(self) -> bool:
        return self.start_date is not None and self.end_date is not None


class ScheduledTask(SchedulingFields):
    """Schedule entry linked to an order item."""


class OrderItem(Entity):
    """Approved order line, optionally scheduled."""

    item_id: str | None = None
    catalog_category_id: str | None = None
    name: str
    name_snapshot: str | None = None
    # Defaults applied when sync creates the schedule entry
    duration_days: int | None = Field(default=None, ge=1)
    operational_category: str | None = None
    scheduled_task: ScheduledTask | None = None

    @property
    def display_name(self) -> str:
        return self.name_snapshot or self.name

    @property
    def effective_catalog_category_id(self) -> str | None:
        """Operator choice on the schedule entry wins over the order-time category."""
        if self.scheduled_task is not None and self.scheduled_task.catalog_category_id:
            return self.scheduled_task.catalog_category_id
        return self.catalog_category_id
