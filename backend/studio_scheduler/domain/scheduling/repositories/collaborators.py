"""
Collaborator Interfaces

Everything the structure engine reads or mutates lives behind this gateway.
Wire formats and persistence are the implementation's concern.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from ..entities.catalog import Section
from ..entities.job import JobDetail, JobSchedule
from ..entities.manual_task import ManualTask
from ..entities.order_item import ScheduledTask
from ..value_objects.enums import Stage


class SyncResult(BaseModel):
    """Outcome of synchronizing schedule entries from a job's approved order."""

    created: int = Field(ge=0, default=0)
    updated: int = Field(ge=0, default=0)
    skipped: int = Field(ge=0, default=0)
    removed: int = Field(ge=0, default=0)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.removed)


class StudioSchedulerGateway(ABC):
    """Async access to catalog, job and schedule data for one deployment."""

    @abstractmethod
    async def fetch_catalog(self, studio_id: str) -> list[Section]:
        """Sections with nested categories and items."""
        ...

    @abstractmethod
    async def fetch_job_detail(self, studio_id: str, job_id: str) -> JobDetail:
        """Order items (approved statuses only) and manual tasks of one job."""
        ...

    @abstractmethod
    async def sync_tasks_from_order(self, studio_id: str, job_id: str) -> SyncResult:
        """
        Upsert one schedule entry per approved order item.

        Must be idempotent: a second run with no order changes reports every
        item as skipped and creates or updates nothing.
        """
        ...

    @abstractmethod
    async def reclassify_task(
        self,
        studio_id: str,
        job_id: str,
        task_id: str,
        stage: Stage,
        catalog_category_id: str | None,
    ) -> ScheduledTask | ManualTask:
        """Rewrite stage and catalog category together, or neither."""
        ...

    @abstractmethod
    async def fetch_fleet_schedules(self, studio_id: str) -> list[JobSchedule]:
        """One schedule summary per job of the studio."""
        ...
