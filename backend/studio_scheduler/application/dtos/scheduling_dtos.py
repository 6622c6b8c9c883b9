"""
Scheduling DTOs

Request and response models for the structure, stats and mutation use cases.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ...domain.scheduling.entities.blocks import SectionBlock
from ...domain.scheduling.entities.job import JobDetail
from ...domain.scheduling.entities.rows import Row
from ...domain.scheduling.read_models.schedule_stats import FleetStats, JobStats
from ...domain.scheduling.services.classification_tracker import ClassificationSummary
from ...domain.scheduling.value_objects.date_only import DateOnly
from ...domain.scheduling.value_objects.enums import Stage


class MutationResult(BaseModel):
    """Result of a sync or reclassification request."""

    success: bool
    error: str | None = None
    error_type: str | None = None
    data: dict[str, Any] | None = None
    superseded: bool = False
    request_id: str | None = None


class ReclassifyRequest(BaseModel):
    """Target classification; both fields are written together."""

    model_config = ConfigDict(extra="forbid")

    stage: Stage
    catalog_category_id: str | None = None
    request_id: str | None = Field(default=None, max_length=64)


class JobStructure(BaseModel):
    """Derived structure of one job, computed from one catalog and job snapshot."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    studio_id: str
    job: JobDetail
    rows: list[Row]
    blocks: list[SectionBlock]
    classification: ClassificationSummary
    catalog_available: bool
    token: int = 0

    @property
    def task_count(self) -> int:
        return sum(block.task_count for block in self.blocks)


class StructureResponse(BaseModel):
    studio_id: str
    job_id: str
    catalog_available: bool
    token: int
    total_tasks: int
    section_task_counts: dict[str, int]
    alert_section_ids: list[str]
    unclassified_task_ids: list[str]
    rows: list[Row]


class JobStatsResponse(BaseModel):
    studio_id: str
    job_id: str
    today: DateOnly
    stats: JobStats


class FleetStatsResponse(BaseModel):
    studio_id: str
    fleet: FleetStats
