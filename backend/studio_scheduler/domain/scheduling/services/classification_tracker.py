"""
ClassificationTracker Domain Service

Answers which tasks and sections need operator attention because their
production stage or catalog category is missing. The tracker never mutates
tasks; reclassification goes through the collaborator.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol

from pydantic import Field

from ...shared.base import ValueObject
from ..entities.rows import Row, is_leaf_task_row, is_section_row
from ..value_objects.enums import Stage
from ..value_objects.stage_key import SIN_CATEGORIA_SECTION_ID
from .catalog_index import CatalogIndex


class ClassifiableTask(Protocol):
    id: str
    category: str | None
    catalog_category_id: str | None


class ClassificationSummary(ValueObject):
    total_tasks: int = 0
    unclassified_count: int = 0
    unclassified_task_ids: list[str] = Field(default_factory=list)
    alert_section_ids: list[str] = Field(default_factory=list)
    sentinel_task_count: int = 0

    @property
    def fully_classified(self) -> bool:
        return self.unclassified_count == 0


class ClassificationTracker:
    """
    Flags unclassified work.

    Without a catalog index, any non-empty ``catalog_category_id`` counts as
    resolvable; with one, the id must exist in the catalog.
    """

    def __init__(self, index: CatalogIndex | None = None) -> None:
        self.index = index

    def has_resolvable_category(self, catalog_category_id: str | None) -> bool:
        if not catalog_category_id:
            return False
        if self.index is None:
            return True
        return self.index.has_category(catalog_category_id)

    def needs_alert(self, task: ClassifiableTask) -> bool:
        if Stage.from_category(task.category) is None:
            return True
        return not self.has_resolvable_category(task.catalog_category_id)

    def is_alert_section(self, section_id: str, rows: Sequence[Row] = ()) -> bool:
        if section_id == SIN_CATEGORIA_SECTION_ID:
            return True
        return any(
            is_leaf_task_row(row) and row.section_id == section_id and self.needs_alert(row.task)
            for row in rows
        )

    def unclassified_tasks(self, tasks: Iterable[ClassifiableTask]) -> list[ClassifiableTask]:
        return [task for task in tasks if self.needs_alert(task)]

    def alert_section_ids(self, rows: Sequence[Row]) -> list[str]:
        """Emitted sections that need attention, in row order."""
        alerts: list[str] = []
        for row in rows:
            if is_section_row(row):
                if row.section_id == SIN_CATEGORIA_SECTION_ID and row.section_id not in alerts:
                    alerts.append(row.section_id)
            elif is_leaf_task_row(row) and row.section_id not in alerts and self.needs_alert(row.task):
                alerts.append(row.section_id)
        return alerts

    def classified_in_sentinel(self, rows: Sequence[Row]) -> list[str]:
        """Ids of fully classified tasks found in the sentinel section; empty for consistent rows."""
        return [
            row.task.id
            for row in rows
            if is_leaf_task_row(row)
            and row.section_id == SIN_CATEGORIA_SECTION_ID
            and not self.needs_alert(row.task)
        ]

    def classification_summary(self, rows: Sequence[Row]) -> ClassificationSummary:
        leaves = [row for row in rows if is_leaf_task_row(row)]
        unclassified = [row.task.id for row in leaves if self.needs_alert(row.task)]
        return ClassificationSummary(
            total_tasks=len(leaves),
            unclassified_count=len(unclassified),
            unclassified_task_ids=unclassified,
            alert_section_ids=self.alert_section_ids(rows),
            sentinel_task_count=sum(
                1 for row in leaves if row.section_id == SIN_CATEGORIA_SECTION_ID
            ),
        )
