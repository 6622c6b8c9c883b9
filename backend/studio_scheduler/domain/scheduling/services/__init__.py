"""
Domain Services

Pure, synchronous functions that turn a catalog and a job snapshot into the
ordered, typed row list the scheduler renders, and the views derived from it
(blocks, filters, classification alerts).
"""

from .block_grouper import (
    count_tasks,
    flatten_blocks,
    flatten_segments,
    get_stage_segments,
    group_rows_into_blocks,
    section_task_counts,
    stage_task_counts,
)
from .canonical_orderer import CanonicalOrderer, order_items_canonically
from .catalog_index import CatalogIndex, sort_siblings
from .classification_tracker import ClassificationSummary, ClassificationTracker
from .row_builder import RowBuildOptions, SchedulerRowBuilder, build_scheduler_rows
from .row_filters import (
    filter_rows_by_collapsed_categories,
    filter_rows_by_expanded_sections,
    filter_rows_by_expanded_stages,
    strip_phantom_rows,
)
from .task_normalizer import normalize_job, normalize_manual_task, normalize_order_item, normalize_tasks

__all__ = [
    "CatalogIndex",
    "sort_siblings",
    "CanonicalOrderer",
    "order_items_canonically",
    "normalize_order_item",
    "normalize_manual_task",
    "normalize_tasks",
    "normalize_job",
    "RowBuildOptions",
    "SchedulerRowBuilder",
    "build_scheduler_rows",
    "group_rows_into_blocks",
    "get_stage_segments",
    "flatten_blocks",
    "flatten_segments",
    "count_tasks",
    "section_task_counts",
    "stage_task_counts",
    "filter_rows_by_expanded_sections",
    "filter_rows_by_expanded_stages",
    "filter_rows_by_collapsed_categories",
    "strip_phantom_rows",
    "ClassificationSummary",
    "ClassificationTracker",
]
