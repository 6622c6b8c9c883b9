"""Value objects for the scheduling domain."""

from .date_only import DateOnly
from .enums import (
    COMPLETED_STATUS,
    STAGE_LABELS,
    STAGE_ORDER,
    CategoryKind,
    RowKind,
    Stage,
    TaskCategory,
    TaskSource,
    TimeStatus,
)
from .stage_key import SIN_CATEGORIA_SECTION_ID, STAGE_KEY_SEPARATOR, StageKey

__all__ = [
    # Dates
    "DateOnly",
    # Enums
    "CategoryKind",
    "RowKind",
    "Stage",
    "TaskCategory",
    "TaskSource",
    "TimeStatus",
    "COMPLETED_STATUS",
    "STAGE_LABELS",
    "STAGE_ORDER",
    # Stage keys
    "SIN_CATEGORIA_SECTION_ID",
    "STAGE_KEY_SEPARATOR",
    "StageKey",
]
