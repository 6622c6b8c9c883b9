"""Domain enums for production scheduling."""

from enum import Enum


class TaskCategory(str, Enum):
    """Category stored on a schedule entry."""

    PLANNING = "PLANNING"
    PRODUCTION = "PRODUCTION"
    POST_PRODUCTION = "POST_PRODUCTION"
    REVIEW = "REVIEW"
    DELIVERY = "DELIVERY"
    WARRANTY = "WARRANTY"
    UNASSIGNED = "UNASSIGNED"


class Stage(str, Enum):
    """Production phase; the spine of the work breakdown."""

    PLANNING = "PLANNING"
    PRODUCTION = "PRODUCTION"
    POST_PRODUCTION = "POST_PRODUCTION"
    DELIVERY = "DELIVERY"

    @property
    def position(self) -> int:
        return STAGE_ORDER.index(self)

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]

    @classmethod
    def from_category(cls, category: "TaskCategory | str | None") -> "Stage | None":
        """
        Normalize a stored task category into a stage.

        REVIEW and WARRANTY fold into POST_PRODUCTION. UNASSIGNED, missing and
        unrecognized values have no stage (pending classification).
        """
        if category is None:
            return None
        value = category.value if isinstance(category, Enum) else str(category)
        value = value.strip().upper()
        if value in _STAGE_VALUES:
            return cls(value)
        if value in (TaskCategory.REVIEW.value, TaskCategory.WARRANTY.value):
            return cls.POST_PRODUCTION
        return None


STAGE_ORDER: tuple[Stage, ...] = (
    Stage.PLANNING,
    Stage.PRODUCTION,
    Stage.POST_PRODUCTION,
    Stage.DELIVERY,
)

STAGE_LABELS: dict[Stage, str] = {
    Stage.PLANNING: "Planning",
    Stage.PRODUCTION: "Production",
    Stage.POST_PRODUCTION: "Post-Production",
    Stage.DELIVERY: "Delivery",
}

_STAGE_VALUES = frozenset(s.value for s in Stage)

# Status value that marks a schedule entry as done. Other statuses are free-form.
COMPLETED_STATUS = "COMPLETED"


class TaskSource(str, Enum):
    """Where a normalized task came from."""

    ORDER_ITEM = "order_item"
    MANUAL = "manual"


class RowKind(str, Enum):
    """Discriminator for scheduler rows."""

    SECTION = "section"
    STAGE = "stage"
    CATEGORY = "category"
    TASK = "task"
    MANUAL_TASK = "manual_task"
    ADD_TASK_PHANTOM = "add_task_phantom"
    ADD_CATEGORY_PHANTOM = "add_category_phantom"


class CategoryKind(str, Enum):
    """Which bucket a category row represents inside a stage."""

    CATALOG = "catalog"
    CUSTOM = "custom"
    UNCATEGORIZED = "uncategorized"


class TimeStatus(str, Enum):
    """Date-bucket of a task relative to "today"."""

    COMPLETED = "completed"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DELAYED = "delayed"
    UNASSIGNED = "unassigned"
