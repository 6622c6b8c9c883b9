"""
Scheduler Rows

The flat output of the row builder, modelled as a union discriminated on
``kind``. Use the ``is_*`` helpers to narrow a ``Row``.
"""

from typing import Annotated, Literal, TypeGuard, Union

from pydantic import Field, TypeAdapter

from ...shared.base import ValueObject
from ..value_objects.enums import CategoryKind, RowKind, Stage
from .manual_task import ManualTask
from .normalized_task import NormalizedTask
from .order_item import OrderItem


class _RowBase(ValueObject):
    id: str
    section_id: str


class _StageScopedRow(_RowBase):
    stage: Stage
    stage_key: str


class SectionRow(_RowBase):
    kind: Literal[RowKind.SECTION] = RowKind.SECTION
    name: str
    is_sentinel: bool = False


class StageRow(_StageScopedRow):
    kind: Literal[RowKind.STAGE] = RowKind.STAGE
    label: str


class CategoryRow(_StageScopedRow):
    kind: Literal[RowKind.CATEGORY] = RowKind.CATEGORY
    category_id: str | None
    name: str
    category_kind: CategoryKind


class TaskRow(_StageScopedRow):
    kind: Literal[RowKind.TASK] = RowKind.TASK
    category_id: str | None
    order_item: OrderItem
    task: NormalizedTask
    depth: int = 0


class ManualTaskRow(_StageScopedRow):
    kind: Literal[RowKind.MANUAL_TASK] = RowKind.MANUAL_TASK
    category_id: str | None
    manual_task: ManualTask
    task: NormalizedTask
    depth: int = 0


class AddTaskPhantomRow(_StageScopedRow):
    kind: Literal[RowKind.ADD_TASK_PHANTOM] = RowKind.ADD_TASK_PHANTOM
    category_id: str | None
    category_kind: CategoryKind


class AddCategoryPhantomRow(_StageScopedRow):
    kind: Literal[RowKind.ADD_CATEGORY_PHANTOM] = RowKind.ADD_CATEGORY_PHANTOM


Row = Annotated[
    Union[
        SectionRow,
        StageRow,
        CategoryRow,
        TaskRow,
        ManualTaskRow,
        AddTaskPhantomRow,
        AddCategoryPhantomRow,
    ],
    Field(discriminator="kind"),
]

RowList = TypeAdapter(list[Row])


def is_section_row(row: Row) -> TypeGuard[SectionRow]:
    return row.kind == RowKind.SECTION


def is_stage_row(row: Row) -> TypeGuard[StageRow]:
    return row.kind == RowKind.STAGE


def is_category_row(row: Row) -> TypeGuard[CategoryRow]:
    return row.kind == RowKind.CATEGORY


def is_task_row(row: Row) -> TypeGuard[TaskRow]:
    return row.kind == RowKind.TASK


def is_manual_task_row(row: Row) -> TypeGuard[ManualTaskRow]:
    return row.kind == RowKind.MANUAL_TASK


def is_leaf_task_row(row: Row) -> TypeGuard[TaskRow | ManualTaskRow]:
    """True for rows that represent one unit of work."""
    return row.kind in (RowKind.TASK, RowKind.MANUAL_TASK)


def is_add_task_phantom_row(row: Row) -> TypeGuard[AddTaskPhantomRow]:
    return row.kind == RowKind.ADD_TASK_PHANTOM


def is_add_category_phantom_row(row: Row) -> TypeGuard[AddCategoryPhantomRow]:
    return row.kind == RowKind.ADD_CATEGORY_PHANTOM


def is_phantom_row(row: Row) -> bool:
    return row.kind in (RowKind.ADD_TASK_PHANTOM, RowKind.ADD_CATEGORY_PHANTOM)
