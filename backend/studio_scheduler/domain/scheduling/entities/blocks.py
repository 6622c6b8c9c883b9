"""
Row Blocks

Nested view over the flat row list. Blocks only hold references to the rows
they own; ``rows`` on each block reproduces its slice of the flat list.
"""

from pydantic import Field

from ...shared.base import ValueObject
from .rows import CategoryRow, Row, SectionRow, StageRow, is_leaf_task_row


def _count_tasks(rows: list[Row]) -> int:
    return sum(1 for row in rows if is_leaf_task_row(row))


class StageSegment(ValueObject):
    """A category row and the run of rows after it; ``category_row`` is None for headerless leading rows."""

    category_row: CategoryRow | None = None
    rows: list[Row] = Field(default_factory=list)

    @property
    def task_count(self) -> int:
        return _count_tasks(self.rows)

    @property
    def all_rows(self) -> list[Row]:
        if self.category_row is None:
            return list(self.rows)
        return [self.category_row, *self.rows]


class StageBlock(ValueObject):
    stage_row: StageRow
    content_rows: list[Row] = Field(default_factory=list)

    @property
    def task_count(self) -> int:
        return _count_tasks(self.content_rows)

    @property
    def rows(self) -> list[Row]:
        return [self.stage_row, *self.content_rows]


class SectionBlock(ValueObject):
    """
    A section row with its stage blocks.

    ``section_row`` is None only for a block holding rows that precede the first
    section row. ``leading_rows`` holds rows between the section row and its
    first stage row.
    """

    section_row: SectionRow | None = None
    leading_rows: list[Row] = Field(default_factory=list)
    stage_blocks: list[StageBlock] = Field(default_factory=list)

    @property
    def section_id(self) -> str | None:
        return self.section_row.section_id if self.section_row is not None else None

    @property
    def task_count(self) -> int:
        return _count_tasks(self.leading_rows) + sum(b.task_count for b in self.stage_blocks)

    @property
    def rows(self) -> list[Row]:
        flat: list[Row] = [] if self.section_row is None else [self.section_row]
        flat.extend(self.leading_rows)
        for block in self.stage_blocks:
            flat.extend(block.rows)
        return flat
