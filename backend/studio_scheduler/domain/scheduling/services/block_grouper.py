"""
BlockGrouper Domain Service

Re-nests the flat row list into section and stage blocks, and splits a stage's
content rows into category segments. Grouping is a lossless re-partition:
``flatten_blocks(group_rows_into_blocks(rows)) == rows`` for any input.
"""

from collections.abc import Sequence

from ..entities.blocks import SectionBlock, StageBlock, StageSegment
from ..entities.rows import (
    CategoryRow,
    Row,
    SectionRow,
    StageRow,
    is_category_row,
    is_leaf_task_row,
    is_section_row,
    is_stage_row,
)


def group_rows_into_blocks(rows: Sequence[Row]) -> list[SectionBlock]:
    blocks: list[SectionBlock] = []
    section_row: SectionRow | None = None
    leading: list[Row] = []
    stage_blocks: list[StageBlock] = []
    stage_row: StageRow | None = None
    content: list[Row] = []
    started = False

    def close_stage() -> None:
        nonlocal stage_row, content
        if stage_row is not None:
            stage_blocks.append(StageBlock(stage_row=stage_row, content_rows=content))
        stage_row, content = None, []

    def close_section() -> None:
        nonlocal section_row, leading, stage_blocks
        close_stage()
        if started:
            blocks.append(
                SectionBlock(section_row=section_row, leading_rows=leading, stage_blocks=stage_blocks)
            )
        section_row, leading, stage_blocks = None, [], []

    for row in rows:
        if is_section_row(row):
            close_section()
            section_row = row
            started = True
        elif is_stage_row(row):
            close_stage()
            stage_row = row
            started = True
        elif stage_row is not None:
            content.append(row)
        else:
            leading.append(row)
            started = True
    close_section()
    return blocks


def get_stage_segments(content_rows: Sequence[Row]) -> list[StageSegment]:
    """
    Partition a stage block's content rows into category segments.

    Each category row starts a segment holding the rows after it up to the next
    category row. Rows before the first category row form one leading segment
    with ``category_row=None``.
    """
    segments: list[StageSegment] = []
    category_row: CategoryRow | None = None
    run: list[Row] = []
    has_leading = False

    for row in content_rows:
        if is_category_row(row):
            if category_row is not None or has_leading:
                segments.append(StageSegment(category_row=category_row, rows=run))
            category_row, run, has_leading = row, [], False
        else:
            if category_row is None:
                has_leading = True
            run.append(row)

    if category_row is not None or has_leading:
        segments.append(StageSegment(category_row=category_row, rows=run))
    return segments


def flatten_blocks(blocks: Sequence[SectionBlock]) -> list[Row]:
    flat: list[Row] = []
    for block in blocks:
        flat.extend(block.rows)
    return flat


def flatten_segments(segments: Sequence[StageSegment]) -> list[Row]:
    flat: list[Row] = []
    for segment in segments:
        flat.extend(segment.all_rows)
    return flat


def count_tasks(rows: Sequence[Row]) -> int:
    return sum(1 for row in rows if is_leaf_task_row(row))


def section_task_counts(rows: Sequence[Row]) -> dict[str, int]:
    """Leaf task rows per section id, zero included for every emitted section."""
    counts: dict[str, int] = {}
    current: str | None = None
    for row in rows:
        if is_section_row(row):
            current = row.section_id
            counts.setdefault(current, 0)
        elif is_leaf_task_row(row):
            section_id = current if current is not None else row.section_id
            counts[section_id] = counts.get(section_id, 0) + 1
    return counts


def stage_task_counts(rows: Sequence[Row]) -> dict[str, int]:
    """Leaf task rows per stage key, zero included for every emitted stage."""
    counts: dict[str, int] = {}
    for row in rows:
        if is_stage_row(row):
            counts.setdefault(row.stage_key, 0)
        elif is_leaf_task_row(row):
            counts[row.stage_key] = counts.get(row.stage_key, 0) + 1
    return counts
