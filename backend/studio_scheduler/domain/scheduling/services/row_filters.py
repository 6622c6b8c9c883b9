"""
Row visibility filters.

Filters drop rows without reordering the survivors. Section and stage headers
stay visible so a collapsed scope can still be expanded. Apply them in the
order sections, stages, categories.
"""

from collections.abc import Collection, Sequence

from ..entities.rows import (
    Row,
    is_add_category_phantom_row,
    is_category_row,
    is_phantom_row,
    is_section_row,
    is_stage_row,
)


def filter_rows_by_expanded_sections(
    rows: Sequence[Row], expanded_section_ids: Collection[str]
) -> list[Row]:
    result: list[Row] = []
    expanded = True
    for row in rows:
        if is_section_row(row):
            expanded = row.section_id in expanded_section_ids
            result.append(row)
        elif expanded:
            result.append(row)
    return result


def filter_rows_by_expanded_stages(
    rows: Sequence[Row], expanded_stage_keys: Collection[str]
) -> list[Row]:
    result: list[Row] = []
    expanded = True
    for row in rows:
        if is_section_row(row):
            expanded = True
            result.append(row)
        elif is_stage_row(row):
            expanded = row.stage_key in expanded_stage_keys
            result.append(row)
        elif expanded:
            result.append(row)
    return result


def filter_rows_by_collapsed_categories(
    rows: Sequence[Row], collapsed_category_row_ids: Collection[str]
) -> list[Row]:
    """Hide the tasks and add-task phantom of collapsed categories; the add-category phantom always stays."""
    result: list[Row] = []
    collapsed = False
    for row in rows:
        if is_section_row(row) or is_stage_row(row):
            collapsed = False
            result.append(row)
        elif is_category_row(row):
            collapsed = row.id in collapsed_category_row_ids
            result.append(row)
        elif is_add_category_phantom_row(row):
            collapsed = False
            result.append(row)
        elif not collapsed:
            result.append(row)
    return result


def strip_phantom_rows(rows: Sequence[Row]) -> list[Row]:
    return [row for row in rows if not is_phantom_row(row)]
