"""
RowBuilder Domain Service

Builds the flat, ordered row list for one job's schedule:

    Section -> Stage -> Category -> Task (+ add-task phantom) ... (+ add-category phantom)

The builder is a pure function of its inputs. Missing or inconsistent
classification data never raises; such tasks are placed in the uncategorized
bucket of their stage or, when they cannot be placed in a catalog section, in
the ``SIN_CATEGORIA`` sentinel section.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import NamedTuple

from pydantic import Field

from ....core.observability import get_logger
from ...shared.base import ValueObject
from ..entities.catalog import Section
from ..entities.manual_task import CustomCategory, ManualTask
from ..entities.normalized_task import NormalizedTask
from ..entities.order_item import OrderItem
from ..entities.rows import (
    AddCategoryPhantomRow,
    AddTaskPhantomRow,
    CategoryRow,
    ManualTaskRow,
    Row,
    SectionRow,
    StageRow,
    TaskRow,
)
from ..value_objects.enums import STAGE_ORDER, CategoryKind, Stage
from ..value_objects.stage_key import SIN_CATEGORIA_SECTION_ID, StageKey
from .catalog_index import CatalogIndex
from .task_normalizer import normalize_manual_task, normalize_order_item

logger = get_logger(__name__)

UNCATEGORIZED_BUCKET_ID = "uncategorized"


class RowBuildOptions(ValueObject):
    """Caller-controlled knobs for row building."""

    include_add_task_phantoms: bool = True
    include_add_category_phantoms: bool = True
    active_section_ids: frozenset[str] | None = None
    category_order_by_stage: dict[str, list[str]] = Field(default_factory=dict)
    uncategorized_section_name: str = "Sin Categoría"
    uncategorized_category_label: str = "Sin categoría"


class _Placement(NamedTuple):
    section_id: str
    stage: Stage
    kind: CategoryKind
    category_id: str | None


class _Entry(NamedTuple):
    task: NormalizedTask
    order_item: OrderItem | None = None
    manual_task: ManualTask | None = None


class _Group(NamedTuple):
    kind: CategoryKind
    category_id: str | None
    name: str
    entries: list[_Entry]


def category_row_id(stage_key: str, category_id: str | None) -> str:
    return f"{stage_key}-cat-{category_id or UNCATEGORIZED_BUCKET_ID}"


def add_task_phantom_id(stage_key: str, category_id: str | None) -> str:
    return f"{category_row_id(stage_key, category_id)}-add"


def add_category_phantom_id(stage_key: str) -> str:
    return f"{stage_key}-add-cat"


def manual_task_row_id(task_id: str) -> str:
    return f"manual-{task_id}"


def order_with_hierarchy(entries: Sequence[_Entry]) -> list[tuple[_Entry, int]]:
    """
    Place sub-tasks right after their parent, depth first.

    Roots keep their relative order. Entries whose parent is not in ``entries``
    follow all roots, and anything left unvisited (parent cycles) is appended in
    input order. Returns ``(entry, depth)`` pairs covering every entry once.
    """
    ids = {entry.task.id for entry in entries}
    children: dict[str, list[int]] = {}
    roots: list[int] = []
    orphans: list[int] = []
    for position, entry in enumerate(entries):
        parent_id = entry.task.parent_id if entry.manual_task is not None else None
        if parent_id is None or parent_id == entry.task.id:
            roots.append(position)
        elif parent_id in ids:
            children.setdefault(parent_id, []).append(position)
        else:
            orphans.append(position)

    ordered: list[tuple[_Entry, int]] = []
    visited: set[int] = set()

    def visit(start: int) -> None:
        stack = [(start, 0)]
        while stack:
            position, depth = stack.pop()
            if position in visited:
                continue
            visited.add(position)
            ordered.append((entries[position], depth))
            for child in reversed(children.get(entries[position].task.id, [])):
                stack.append((child, depth + 1))

    for position in (*roots, *orphans, *range(len(entries))):
        if position not in visited:
            visit(position)
    return ordered


class SchedulerRowBuilder:
    """Resolves every task to a (section, stage, category) placement and emits rows."""

    def __init__(
        self,
        catalog: Sequence[Section] | CatalogIndex | None,
        known_stage_keys: Iterable[str | StageKey] = (),
        custom_categories: Mapping[str, Sequence[CustomCategory]]
        | Mapping[StageKey, Sequence[CustomCategory]]
        | None = None,
        options: RowBuildOptions | None = None,
    ) -> None:
        self.index = catalog if isinstance(catalog, CatalogIndex) else CatalogIndex(catalog)
        self.options = options or RowBuildOptions()

        self.known_keys: set[str] = set()
        for key in known_stage_keys:
            parsed = StageKey.parse(key)
            if parsed is not None:
                self.known_keys.add(str(parsed))

        self.custom: dict[str, list[CustomCategory]] = {}
        self._custom_home: dict[tuple[str, Stage], str] = {}
        for raw_key, categories in (custom_categories or {}).items():
            parsed = StageKey.parse(raw_key)
            if parsed is None:
                continue
            bucket = self.custom.setdefault(str(parsed), [])
            seen = {category.id for category in bucket}
            for category in categories:
                if category.id in seen:
                    continue
                seen.add(category.id)
                bucket.append(category)
                self._custom_home.setdefault((category.id, parsed.stage), parsed.section_id)

    def _unclassified(self) -> _Placement:
        return _Placement(SIN_CATEGORIA_SECTION_ID, Stage.PLANNING, CategoryKind.UNCATEGORIZED, None)

    def _is_custom_in_scope(self, custom_category_id: str | None, stage_key: str) -> bool:
        if not custom_category_id:
            return False
        return any(c.id == custom_category_id for c in self.custom.get(stage_key, ()))

    def place_order_item(self, task: NormalizedTask) -> _Placement:
        if task.stage is None:
            return self._unclassified()
        section = self.index.section_for_category(task.catalog_category_id)
        if section is None:
            return _Placement(SIN_CATEGORIA_SECTION_ID, task.stage, CategoryKind.UNCATEGORIZED, None)
        return _Placement(section.id, task.stage, CategoryKind.CATALOG, task.catalog_category_id)

    def place_manual_task(self, task: NormalizedTask) -> _Placement:
        stage = task.stage
        if stage is None:
            return self._unclassified()

        catalog_section = self.index.section_for_category(task.catalog_category_id)
        if catalog_section is not None:
            section_id = catalog_section.id
        elif task.custom_category_id and (task.custom_category_id, stage) in self._custom_home:
            section_id = self._custom_home[(task.custom_category_id, stage)]
        elif self.index.has_section(task.section_hint):
            section_id = task.section_hint  # type: ignore[assignment]
        else:
            section_id = SIN_CATEGORIA_SECTION_ID

        stage_key = str(StageKey(section_id=section_id, stage=stage))
        if self._is_custom_in_scope(task.custom_category_id, stage_key):
            return _Placement(section_id, stage, CategoryKind.CUSTOM, task.custom_category_id)
        if catalog_section is not None and catalog_section.id == section_id:
            return _Placement(section_id, stage, CategoryKind.CATALOG, task.catalog_category_id)
        return _Placement(section_id, stage, CategoryKind.UNCATEGORIZED, None)

    def _place_manual_tasks(
        self, manual: list[NormalizedTask], placed: dict[str, _Placement]
    ) -> list[_Placement]:
        """
        Resolve manual tasks.

        A sub-task keeps its own placement when it resolves to a catalog or
        custom category. Otherwise it follows its parent, unless that would
        move it from a real section into ``SIN_CATEGORIA``.
        """
        by_id: dict[str, NormalizedTask] = {}
        for task in manual:
            by_id.setdefault(task.id, task)

        visiting: set[str] = set()

        def resolve(task: NormalizedTask) -> _Placement:
            if task.id in placed:
                return placed[task.id]
            placement = self.place_manual_task(task)
            parent_id = task.parent_id
            can_inherit = (
                placement.kind == CategoryKind.UNCATEGORIZED
                and parent_id is not None
                and parent_id != task.id
                and parent_id not in visiting
                and (parent_id in placed or parent_id in by_id)
            )
            if can_inherit:
                visiting.add(task.id)
                parent = by_id.get(parent_id)  # type: ignore[arg-type]
                inherited = placed[parent_id] if parent is None else resolve(parent)  # type: ignore[index]
                visiting.discard(task.id)
                if not (
                    inherited.section_id == SIN_CATEGORIA_SECTION_ID
                    and placement.section_id != SIN_CATEGORIA_SECTION_ID
                ):
                    placement = inherited
            placed[task.id] = placement
            return placement

        return [placed.get(task.id) or resolve(task) for task in manual]

    def _section_order(self) -> list[str]:
        catalog_ids = [section.id for section in self.index.sections]
        active = self.options.active_section_ids
        if active is not None:
            promoted = set(active)
            promoted.update(StageKey.parse(key).section_id for key in self.known_keys)  # type: ignore[union-attr]
            promoted.update(StageKey.parse(key).section_id for key in self.custom)  # type: ignore[union-attr]
            first = [sid for sid in catalog_ids if sid in promoted]
            catalog_ids = first + [sid for sid in catalog_ids if sid not in promoted]
        return [*catalog_ids, SIN_CATEGORIA_SECTION_ID]

    def _category_groups(
        self, stage_key: str, buckets: dict[tuple[CategoryKind, str | None], list[_Entry]]
    ) -> list[_Group]:
        catalog_groups: list[tuple[tuple[int, int, int], _Group]] = []
        for position, ((kind, category_id), entries) in enumerate(buckets.items()):
            if kind != CategoryKind.CATALOG:
                continue
            category = self.index.category(category_id)
            rank = self.index.category_rank(category_id)
            catalog_groups.append(
                (
                    (int(rank is None), rank or 0, position),
                    _Group(kind, category_id, category.name if category else str(category_id), entries),
                )
            )
        catalog_groups.sort(key=lambda pair: pair[0])

        groups = [group for _, group in catalog_groups]
        for custom in self.custom.get(stage_key, ()):
            groups.append(
                _Group(
                    CategoryKind.CUSTOM,
                    custom.id,
                    custom.name,
                    buckets.get((CategoryKind.CUSTOM, custom.id), []),
                )
            )

        override = self.options.category_order_by_stage.get(stage_key)
        if override:
            rank_of: dict[str, int] = {}
            for position, category_id in enumerate(override):
                rank_of.setdefault(category_id, position)
            indexed = list(enumerate(groups))
            indexed.sort(
                key=lambda pair: (
                    pair[1].category_id not in rank_of,
                    rank_of.get(pair[1].category_id or "", 0),
                    pair[0],
                )
            )
            groups = [group for _, group in indexed]

        uncategorized = buckets.get((CategoryKind.UNCATEGORIZED, None))
        if uncategorized:
            groups.append(
                _Group(
                    CategoryKind.UNCATEGORIZED,
                    None,
                    self.options.uncategorized_category_label,
                    uncategorized,
                )
            )
        return groups

    def _stage_rows(
        self,
        section_id: str,
        stage: Stage,
        buckets: dict[tuple[CategoryKind, str | None], list[_Entry]],
    ) -> list[Row]:
        stage_key = str(StageKey(section_id=section_id, stage=stage))
        rows: list[Row] = [
            StageRow(
                id=stage_key,
                section_id=section_id,
                stage=stage,
                stage_key=stage_key,
                label=stage.label,
            )
        ]
        scope = {"section_id": section_id, "stage": stage, "stage_key": stage_key}

        for group in self._category_groups(stage_key, buckets):
            rows.append(
                CategoryRow(
                    id=category_row_id(stage_key, group.category_id),
                    category_id=group.category_id,
                    name=group.name,
                    category_kind=group.kind,
                    **scope,
                )
            )
            for entry, depth in order_with_hierarchy(group.entries):
                if entry.manual_task is not None:
                    rows.append(
                        ManualTaskRow(
                            id=manual_task_row_id(entry.task.id),
                            category_id=group.category_id,
                            manual_task=entry.manual_task,
                            task=entry.task,
                            depth=depth,
                            **scope,
                        )
                    )
                else:
                    rows.append(
                        TaskRow(
                            id=entry.task.source_id,
                            category_id=group.category_id,
                            order_item=entry.order_item,
                            task=entry.task,
                            depth=depth,
                            **scope,
                        )
                    )
            if self.options.include_add_task_phantoms:
                rows.append(
                    AddTaskPhantomRow(
                        id=add_task_phantom_id(stage_key, group.category_id),
                        category_id=group.category_id,
                        category_kind=group.kind,
                        **scope,
                    )
                )

        if self.options.include_add_category_phantoms:
            rows.append(AddCategoryPhantomRow(id=add_category_phantom_id(stage_key), **scope))
        return rows

    def build(
        self, items_by_id: Mapping[str, OrderItem], manual_tasks: Sequence[ManualTask] = ()
    ) -> list[Row]:
        buckets: dict[tuple[str, Stage], dict[tuple[CategoryKind, str | None], list[_Entry]]] = {}

        def add(placement: _Placement, entry: _Entry) -> None:
            scope = buckets.setdefault((placement.section_id, placement.stage), {})
            scope.setdefault((placement.kind, placement.category_id), []).append(entry)

        placed: dict[str, _Placement] = {}
        for item in items_by_id.values():
            task = normalize_order_item(item)
            placement = self.place_order_item(task)
            if task.scheduled:
                placed.setdefault(task.id, placement)
            add(placement, _Entry(task=task, order_item=item))

        manual = [normalize_manual_task(task) for task in manual_tasks]
        for task, source, placement in zip(
            manual, manual_tasks, self._place_manual_tasks(manual, placed)
        ):
            add(placement, _Entry(task=task, manual_task=source))

        rows: list[Row] = []
        for section_id in self._section_order():
            section_rows: list[Row] = []
            for stage in STAGE_ORDER:
                stage_key = str(StageKey(section_id=section_id, stage=stage))
                scope = buckets.get((section_id, stage), {})
                if not scope and stage_key not in self.known_keys and not self.custom.get(stage_key):
                    continue
                section_rows.extend(self._stage_rows(section_id, stage, scope))
            if not section_rows:
                continue
            is_sentinel = section_id == SIN_CATEGORIA_SECTION_ID
            section = self.index.section(section_id)
            rows.append(
                SectionRow(
                    id=section_id,
                    section_id=section_id,
                    name=self.options.uncategorized_section_name
                    if is_sentinel
                    else (section.name if section else section_id),
                    is_sentinel=is_sentinel,
                )
            )
            rows.extend(section_rows)

        logger.debug(
            "Scheduler rows built",
            rows=len(rows),
            order_items=len(items_by_id),
            manual_tasks=len(manual_tasks),
        )
        return rows


def build_scheduler_rows(
    catalog: Sequence[Section] | CatalogIndex | None,
    items_by_id: Mapping[str, OrderItem],
    manual_tasks: Sequence[ManualTask] = (),
    known_stage_keys: Iterable[str | StageKey] = (),
    custom_categories: Mapping[str, Sequence[CustomCategory]]
    | Mapping[StageKey, Sequence[CustomCategory]]
    | None = None,
    options: RowBuildOptions | None = None,
) -> list[Row]:
    """
    Build the flat scheduler row list for one job.

    Args:
        catalog: Catalog sections (or a prebuilt index); None means not loaded
        items_by_id: Order items keyed by id, already in canonical order
        manual_tasks: Manual tasks in creation order
        known_stage_keys: Stage keys that always render, even when empty
        custom_categories: Custom categories per stage key
        options: Phantom emission, section activation and category order overrides

    Returns:
        Ordered rows; every order item and manual task appears exactly once
    """
    builder = SchedulerRowBuilder(catalog, known_stage_keys, custom_categories, options)
    return builder.build(items_by_id, manual_tasks)
