"""
CatalogIndex Domain Service

Flattens the section/category/item tree into lookup tables so that row
building and canonical ordering can resolve any id in constant time.
"""

from collections.abc import Iterable, Sequence
from typing import TypeVar

from ..entities.catalog import CatalogItem, Category, Section

_T = TypeVar("_T", Section, Category, CatalogItem)


def sort_siblings(nodes: Iterable[_T]) -> list[_T]:
    """
    Order catalog siblings by display order.

    Non-null orders ascend, null orders come after every ordered sibling, and
    equal (or null) orders keep their list position.
    """
    indexed = list(enumerate(nodes))
    indexed.sort(key=lambda pair: (pair[1].order is None, pair[1].order or 0, pair[0]))
    return [node for _, node in indexed]


class CatalogIndex:
    """
    Read-only index over one catalog snapshot.

    Ranks are positions after sibling sorting: a section rank is global, a
    category rank is its position inside its section and an item rank is its
    position inside its category.
    """

    def __init__(self, sections: Sequence[Section] | None = None) -> None:
        self._sections: list[Section] = sort_siblings(sections or [])
        self._section_by_id: dict[str, Section] = {}
        self._section_rank: dict[str, int] = {}
        self._category_by_id: dict[str, Category] = {}
        self._category_rank: dict[str, int] = {}
        self._section_of_category: dict[str, str] = {}
        self._categories_by_section: dict[str, list[Category]] = {}
        self._item_rank: dict[str, int] = {}
        self._category_of_item: dict[str, str] = {}

        for section_rank, section in enumerate(self._sections):
            if section.id in self._section_by_id:
                continue
            self._section_by_id[section.id] = section
            self._section_rank[section.id] = section_rank
            ordered_categories: list[Category] = []
            for category in sort_siblings(section.categories):
                # First occurrence wins when a category id is repeated
                if category.id in self._category_by_id:
                    continue
                self._category_by_id[category.id] = category
                self._category_rank[category.id] = len(ordered_categories)
                self._section_of_category[category.id] = section.id
                ordered_categories.append(category)
                for item_rank, item in enumerate(sort_siblings(category.items)):
                    if item.id not in self._item_rank:
                        self._item_rank[item.id] = item_rank
                        self._category_of_item[item.id] = category.id
            self._categories_by_section[section.id] = ordered_categories

    @property
    def sections(self) -> list[Section]:
        """Sections in display order."""
        return list(self._sections)

    @property
    def is_empty(self) -> bool:
        return not self._sections

    def section(self, section_id: str | None) -> Section | None:
        if section_id is None:
            return None
        return self._section_by_id.get(section_id)

    def category(self, category_id: str | None) -> Category | None:
        if category_id is None:
            return None
        return self._category_by_id.get(category_id)

    def has_section(self, section_id: str | None) -> bool:
        return section_id is not None and section_id in self._section_by_id

    def has_category(self, category_id: str | None) -> bool:
        return category_id is not None and category_id in self._category_by_id

    def section_for_category(self, category_id: str | None) -> Section | None:
        if category_id is None:
            return None
        section_id = self._section_of_category.get(category_id)
        return self._section_by_id.get(section_id) if section_id else None

    def categories_for_section(self, section_id: str) -> list[Category]:
        return list(self._categories_by_section.get(section_id, []))

    def section_rank(self, section_id: str | None) -> int | None:
        return self._section_rank.get(section_id) if section_id is not None else None

    def category_rank(self, category_id: str | None) -> int | None:
        return self._category_rank.get(category_id) if category_id is not None else None

    def item_rank(self, item_id: str | None) -> int | None:
        return self._item_rank.get(item_id) if item_id is not None else None

    def category_sort_key(self, category_id: str | None) -> tuple[int, int] | None:
        """Global (section rank, category rank) position, or None if unknown."""
        if category_id is None or category_id not in self._category_by_id:
            return None
        section_id = self._section_of_category[category_id]
        return self._section_rank[section_id], self._category_rank[category_id]
