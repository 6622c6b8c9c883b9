"""
CanonicalOrderer Domain Service

Orders approved order items the way the catalog orders its services:
section, then category within the section, then item within the category.
"""

from collections.abc import Sequence

from ..entities.order_item import OrderItem
from .catalog_index import CatalogIndex


class CanonicalOrderer:
    """
    Deterministic catalog ordering for order items.

    Items whose category is unknown to the catalog keep their relative input
    order and follow every catalog-matched item. Every remaining tie is broken
    by input position, so the result is a total order.
    """

    def __init__(self, index: CatalogIndex) -> None:
        self.index = index

    def sort_key(self, item: OrderItem, position: int) -> tuple[int, ...]:
        category_key = self.index.category_sort_key(item.effective_catalog_category_id)
        if category_key is None:
            return (1, 0, 0, 0, 0, position)
        item_rank = self.index.item_rank(item.item_id)
        return (
            0,
            *category_key,
            int(item_rank is None),
            item_rank if item_rank is not None else 0,
            position,
        )

    def order(self, items: Sequence[OrderItem]) -> list[OrderItem]:
        """Return the items in canonical order; the input is not modified."""
        keyed = [(self.sort_key(item, position), item) for position, item in enumerate(items)]
        keyed.sort(key=lambda pair: pair[0])
        return [item for _, item in keyed]

    def items_by_id(self, items: Sequence[OrderItem]) -> dict[str, OrderItem]:
        """Canonically ordered mapping from order item id to order item."""
        ordered: dict[str, OrderItem] = {}
        for item in self.order(items):
            ordered.setdefault(item.id, item)
        return ordered


def order_items_canonically(items: Sequence[OrderItem], index: CatalogIndex) -> list[OrderItem]:
    return CanonicalOrderer(index).order(items)
