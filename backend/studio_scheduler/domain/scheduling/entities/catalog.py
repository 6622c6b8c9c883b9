"""
Catalog Entities

Read-only three-level service catalog: sections own categories, categories own
items. Every level carries a nullable display ``order``; siblings sort by
non-null order ascending, nulls last, ties broken by list position.
"""

from pydantic import Field

from ...shared.base import Entity


class CatalogItem(Entity):
    """A single service offered by the studio."""

    name: str
    order: int | None = None


class Category(Entity):
    """Catalog category; belongs to exactly one section."""

    name: str
    order: int | None = None
    items: list[CatalogItem] = Field(default_factory=list)


class Section(Entity):
    """Top level of the catalog tree."""

    name: str
    order: int | None = None
    categories: list[Category] = Field(default_factory=list)
