"""
Test fixtures and factories for the scheduling structure engine.

Provides a small photography studio catalog, factories for order items,
scheduled and manual tasks, and a seeded in-memory collaborator.
"""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest

from studio_scheduler.domain.scheduling.entities.catalog import CatalogItem, Category, Section
from studio_scheduler.domain.scheduling.entities.job import JobDetail
from studio_scheduler.domain.scheduling.entities.manual_task import CustomCategory, ManualTask
from studio_scheduler.domain.scheduling.entities.order_item import OrderItem, ScheduledTask
from studio_scheduler.domain.scheduling.services.catalog_index import CatalogIndex
from studio_scheduler.domain.scheduling.value_objects.date_only import DateOnly
from studio_scheduler.infrastructure.adapters.in_memory_gateway import (
    InMemoryStudioSchedulerGateway,
)

TODAY = DateOnly.from_date(date(2026, 3, 15))
STUDIO_ID = "studio-1"
JOB_ID = "job-1"


def fixed_clock() -> datetime:
    return datetime(2026, 3, 15, 23, 30, tzinfo=timezone.utc)


class CatalogFactory:
    """Factory for catalog trees."""

    @staticmethod
    def photography() -> list[Section]:
        """One section "Photography" with a single category "Editing"."""
        return [
            Section(
                id="sec-photo",
                name="Photography",
                order=0,
                categories=[
                    Category(
                        id="cat-editing",
                        name="Editing",
                        order=0,
                        items=[CatalogItem(id="item-retouch", name="Retouch", order=0)],
                    )
                ],
            )
        ]

    @staticmethod
    def studio() -> list[Section]:
        """
        Two sections listed out of display order.

        Display order: Photography (order 0) then Video (order 1). Photography
        holds Shooting (order 0) and Editing (order 1); Video holds Recording
        (order None).
        """
        return [
            Section(
                id="sec-video",
                name="Video",
                order=1,
                categories=[
                    Category(
                        id="cat-recording",
                        name="Recording",
                        order=None,
                        items=[CatalogItem(id="item-drone", name="Drone", order=None)],
                    )
                ],
            ),
            Section(
                id="sec-photo",
                name="Photography",
                order=0,
                categories=[
                    Category(
                        id="cat-editing",
                        name="Editing",
                        order=1,
                        items=[
                            CatalogItem(id="item-album", name="Album", order=2),
                            CatalogItem(id="item-retouch", name="Retouch", order=1),
                        ],
                    ),
                    Category(
                        id="cat-shooting",
                        name="Shooting",
                        order=0,
                        items=[CatalogItem(id="item-session", name="Session", order=0)],
                    ),
                ],
            ),
        ]


class TaskFactory:
    """Factory for order items, scheduled tasks and manual tasks."""

    @staticmethod
    def scheduled(
        task_id: str | None = None,
        category: str | None = "PRODUCTION",
        catalog_category_id: str | None = None,
        start: DateOnly | None = None,
        end: DateOnly | None = None,
        **kwargs,
    ) -> ScheduledTask:
        return ScheduledTask(
            id=task_id or f"task-{uuid4().hex[:8]}",
            category=category,
            catalog_category_id=catalog_category_id,
            start_date=start,
            end_date=end,
            **kwargs,
        )

    @staticmethod
    def order_item(
        order_item_id: str | None = None,
        catalog_category_id: str | None = None,
        name: str | None = None,
        scheduled_task: ScheduledTask | None = None,
        **kwargs,
    ) -> OrderItem:
        order_item_id = order_item_id or f"oi-{uuid4().hex[:8]}"
        return OrderItem(
            id=order_item_id,
            catalog_category_id=catalog_category_id,
            name=name or order_item_id,
            scheduled_task=scheduled_task,
            **kwargs,
        )

    @staticmethod
    def scheduled_item(
        order_item_id: str,
        catalog_category_id: str | None = None,
        category: str | None = "PRODUCTION",
        **task_kwargs,
    ) -> OrderItem:
        """Order item with a linked task whose id is ``task-{order_item_id}``."""
        return TaskFactory.order_item(
            order_item_id=order_item_id,
            catalog_category_id=catalog_category_id,
            scheduled_task=TaskFactory.scheduled(
                task_id=f"task-{order_item_id}", category=category, **task_kwargs
            ),
        )

    @staticmethod
    def manual(
        task_id: str | None = None,
        name: str | None = None,
        category: str | None = "PRODUCTION",
        **kwargs,
    ) -> ManualTask:
        task_id = task_id or f"mt-{uuid4().hex[:8]}"
        return ManualTask(id=task_id, name=name or task_id, category=category, **kwargs)


def items_by_id(*items: OrderItem) -> dict[str, OrderItem]:
    return {item.id: item for item in items}


@pytest.fixture
def today() -> DateOnly:
    return TODAY


@pytest.fixture
def yesterday() -> DateOnly:
    return TODAY.add_days(-1)


@pytest.fixture
def photography_catalog() -> list[Section]:
    return CatalogFactory.photography()


@pytest.fixture
def studio_catalog() -> list[Section]:
    return CatalogFactory.studio()


@pytest.fixture
def studio_index(studio_catalog) -> CatalogIndex:
    return CatalogIndex(studio_catalog)


@pytest.fixture
def custom_category() -> CustomCategory:
    return CustomCategory(id="custom-props", name="Props")


@pytest.fixture
def photography_job(yesterday) -> JobDetail:
    """Item A scheduled in Editing and overdue; item B unclassified and unscheduled."""
    item_a = TaskFactory.scheduled_item(
        "A",
        catalog_category_id="cat-editing",
        category="PRODUCTION",
        start=yesterday.add_days(-3),
        end=yesterday,
        progress_percent=50,
        assigned_to="ana",
    )
    item_b = TaskFactory.order_item("B")
    return JobDetail(id=JOB_ID, name="Wedding", order_items=[item_a, item_b])


@pytest.fixture
def gateway(photography_catalog) -> InMemoryStudioSchedulerGateway:
    """Collaborator with one studio, one job and two approved order items."""
    gateway = InMemoryStudioSchedulerGateway(
        approved_statuses=["approved"], clock=fixed_clock
    )
    gateway.add_studio(STUDIO_ID, photography_catalog)
    gateway.add_job(STUDIO_ID, JOB_ID, name="Wedding", event_date=TODAY.add_days(10))
    gateway.add_order_item(
        STUDIO_ID,
        JOB_ID,
        TaskFactory.order_item("A", catalog_category_id="cat-editing", duration_days=2),
    )
    gateway.add_order_item(STUDIO_ID, JOB_ID, TaskFactory.order_item("B"))
    return gateway
