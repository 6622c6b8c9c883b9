"""
TaskNormalizer Domain Service

Converts order-item schedule entries and manual tasks into ``NormalizedTask``
values with a resolved stage and date-only fields.
"""

from collections.abc import Iterable

from ..entities.job import JobDetail
from ..entities.manual_task import ManualTask
from ..entities.normalized_task import NormalizedTask
from ..entities.order_item import OrderItem
from ..value_objects.enums import Stage, TaskCategory, TaskSource


def normalize_stage(category: TaskCategory | str | None) -> Stage | None:
    """Map a stored task category onto a stage; None means pending classification."""
    return Stage.from_category(category)


def normalize_order_item(item: OrderItem) -> NormalizedTask:
    task = item.scheduled_task
    if task is None:
        return NormalizedTask(
            id=item.id,
            source=TaskSource.ORDER_ITEM,
            source_id=item.id,
            name=item.display_name,
            scheduled=False,
            category=None,
            catalog_category_id=item.catalog_category_id,
        )
    return NormalizedTask(
        id=task.id,
        source=TaskSource.ORDER_ITEM,
        source_id=item.id,
        name=item.display_name,
        scheduled=True,
        category=task.category,
        stage=normalize_stage(task.category),
        catalog_category_id=item.effective_catalog_category_id,
        status=task.status,
        progress_percent=task.progress_percent,
        start_date=task.start_date,
        end_date=task.end_date,
        assigned_to=task.assigned_to,
        parent_id=task.parent_id,
        duration_days=task.duration_days,
        is_completed=task.is_completed,
    )


def normalize_manual_task(task: ManualTask) -> NormalizedTask:
    return NormalizedTask(
        id=task.id,
        source=TaskSource.MANUAL,
        source_id=task.id,
        name=task.name,
        scheduled=True,
        category=task.category,
        stage=normalize_stage(task.category),
        catalog_category_id=task.catalog_category_id,
        custom_category_id=task.custom_category_id,
        section_hint=task.section_id,
        status=task.status,
        progress_percent=task.progress_percent,
        start_date=task.start_date,
        end_date=task.end_date,
        assigned_to=task.assigned_to,
        parent_id=task.parent_id,
        duration_days=task.duration_days,
        is_completed=task.is_completed,
    )


def normalize_tasks(
    order_items: Iterable[OrderItem], manual_tasks: Iterable[ManualTask]
) -> list[NormalizedTask]:
    """Order-item tasks first (input order), then manual tasks (input order)."""
    normalized = [normalize_order_item(item) for item in order_items]
    normalized.extend(normalize_manual_task(task) for task in manual_tasks)
    return normalized


def normalize_job(job: JobDetail) -> list[NormalizedTask]:
    return normalize_tasks(job.order_items, job.manual_tasks)
