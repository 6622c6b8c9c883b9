"""
Unit tests for ClassificationTracker.
"""

from studio_scheduler.domain.scheduling.services.catalog_index import CatalogIndex
from studio_scheduler.domain.scheduling.services.classification_tracker import ClassificationTracker
from studio_scheduler.domain.scheduling.services.row_builder import build_scheduler_rows
from studio_scheduler.domain.scheduling.value_objects.stage_key import SIN_CATEGORIA_SECTION_ID

from ..fixtures import TaskFactory, items_by_id


class TestNeedsAlert:
    def test_unassigned_category(self, studio_index):
        tracker = ClassificationTracker(studio_index)
        task = TaskFactory.scheduled(category="UNASSIGNED", catalog_category_id="cat-editing")
        assert tracker.needs_alert(task)

    def test_missing_or_unknown_catalog_category(self, studio_index):
        tracker = ClassificationTracker(studio_index)
        assert tracker.needs_alert(TaskFactory.scheduled(catalog_category_id=None))
        assert tracker.needs_alert(TaskFactory.scheduled(catalog_category_id="deleted"))

    def test_classified(self, studio_index):
        tracker = ClassificationTracker(studio_index)
        assert not tracker.needs_alert(TaskFactory.scheduled(category="REVIEW", catalog_category_id="cat-editing"))

    def test_without_catalog_any_category_id_resolves(self):
        tracker = ClassificationTracker()
        assert not tracker.needs_alert(TaskFactory.scheduled(catalog_category_id="anything"))
        assert tracker.needs_alert(TaskFactory.scheduled(catalog_category_id=""))

    def test_unclassified_tasks(self, studio_index):
        tasks = [
            TaskFactory.scheduled("ok", catalog_category_id="cat-editing"),
            TaskFactory.scheduled("bad", category=None, catalog_category_id="cat-editing"),
        ]
        assert [t.id for t in ClassificationTracker(studio_index).unclassified_tasks(tasks)] == ["bad"]


class TestSectionAlerts:
    def build(self, catalog, *items):
        return build_scheduler_rows(catalog, items_by_id(*items))

    def test_sentinel_section_always_alerts(self, studio_index):
        tracker = ClassificationTracker(studio_index)
        assert tracker.is_alert_section(SIN_CATEGORIA_SECTION_ID)
        assert not tracker.is_alert_section("sec-photo")

    def test_summary(self, studio_catalog):
        index = CatalogIndex(studio_catalog)
        rows = self.build(
            index,
            TaskFactory.scheduled_item("ok", "cat-editing"),
            TaskFactory.order_item("loose"),
            TaskFactory.scheduled_item("pending", "cat-recording", category="UNASSIGNED"),
        )
        summary = ClassificationTracker(index).classification_summary(rows)

        assert summary.total_tasks == 3
        assert summary.unclassified_count == 2
        assert set(summary.unclassified_task_ids) == {"loose", "task-pending"}
        assert summary.alert_section_ids == [SIN_CATEGORIA_SECTION_ID]
        assert summary.sentinel_task_count == 2
        assert not summary.fully_classified

    def test_no_classified_task_in_sentinel(self, studio_catalog):
        index = CatalogIndex(studio_catalog)
        rows = self.build(
            index,
            TaskFactory.scheduled_item("ok", "cat-editing"),
            TaskFactory.scheduled_item("ghost", "deleted"),
            TaskFactory.order_item("loose", "cat-editing"),
        )
        assert ClassificationTracker(index).classified_in_sentinel(rows) == []

    def test_fully_classified(self, studio_catalog):
        index = CatalogIndex(studio_catalog)
        rows = self.build(index, TaskFactory.scheduled_item("ok", "cat-editing"))
        summary = ClassificationTracker(index).classification_summary(rows)
        assert summary.fully_classified
        assert summary.alert_section_ids == []
