"""
Tests for StructureCache and StructureChangeNotifier.
"""

import typing
from collections.abc import Set

import pytest

from studio_scheduler.domain.scheduling.events import StructureChanged
from studio_scheduler.infrastructure.cache.structure_cache import StructureCache
from studio_scheduler.infrastructure.events.structure_events import StructureChangeNotifier


class TestStructureCache:
    """Test identity-keyed memoization."""

    @pytest.fixture
    def cache(self):
        return StructureCache(max_entries=2)

    def test_hit_requires_same_objects_and_token(self, cache):
        snapshot = ["rows"]
        cache.set("structure", (snapshot,), "value", token=1)

        assert cache.get("structure", (snapshot,), token=1) == "value"
        assert cache.get("structure", (["rows"],), token=1) is None
        assert cache.get("structure", (snapshot,), token=2) is None
        assert cache.get("other", (snapshot,), token=1) is None

    def test_lru_eviction(self, cache):
        a, b, c = ["a"], ["b"], ["c"]
        cache.set("n", (a,), 1)
        cache.set("n", (b,), 2)
        cache.get("n", (a,))
        cache.set("n", (c,), 3)

        assert len(cache) == 2
        assert cache.get("n", (b,)) is None
        assert cache.get("n", (a,)) == 1
        assert cache.get("n", (c,)) == 3

    def test_invalidate_by_tags(self):
        cache = StructureCache()
        one, two = ["one"], ["two"]
        cache.set("n", (one,), 1, tags={"job:1"})
        cache.set("n", (two,), 2, tags={"job:2"})

        assert cache.invalidate_by_tags({"job:1", "job:9"}) == 1
        assert cache.get("n", (one,)) is None
        assert cache.get("n", (two,)) == 2

    def test_invalidate_by_frozen_tags(self):
        cache = StructureCache()
        value = ["v"]
        cache.set("n", (value,), 1, tags={"job:1"})

        assert cache.invalidate_by_tags(frozenset({"job:1"})) == 1
        assert len(cache) == 0

    def test_method_annotations_resolve(self):
        hints = typing.get_type_hints(StructureCache.invalidate_by_tags)

        assert hints["tags"] == Set[str]

    def test_stats(self, cache):
        value = ["v"]
        cache.set("n", (value,), "x")
        cache.get("n", (value,))
        cache.get("n", (["miss"],))

        stats = cache.get_stats()
        assert stats["entries"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5

        cache.clear()
        assert len(cache) == 0


class TestStructureChangeNotifier:
    """Test invalidation tokens and listener delivery."""

    def event(self, job_id="job-1"):
        return StructureChanged(studio_id="studio-1", job_id=job_id, reason="test")

    def test_notify_bumps_only_that_job(self):
        notifier = StructureChangeNotifier()

        assert notifier.token("studio-1", "job-1") == 0
        assert notifier.notify(self.event()) == 1
        assert notifier.notify(self.event()) == 2
        assert notifier.token("studio-1", "job-1") == 2
        assert notifier.token("studio-1", "job-2") == 0

    def test_listener_sees_new_token(self):
        notifier = StructureChangeNotifier()
        seen = []
        notifier.subscribe(lambda event: seen.append(notifier.token(event.studio_id, event.job_id)))

        notifier.notify(self.event())

        assert seen == [1]

    def test_unsubscribe(self):
        notifier = StructureChangeNotifier()
        received = []
        unsubscribe = notifier.subscribe(received.append)

        notifier.notify(self.event())
        unsubscribe()
        notifier.notify(self.event())

        assert len(received) == 1

    def test_failing_listener_does_not_block_others(self):
        notifier = StructureChangeNotifier()
        received = []

        def broken(event):
            raise RuntimeError("listener failed")

        notifier.subscribe(broken)
        notifier.subscribe(received.append)

        assert notifier.notify(self.event()) == 1
        assert len(received) == 1

    def test_history_filters_by_job(self):
        notifier = StructureChangeNotifier()
        notifier.notify(self.event("job-1"))
        notifier.notify(self.event("job-2"))

        assert len(notifier.history()) == 2
        assert [event.job_id for event in notifier.history("job-2")] == ["job-2"]
