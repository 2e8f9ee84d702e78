"""Tests for the status aggregator and sync history."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from fieldsync.adapters.storage import InMemoryStorage, StorageCandidateStore
from fieldsync.application.queue import DurableQueueStore
from fieldsync.application.sync import StatusAggregator, SyncHistory
from fieldsync.core.domain.entities import OperationKind, SyncLogEntry
from fieldsync.core.exceptions import PersistenceError


NOW = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def make_entry(n, status="success"):
    return SyncLogEntry(
        sync_id=f"sync_{n}",
        timestamp=NOW + timedelta(minutes=n),
        trigger="timer",
        status=status,
    )


class TestStatusAggregator:
    """Tests for StatusAggregator."""

    @pytest.fixture
    def storage(self):
        return InMemoryStorage()

    @pytest.fixture
    def queue(self, storage):
        return DurableQueueStore(storage)

    @pytest.fixture
    def candidates(self, storage):
        return StorageCandidateStore(storage)

    @pytest.fixture
    def aggregator(self, queue, candidates, storage):
        return StatusAggregator(queue, candidates, storage=storage, clock=lambda: NOW)

    def test_empty(self, aggregator):
        status = aggregator.compute_status()

        assert status.total_registered == 0
        assert status.pending == 0
        assert status.last_sync is None
        assert status.next_sync is None

    def test_counts(self, aggregator, queue, candidates):
        candidates.record_attendance("C-1")
        candidates.record_attendance("C-2")
        candidates.record_attendance("C-3", present=False)
        candidates.mark_synced("C-1")
        candidates.record_verification("C-2", verified=True)
        queue.enqueue(OperationKind.ATTENDANCE_SYNC, "/a")
        queue.enqueue(OperationKind.VERIFICATION_SYNC, "/v")

        status = aggregator.compute_status()

        assert status.total_registered == 2
        assert status.synced == 1
        assert status.verified == 1
        assert status.pending == 2
        assert status.pending_verification == 1

    def test_next_sync_when_timer_running(self, queue, candidates):
        timer = Mock(is_running=True, interval=60.0)
        aggregator = StatusAggregator(queue, candidates, timer=timer, clock=lambda: NOW)

        assert aggregator.compute_status().next_sync == NOW + timedelta(seconds=60)

    def test_no_next_sync_when_timer_stopped(self, queue, candidates):
        timer = Mock(is_running=False, interval=60.0)
        aggregator = StatusAggregator(queue, candidates, timer=timer)

        assert aggregator.compute_status().next_sync is None

    def test_compute_has_no_side_effects(self, aggregator, storage):
        aggregator.compute_status()
        assert storage.load(StatusAggregator.CACHE_KEY) is None

    def test_refresh_caches_and_restores(self, aggregator, queue, candidates, storage):
        queue.enqueue("k", "/a")
        aggregator.record_sync(NOW)
        aggregator.refresh()

        cold = StatusAggregator(DurableQueueStore(storage), candidates, storage=storage)
        cached = cold.load_cached()

        assert cached.pending == 1
        assert cold.last_sync == NOW

    def test_cache_failure_is_not_fatal(self, queue, candidates):
        storage = Mock()
        storage.save.side_effect = PersistenceError("disk full")
        aggregator = StatusAggregator(queue, candidates, storage=storage)

        assert aggregator.refresh().pending == 0

    def test_load_cached_without_storage(self, queue, candidates):
        assert StatusAggregator(queue, candidates).load_cached() is None


class TestSyncHistory:
    """Tests for SyncHistory."""

    @pytest.fixture
    def storage(self):
        return InMemoryStorage()

    def test_append_and_reload(self, storage):
        history = SyncHistory(storage)
        history.append(make_entry(1))
        history.append(make_entry(2, status="partial"))

        reloaded = SyncHistory(storage)
        assert reloaded.load() == 2
        assert [e.sync_id for e in reloaded.entries()] == ["sync_1", "sync_2"]

    def test_oldest_evicted(self, storage):
        history = SyncHistory(storage, limit=3)
        for n in range(5):
            history.append(make_entry(n))

        assert [e.sync_id for e in history.entries()] == ["sync_2", "sync_3", "sync_4"]
        assert len(storage.load(SyncHistory.STORAGE_KEY)) == 3

    def test_limit_must_be_positive(self, storage):
        with pytest.raises(ValueError):
            SyncHistory(storage, limit=0)

    def test_last(self, storage):
        history = SyncHistory(storage)
        assert history.last() is None

        history.append(make_entry(1, status="success"))
        history.append(make_entry(2, status="failed"))

        assert history.last().sync_id == "sync_2"
        assert history.last(status="success").sync_id == "sync_1"
        assert history.last(status="skipped") is None
