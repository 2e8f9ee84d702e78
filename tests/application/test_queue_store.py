"""Tests for the durable queue store."""

import threading
from unittest.mock import patch

import pytest

from fieldsync.adapters.storage import InMemoryStorage, JsonFileStorage
from fieldsync.application.queue import DurableQueueStore
from fieldsync.core.domain.entities import OperationKind
from fieldsync.core.exceptions import PersistenceError


class TestDurableQueueStore:
    """Tests for DurableQueueStore."""

    @pytest.fixture
    def storage(self):
        return InMemoryStorage()

    @pytest.fixture
    def queue(self, storage):
        return DurableQueueStore(storage)

    def test_enqueue_assigns_unique_ids(self, queue):
        ids = {queue.enqueue("attendance-sync", "/a", payload={"n": i}) for i in range(20)}
        assert len(ids) == 20
        assert queue.size() == 20

    def test_fifo_order(self, queue):
        first = queue.enqueue("k", "/1")
        second = queue.enqueue("k", "/2")
        third = queue.enqueue("k", "/3")

        assert [op.id for op in queue.drain_snapshot()] == [first, second, third]

    def test_enqueue_normalizes(self, queue):
        op_id = queue.enqueue(OperationKind.ATTENDANCE_SYNC, "/a", method="post")
        op = queue.get(op_id)

        assert op.kind == "attendance-sync"
        assert op.method == "POST"
        assert op.retry_count == 0

    def test_payload_is_copied(self, queue):
        payload = {"candidate_id": "C-1"}
        op_id = queue.enqueue("k", "/a", payload=payload)
        payload["candidate_id"] = "changed"

        assert queue.get(op_id).payload == {"candidate_id": "C-1"}

    def test_snapshot_is_independent(self, queue):
        op_id = queue.enqueue("k", "/a", payload={"n": 1})
        snapshot = queue.drain_snapshot()

        snapshot[0].payload["n"] = 2
        queue.remove(op_id)

        assert len(snapshot) == 1
        assert queue.size() == 0

    def test_remove_is_idempotent(self, queue):
        op_id = queue.enqueue("k", "/a")

        assert queue.remove(op_id)
        assert not queue.remove(op_id)
        assert not queue.remove("never-existed")
        assert queue.size() == 0

    def test_increment_retry(self, queue):
        op_id = queue.enqueue("k", "/a")

        assert queue.increment_retry(op_id) == 1
        assert queue.increment_retry(op_id) == 2
        assert queue.get(op_id).retry_count == 2

    def test_increment_unknown_is_noop(self, queue):
        queue.enqueue("k", "/a")
        assert queue.increment_retry("missing") is None

    def test_count_by_kind(self, queue):
        queue.enqueue(OperationKind.ATTENDANCE_SYNC, "/a")
        queue.enqueue(OperationKind.VERIFICATION_SYNC, "/v")
        queue.enqueue(OperationKind.VERIFICATION_SYNC, "/v")

        assert queue.count_by_kind(OperationKind.VERIFICATION_SYNC) == 2
        assert queue.count_by_kind("attendance-sync") == 1

    def test_has_candidate(self, queue):
        op_id = queue.enqueue("k", "/a", payload={"candidate_id": 7})
        queue.enqueue("k", "/b")

        assert queue.has_candidate("7")
        assert not queue.has_candidate("8")

        queue.remove(op_id)
        assert not queue.has_candidate("7")

    def test_clear(self, queue, storage):
        queue.enqueue("k", "/a")
        queue.enqueue("k", "/b")

        assert queue.clear() == 2
        assert storage.load(DurableQueueStore.STORAGE_KEY) == []

    def test_contains_and_len(self, queue):
        op_id = queue.enqueue("k", "/a")
        assert op_id in queue
        assert len(queue) == 1

    def test_colliding_id_factory_is_retried(self, storage):
        ids = iter(["same", "same", "other"])
        queue = DurableQueueStore(storage, id_factory=lambda: next(ids))

        assert queue.enqueue("k", "/a") == "same"
        assert queue.enqueue("k", "/b") == "other"

    def test_broken_id_factory(self, storage):
        queue = DurableQueueStore(storage, id_factory=lambda: "same")
        queue.enqueue("k", "/a")

        with pytest.raises(ValueError):
            queue.enqueue("k", "/b")


class TestQueuePersistence:
    """Every mutation is flushed; a reload sees the last completed mutation."""

    @pytest.fixture
    def storage(self, tmp_path):
        return JsonFileStorage(tmp_path)

    def test_restart_restores_queue(self, storage):
        queue = DurableQueueStore(storage)
        a = queue.enqueue("attendance-sync", "/a", payload={"candidate_id": "C-1"})
        b = queue.enqueue("attendance-sync", "/a", payload={"candidate_id": "C-2"})
        c = queue.enqueue("verification-sync", "/v")
        queue.remove(a)
        queue.increment_retry(c)

        restarted = DurableQueueStore(storage)
        assert restarted.load() == 2

        assert restarted.drain_snapshot() == queue.drain_snapshot()
        assert [op.id for op in restarted.drain_snapshot()] == [b, c]
        assert restarted.get(c).retry_count == 1

    def test_load_empty(self, storage):
        assert DurableQueueStore(storage).load() == 0

    def test_load_corrupt_queue(self, storage):
        storage.save(DurableQueueStore.STORAGE_KEY, [{"kind": "no id"}])

        with pytest.raises(PersistenceError):
            DurableQueueStore(storage).load()

    def test_load_skips_duplicate_ids(self, storage):
        item = {"id": "dup", "kind": "k", "endpoint": "/a"}
        storage.save(DurableQueueStore.STORAGE_KEY, [item, dict(item, endpoint="/b")])

        queue = DurableQueueStore(storage)

        assert queue.load() == 1
        assert queue.get("dup").endpoint == "/a"

    def test_failed_enqueue_propagates_and_changes_nothing(self, storage):
        queue = DurableQueueStore(storage)
        queue.enqueue("k", "/a")

        with patch.object(storage, "save", side_effect=PersistenceError("disk full")):
            with pytest.raises(PersistenceError):
                queue.enqueue("k", "/b")

        assert queue.size() == 1
        restarted = DurableQueueStore(storage)
        restarted.load()
        assert restarted.size() == 1

    def test_failed_remove_keeps_operation(self, storage):
        queue = DurableQueueStore(storage)
        op_id = queue.enqueue("k", "/a")

        with patch.object(storage, "save", side_effect=PersistenceError("disk full")):
            with pytest.raises(PersistenceError):
                queue.remove(op_id)

        assert op_id in queue

    def test_concurrent_enqueues(self, storage):
        queue = DurableQueueStore(storage)

        def worker():
            for _ in range(10):
                queue.enqueue("k", "/a")

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        restarted = DurableQueueStore(storage)
        assert restarted.load() == 40
