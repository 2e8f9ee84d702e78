"""Tests for domain entities."""

from datetime import datetime, timezone

from fieldsync.core.domain.entities import (
    CandidateRecord,
    CandidateSyncState,
    QueuedOperation,
    SyncLogEntry,
    SyncStatus,
)


NOW = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


class TestQueuedOperation:
    """Tests for QueuedOperation."""

    def test_defaults(self):
        op = QueuedOperation(id="op-1", kind="attendance-sync", endpoint="/api/attendance/sync")

        assert op.method == "POST"
        assert op.payload == {}
        assert op.retry_count == 0
        assert op.enqueued_at.tzinfo is not None

    def test_candidate_id_from_payload(self):
        op = QueuedOperation(
            id="op-1",
            kind="attendance-sync",
            endpoint="/x",
            payload={"candidate_id": 1001},
        )
        assert op.candidate_id == "1001"

    def test_candidate_id_missing(self):
        op = QueuedOperation(id="op-1", kind="custom", endpoint="/x")
        assert op.candidate_id is None

    def test_restores_persisted_form(self):
        op = QueuedOperation(
            id="op-1",
            kind="verification-sync",
            endpoint="/api/verification/sync",
            method="PUT",
            payload={"candidate_id": "C-1", "matched": True},
            enqueued_at=NOW,
            retry_count=2,
        )

        restored = QueuedOperation.from_dict(op.to_dict())

        assert restored == op

    def test_from_dict_tolerates_missing_optional_fields(self):
        op = QueuedOperation.from_dict({"id": "a", "kind": "k", "endpoint": "/e"})

        assert op.method == "POST"
        assert op.retry_count == 0
        assert op.payload == {}

    def test_describe(self):
        op = QueuedOperation(id="op-1", kind="attendance-sync", endpoint="/e")
        assert op.describe() == "attendance-sync POST /e [op-1]"


class TestCandidateRecord:
    """Tests for CandidateRecord."""

    def test_new_record_is_pending(self):
        record = CandidateRecord(candidate_id="C-1")
        assert record.sync_state == CandidateSyncState.PENDING
        assert not record.is_synced

    def test_dict_form_uses_plain_values(self):
        record = CandidateRecord(
            candidate_id="C-1",
            name="Ada",
            present=True,
            sync_state=CandidateSyncState.SYNCED,
            last_updated=NOW,
        )

        data = record.to_dict()

        assert data["sync_state"] == "synced"
        assert data["last_updated"] == NOW.isoformat()
        assert CandidateRecord.from_dict(data) == record


class TestSyncStatus:
    """Tests for SyncStatus."""

    def test_optional_times_stay_none(self):
        data = SyncStatus(pending=2).to_dict()

        assert data["last_sync"] is None
        assert data["next_sync"] is None
        assert SyncStatus.from_dict(data).pending == 2

    def test_times_survive(self):
        status = SyncStatus(total_registered=3, synced=1, last_sync=NOW)
        assert SyncStatus.from_dict(status.to_dict()).last_sync == NOW


class TestSyncLogEntry:
    """Tests for SyncLogEntry."""

    def test_from_dict_defaults(self):
        entry = SyncLogEntry.from_dict({"sync_id": "sync_1", "timestamp": NOW.isoformat()})

        assert entry.trigger == "manual"
        assert entry.status == "success"
        assert entry.error is None
