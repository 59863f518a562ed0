"""Tests for audit repositories."""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from modules.audit import (
    DeletedAccountRecord,
    DeletedAccountRepository,
    IDeletedAccountRepository,
    IInconsistencyLogRepository,
    IJobRunRepository,
    InMemoryDeletedAccountRepository,
    InMemoryInconsistencyLogRepository,
    InMemoryJobRunRepository,
    InconsistencyLogEntry,
    InconsistencyLogRepository,
    InconsistencyType,
    JobRunRecord,
    MissingProfileRecordDetails,
    ProfileCompletedDetails,
    SuspensionSnapshot,
)
from tests.conftest import make_profile


NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def anomaly(log_id, user_id="user-1", at=NOW):
    return InconsistencyLogEntry(
        id=log_id,
        user_id=user_id,
        type=InconsistencyType.MISSING_PROFILE_RECORD,
        details=MissingProfileRecordDetails(email=f"{user_id}@example.com"),
        timestamp=at,
    )


def exit_entry(log_id, user_id="user-1", at=NOW):
    return InconsistencyLogEntry(
        id=log_id,
        user_id=user_id,
        type=InconsistencyType.PROFILE_COMPLETED,
        details=ProfileCompletedDetails(name="Ada", previous=SuspensionSnapshot()),
        resolved=True,
        resolved_by=user_id,
        resolved_at=at,
        timestamp=at,
    )


def test_in_memory_repositories_implement_interfaces():
    assert isinstance(InMemoryInconsistencyLogRepository(), IInconsistencyLogRepository)
    assert isinstance(InMemoryDeletedAccountRepository(), IDeletedAccountRepository)
    assert isinstance(InMemoryJobRunRepository(), IJobRunRepository)


class TestInMemoryInconsistencyLogRepository:
    @pytest.fixture
    def repo(self):
        repo = InMemoryInconsistencyLogRepository()
        repo.append(anomaly("old", at=NOW - timedelta(days=2)))
        repo.append(exit_entry("mid", at=NOW - timedelta(days=1)))
        repo.append(anomaly("new", user_id="user-2", at=NOW))
        return repo

    def test_query_newest_first_with_total(self, repo):
        entries, total = repo.query(limit=2)
        assert [e.id for e in entries] == ["new", "mid"]
        assert total == 3

    def test_query_filters(self, repo):
        entries, total = repo.query(resolved=False, entry_type=InconsistencyType.MISSING_PROFILE_RECORD)
        assert {e.id for e in entries} == {"new", "old"}
        assert total == 2

    def test_query_offset(self, repo):
        entries, _ = repo.query(limit=10, offset=2)
        assert [e.id for e in entries] == ["old"]

    def test_insert_if_absent(self, repo):
        assert repo.insert_if_absent(anomaly("old")) is False
        assert repo.insert_if_absent(anomaly("other")) is True

    def test_list_for_user(self, repo):
        assert [e.id for e in repo.list_for_user("user-1")] == ["mid", "old"]

    def test_mark_resolved(self, repo):
        entry = repo.mark_resolved("old", "admin-1", NOW, "checked")
        assert entry.resolved is True
        assert entry.resolution_notes == "checked"
        assert repo.get("old").resolved_by == "admin-1"

    def test_mark_resolved_unknown(self, repo):
        assert repo.mark_resolved("missing", "admin-1", NOW, "x") is None

    def test_counts_and_breakdown(self, repo):
        assert repo.count() == 3
        assert repo.count(resolved=True) == 1
        assert repo.type_breakdown() == {"missing_profile_record": 2, "profile_completed": 1}

    def test_delete_resolved_before_keeps_unresolved(self, repo):
        assert repo.delete_resolved_before(NOW + timedelta(days=1)) == 1
        assert repo.get("mid") is None
        assert repo.get("old") is not None


class TestInMemoryDeletedAccountRepository:
    def test_insert_once_and_list_newest_first(self):
        repo = InMemoryDeletedAccountRepository()
        first = DeletedAccountRecord(
            id="d-1", user_id="a", profile=make_profile("a"), reason="r", deleted_at=NOW - timedelta(hours=1)
        )
        second = DeletedAccountRecord(
            id="d-2", user_id="b", profile=make_profile("b"), reason="r", deleted_at=NOW
        )
        assert repo.insert_if_absent(first) is True
        assert repo.insert_if_absent(first) is False
        repo.insert_if_absent(second)
        assert [r.id for r in repo.list_recent()] == ["d-2", "d-1"]
        assert len(repo.list_recent(limit=1)) == 1


class TestInMemoryJobRunRepository:
    def test_list_recent_filters_by_job(self):
        repo = InMemoryJobRunRepository()
        repo.record(JobRunRecord(id="1", job="full_scan", started_at=NOW, finished_at=NOW))
        repo.record(JobRunRecord(id="2", job="expiry_sweep", started_at=NOW, finished_at=NOW))
        assert [r.id for r in repo.list_recent(job="full_scan")] == ["1"]
        assert len(repo.list_recent()) == 2


@pytest.fixture
def mock_db():
    return MagicMock()


class TestInconsistencyLogRepository:
    def test_query_applies_filters_and_range(self, mock_db):
        select = mock_db.table.return_value.select
        filtered = select.return_value.eq.return_value.eq.return_value
        result = filtered.order.return_value.range.return_value.execute.return_value
        result.data = [anomaly("log-1").to_row()]
        result.count = 7

        entries, total = InconsistencyLogRepository(mock_db).query(
            resolved=False,
            entry_type=InconsistencyType.MISSING_PROFILE_RECORD,
            limit=10,
            offset=20,
        )

        assert [e.id for e in entries] == ["log-1"]
        assert total == 7
        select.assert_called_once_with("*", count="exact")
        filtered.order.assert_called_once_with("timestamp", desc=True)
        filtered.order.return_value.range.assert_called_once_with(20, 29)

    def test_mark_resolved_unknown_returns_none(self, mock_db):
        mock_db.table.return_value.update.return_value.eq.return_value.execute.return_value.data = []
        assert InconsistencyLogRepository(mock_db).mark_resolved("x", "admin", NOW, "n") is None

    def test_type_breakdown(self, mock_db):
        mock_db.table.return_value.select.return_value.execute.return_value.data = [
            {"type": "data_mismatch"},
            {"type": "data_mismatch"},
            {"type": "account_deleted"},
        ]
        assert InconsistencyLogRepository(mock_db).type_breakdown() == {
            "data_mismatch": 2,
            "account_deleted": 1,
        }

    def test_delete_resolved_before_only_resolved(self, mock_db):
        delete = mock_db.table.return_value.delete.return_value
        delete.eq.return_value.lt.return_value.execute.return_value.data = [{"id": "a"}, {"id": "b"}]

        assert InconsistencyLogRepository(mock_db).delete_resolved_before(NOW) == 2
        delete.eq.assert_called_once_with("resolved", True)
        delete.eq.return_value.lt.assert_called_once_with("timestamp", NOW.isoformat())


class TestDeletedAccountRepository:
    def test_insert_if_absent_uses_upsert(self, mock_db):
        upsert = mock_db.table.return_value.upsert
        upsert.return_value.execute.return_value.data = [{"id": "d-1"}]
        record = DeletedAccountRecord(id="d-1", user_id="a", profile=make_profile("a"), reason="r", deleted_at=NOW)

        assert DeletedAccountRepository(mock_db).insert_if_absent(record) is True
        assert upsert.call_args.kwargs["ignore_duplicates"] is True
