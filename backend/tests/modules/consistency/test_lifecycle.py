"""Tests for SuspensionLifecycle."""

import pytest
from datetime import timedelta
from unittest.mock import MagicMock

from modules.audit import DetectionSource, InconsistencyType
from modules.consistency import (
    DATA_MISMATCH_REASON,
    DELETION_REASON,
    MISSING_PROFILE_REASON,
    AlreadySuspendedError,
    Divergence,
    RestoreTrigger,
    SuspensionLifecycle,
    deletion_key,
)
from modules.identity.exceptions import IdentityStoreError
from modules.profiles import FieldMismatch, ProfileNotFoundError
from tests.conftest import START


EMAIL_MISMATCH = Divergence(mismatches=[
    FieldMismatch(field="email", identity_value="new@example.com", profile_value="user-1@example.com"),
])


def entries_of(log_service, entry_type, user_id="user-1"):
    return [e for e in log_service.for_user(user_id) if e.type == entry_type]


class TestSuspend:
    def test_sets_window_and_logs_mismatch(self, lifecycle, seed_user, profiles, log_service):
        profile = seed_user()

        suspended = lifecycle.suspend(profile, EMAIL_MISMATCH, source=DetectionSource.SCAN)

        assert suspended.is_temporarily_suspended is True
        assert suspended.suspension_reason == DATA_MISMATCH_REASON
        assert suspended.suspended_at == START
        assert suspended.suspension_expires_at == START + timedelta(days=30)
        assert suspended.data_incomplete is False
        assert profiles.get("user-1") == suspended

        [entry] = log_service.for_user("user-1")
        assert entry.type == InconsistencyType.DATA_MISMATCH
        assert entry.resolved is False
        assert entry.details.source == DetectionSource.SCAN
        assert entry.details.inconsistencies == EMAIL_MISMATCH.mismatches

    def test_missing_fields_mark_data_incomplete(self, lifecycle, seed_user):
        profile = seed_user(name="")
        suspended = lifecycle.suspend(profile, Divergence(missing_fields=["name"]))
        assert suspended.data_incomplete is True
        assert suspended.missing_fields == ["name"]

    def test_rejects_already_suspended(self, lifecycle, seed_user, log_service):
        suspended = lifecycle.suspend(seed_user(), EMAIL_MISMATCH)

        with pytest.raises(AlreadySuspendedError):
            lifecycle.suspend(suspended, EMAIL_MISMATCH)
        assert len(log_service.for_user("user-1")) == 1

    def test_vanished_profile(self, lifecycle, seed_user, profiles):
        profile = seed_user()
        profiles.delete("user-1")

        with pytest.raises(ProfileNotFoundError):
            lifecycle.suspend(profile, EMAIL_MISMATCH)

    def test_missing_identity(self, lifecycle, seed_user, log_service):
        suspended = lifecycle.suspend_missing_identity(seed_user(identity=False))

        assert suspended.suspension_reason == "Identity record missing"
        [entry] = log_service.for_user("user-1")
        assert entry.type == InconsistencyType.MISSING_IDENTITY_RECORD
        assert entry.details.source == DetectionSource.SCAN
        assert entry.details.suspension_expires_at == suspended.suspension_expires_at


class TestSuspendMissingProfile:
    def test_creates_minimal_suspended_profile(self, lifecycle, profiles, log_service):
        profile, created = lifecycle.suspend_missing_profile("user-1", "user-1@example.com")

        assert created is True
        assert profile.role == "viewer"
        assert profile.name == ""
        assert profile.is_active is False
        assert profile.suspension_reason == MISSING_PROFILE_REASON
        assert profile.data_incomplete is True
        assert profile.missing_fields == ["email", "name", "role"]
        assert profiles.get("user-1") == profile
        [entry] = log_service.for_user("user-1")
        assert entry.type == InconsistencyType.MISSING_PROFILE_RECORD

    def test_losing_caller_gets_stored_profile_and_writes_nothing(self, lifecycle, log_service, clock):
        first, _ = lifecycle.suspend_missing_profile("user-1", "user-1@example.com")
        clock.set(START + timedelta(seconds=1))

        second, created = lifecycle.suspend_missing_profile("user-1", "user-1@example.com")

        assert created is False
        assert second == first
        assert len(log_service.for_user("user-1")) == 1

    def test_missing_email_stored_as_empty(self, lifecycle):
        profile, _ = lifecycle.suspend_missing_profile("user-1", None)
        assert profile.email == ""


class TestRestore:
    def test_profile_completion_clears_suspension(self, lifecycle, seed_user, log_service):
        suspended = lifecycle.suspend(seed_user(), EMAIL_MISMATCH)

        restored = lifecycle.restore(
            suspended,
            RestoreTrigger.PROFILE_COMPLETED,
            actor_id="user-1",
            changes={"email": "new@example.com"},
        )

        assert restored.is_temporarily_suspended is False
        assert restored.suspension_expires_at is None
        assert restored.inconsistencies == []
        assert restored.email == "new@example.com"
        assert restored.manually_restored is False
        [entry] = entries_of(log_service, InconsistencyType.PROFILE_COMPLETED)
        assert entry.resolved is True
        assert entry.resolved_by == "user-1"
        assert entry.details.previous.reason == DATA_MISMATCH_REASON

    def test_manual_restoration_records_admin_and_notes(self, lifecycle, seed_user, log_service):
        suspended = lifecycle.suspend(seed_user(), EMAIL_MISMATCH)

        restored = lifecycle.restore(suspended, RestoreTrigger.MANUAL, "admin-1", notes="verified")

        assert restored.manually_restored is True
        [entry] = entries_of(log_service, InconsistencyType.MANUAL_RESTORATION)
        assert entry.details.restored_by == "admin-1"
        assert entry.details.notes == "verified"
        assert entry.resolution_notes == "verified"

    def test_restore_suspend_restore_round_trip(self, lifecycle, seed_user, profiles, log_service):
        original = seed_user()

        first = lifecycle.restore(original, RestoreTrigger.PROFILE_COMPLETED, "user-1")
        suspended = lifecycle.suspend(first, EMAIL_MISMATCH)
        final = lifecycle.restore(suspended, RestoreTrigger.PROFILE_COMPLETED, "user-1")

        assert final == original
        assert profiles.get("user-1") == original
        assert len(log_service.for_user("user-1")) == 3

    def test_restore_deleted_profile(self, lifecycle, seed_user, profiles):
        profile = seed_user()
        profiles.delete("user-1")
        with pytest.raises(ProfileNotFoundError):
            lifecycle.restore(profile, RestoreTrigger.MANUAL, "admin-1", notes="x")


class TestDelete:
    def test_deletes_everything_and_records_snapshot(
        self, lifecycle, seed_user, profiles, identities, log_service, container, clock
    ):
        suspended = lifecycle.suspend(seed_user(), EMAIL_MISMATCH)
        clock.set(suspended.suspension_expires_at)

        record = lifecycle.delete("user-1")

        assert record is not None
        assert record.id == str(deletion_key("user-1", suspended))
        assert record.reason == DELETION_REASON
        assert record.profile == suspended
        assert profiles.get("user-1") is None
        assert identities.exists("user-1") is False
        assert container.deleted_accounts.list_recent() == [record]
        [entry] = entries_of(log_service, InconsistencyType.ACCOUNT_DELETED)
        assert entry.resolved_by == "system"

    def test_repeated_delete_is_a_noop(self, lifecycle, seed_user, log_service, container, clock):
        suspended = lifecycle.suspend(seed_user(), EMAIL_MISMATCH)
        clock.set(suspended.suspension_expires_at)

        assert lifecycle.delete("user-1") is not None
        assert lifecycle.delete("user-1") is None

        assert len(container.deleted_accounts.list_recent()) == 1
        assert len(entries_of(log_service, InconsistencyType.ACCOUNT_DELETED)) == 1

    def test_racing_deletes_write_one_record_and_one_entry(self, container, seed_user, log_service, clock):
        lifecycle = container.lifecycle
        suspended = lifecycle.suspend(seed_user(), EMAIL_MISMATCH)
        clock.set(suspended.suspension_expires_at)
        # Both callers read the profile before either deletes it.
        profiles = MagicMock(wraps=container.profiles)
        profiles.get.return_value = suspended
        racer = SuspensionLifecycle(
            profiles=profiles,
            identities=container.identities,
            deleted_accounts=container.deleted_accounts,
            log=log_service,
            clock=container.clock,
        )

        results = [racer.delete("user-1"), racer.delete("user-1")]

        assert sum(r is not None for r in results) == 1
        assert len(container.deleted_accounts.list_recent()) == 1
        assert len(entries_of(log_service, InconsistencyType.ACCOUNT_DELETED)) == 1

    def test_identity_delete_failure_is_tolerated(self, container, seed_user, caplog):
        identities = MagicMock()
        identities.delete_user.side_effect = IdentityStoreError("boom", user_id="user-1")
        lifecycle = SuspensionLifecycle(
            profiles=container.profiles,
            identities=identities,
            deleted_accounts=container.deleted_accounts,
            log=container.inconsistency_log,
            clock=container.clock,
        )
        seed_user(is_temporarily_suspended=True, suspended_at=START, suspension_expires_at=START)

        with caplog.at_level("ERROR"):
            record = lifecycle.delete("user-1")

        assert record is not None
        assert container.profiles.get("user-1") is None
        assert "Failed to delete identity record" in caplog.text

    def test_identity_already_gone(self, lifecycle, seed_user):
        seed_user(identity=False, is_temporarily_suspended=True, suspended_at=START, suspension_expires_at=START)
        assert lifecycle.delete("user-1") is not None

    def test_unknown_user(self, lifecycle):
        assert lifecycle.delete("nobody") is None

    def test_active_account_is_left_alone(self, lifecycle, seed_user, profiles, identities, container):
        profile = seed_user()

        assert lifecycle.delete("user-1") is None

        assert profiles.get("user-1") == profile
        assert identities.exists("user-1") is True
        assert container.deleted_accounts.list_recent() == []

    def test_suspension_within_window_is_left_alone(self, lifecycle, seed_user, profiles, clock):
        suspended = lifecycle.suspend(seed_user(), EMAIL_MISMATCH)
        clock.set(suspended.suspension_expires_at - timedelta(milliseconds=1))

        assert lifecycle.delete("user-1") is None
        assert profiles.get("user-1") == suspended

    def test_restored_after_expiry_is_left_alone(self, lifecycle, seed_user, profiles, log_service, clock):
        suspended = lifecycle.suspend(seed_user(), EMAIL_MISMATCH)
        clock.set(suspended.suspension_expires_at + timedelta(days=1))
        restored = lifecycle.restore(suspended, RestoreTrigger.MANUAL, "admin-1", notes="verified")

        assert lifecycle.delete("user-1") is None

        assert profiles.get("user-1") == restored
        assert entries_of(log_service, InconsistencyType.ACCOUNT_DELETED) == []
