"""Tests for the per-request ConsistencyChecker."""

import pytest
from datetime import timedelta
from unittest.mock import MagicMock

from modules.audit import DetectionSource, InconsistencyType
from modules.consistency import (
    AccountDeletedError,
    ConsistencyChecker,
    IConsistencyChecker,
    IdentityRecordMissingError,
)
from modules.identity.exceptions import IdentityStoreError
from shared.models import AuthenticatedUser
from tests.conftest import START, make_identity


def principal(user_id="user-1", role="viewer", email=None):
    return AuthenticatedUser(id=user_id, email=email or f"{user_id}@example.com", role=role)


@pytest.fixture
def checker(container):
    return container.checker


def test_implements_interface(checker):
    assert isinstance(checker, IConsistencyChecker)


def test_consistent_user_has_no_annotation(checker, seed_user, log_service):
    seed_user()

    checked = checker.check(principal())

    assert checked.annotation is None
    assert checked.profile.id == "user-1"
    assert log_service.for_user("user-1") == []


def test_admin_is_skipped(checker, profiles):
    checked = checker.check(principal(role="admin"))

    assert checked.profile is None
    assert checked.annotation is None
    assert profiles.get("user-1") is None


class TestMissingProfile:
    def test_creates_suspended_placeholder(self, checker, profiles, log_service):
        checked = checker.check(principal())

        profile = profiles.get("user-1")
        assert profile.role == "viewer"
        assert profile.data_incomplete is True
        assert profile.missing_fields == ["email", "name", "role"]
        assert checked.is_suspended is True
        assert checked.annotation.needs_data_completion is True
        [entry] = log_service.for_user("user-1")
        assert entry.type == InconsistencyType.MISSING_PROFILE_RECORD

    def test_concurrent_requests_write_one_entry(self, checker, log_service):
        first = checker.check(principal())
        second = checker.check(principal())

        assert first.is_suspended and second.is_suspended
        assert len(log_service.for_user("user-1")) == 1


class TestDivergence:
    def test_role_mismatch_suspends(self, checker, seed_user, log_service):
        seed_user(role="editor")

        checked = checker.check(principal())

        annotation = checked.annotation
        assert annotation.is_suspended is True
        assert [m.model_dump() for m in annotation.inconsistencies] == [
            {"field": "role", "identity_value": "viewer", "profile_value": "editor"}
        ]
        assert checked.profile.suspension_expires_at == checked.profile.suspended_at + timedelta(days=30)
        [entry] = log_service.for_user("user-1")
        assert entry.type == InconsistencyType.DATA_MISMATCH
        assert entry.details.source == DetectionSource.REQUEST

    def test_missing_name_suspends(self, checker, seed_user):
        seed_user(name=" ")
        checked = checker.check(principal())
        assert checked.annotation.missing_fields == ["name"]
        assert checked.annotation.needs_data_completion is True


class TestSuspendedUser:
    def test_suspended_within_window_is_annotated(self, checker, seed_user, identities, clock, log_service):
        seed_user(role="editor")
        checker.check(principal())
        clock.set(START + timedelta(days=29, hours=23))

        checked = checker.check(principal())

        assert checked.is_suspended is True
        assert identities.exists("user-1") is True
        assert len(log_service.for_user("user-1")) == 1

    def test_expiry_boundary_deletes_account(self, checker, seed_user, profiles, identities, clock, container):
        seed_user(role="editor")
        checker.check(principal())
        clock.set(START + timedelta(days=30))

        with pytest.raises(AccountDeletedError) as exc_info:
            checker.check(principal())

        assert exc_info.value.code == "ACCOUNT_DELETED"
        assert profiles.get("user-1") is None
        assert identities.exists("user-1") is False
        assert len(container.deleted_accounts.list_recent()) == 1

    def test_suspended_user_skips_identity_lookup(self, container, seed_user):
        seed_user(is_temporarily_suspended=True, suspended_at=START, suspension_expires_at=START + timedelta(days=1))
        identities = MagicMock()
        checker = ConsistencyChecker(
            profiles=container.profiles,
            identities=identities,
            lifecycle=container.lifecycle,
            log=container.inconsistency_log,
            clock=container.clock,
        )

        checker.check(principal())

        identities.get_user.assert_not_called()


class TestIdentityProblems:
    def test_missing_identity_record_blocks_request(self, checker, seed_user, profiles, log_service):
        seed_user(identity=False)

        with pytest.raises(IdentityRecordMissingError):
            checker.check(principal())

        [entry] = log_service.for_user("user-1")
        assert entry.type == InconsistencyType.MISSING_IDENTITY_RECORD
        assert entry.details.source == DetectionSource.REQUEST
        assert profiles.get("user-1").is_temporarily_suspended is False

    def test_failed_identity_lookup_blocks_request(self, container, seed_user, log_service, caplog):
        seed_user(role="editor")
        identities = MagicMock()
        identities.get_user.side_effect = IdentityStoreError("timeout", user_id="user-1")
        checker = ConsistencyChecker(
            profiles=container.profiles,
            identities=identities,
            lifecycle=container.lifecycle,
            log=log_service,
            clock=container.clock,
        )

        with caplog.at_level("WARNING"), pytest.raises(IdentityRecordMissingError):
            checker.check(principal())

        [entry] = log_service.for_user("user-1")
        assert entry.type == InconsistencyType.MISSING_IDENTITY_RECORD
        assert entry.details.source == DetectionSource.REQUEST
        assert container.profiles.get("user-1").is_temporarily_suspended is False
        assert "Identity lookup failed for user-1" in caplog.text


def test_custom_required_fields(container, seed_user, identities):
    seed_user(name="")
    identities.add(make_identity())
    checker = ConsistencyChecker(
        profiles=container.profiles,
        identities=identities,
        lifecycle=container.lifecycle,
        log=container.inconsistency_log,
        clock=container.clock,
        required_fields=["email"],
    )

    assert checker.check(principal()).annotation is None
