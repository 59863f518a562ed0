"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules:
JWT minting, a simulated clock, and a service container wired to the
in-memory stores.
"""

import pytest
from datetime import datetime, timezone, timedelta
from typing import Optional
from unittest.mock import patch
import jwt  # PyJWT
from fastapi.testclient import TestClient

from api.app import app
from api.dependencies import ServiceContainer, get_container, reset_container
from modules.identity.models import CustomClaims, UserIdentity
from modules.profiles.models import UserProfile
from shared.clock import ManualClock
from shared.config import Settings, get_settings
from shared.database import reset_client_cache


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"

# Simulated "now" for every test that uses the clock fixture
START = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


def create_test_token(
    user_id: str = "test-user-123",
    email: Optional[str] = "test@example.com",
    role: Optional[str] = None,
    expired: bool = False,
    email_verified: bool = True,
) -> str:
    """
    Create a test JWT token for authentication.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        role: Role claim placed in app_metadata (omitted if None)
        expired: If True, creates an expired token
        email_verified: Whether the email should be marked as verified

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email,
        "email_confirmed_at": now.isoformat() if email_verified else None,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
        "app_metadata": {"role": role} if role else {},
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


def make_profile(user_id: str = "user-1", **overrides) -> UserProfile:
    """A complete, unsuspended profile."""
    fields = {
        "id": user_id,
        "email": f"{user_id}@example.com",
        "name": "Test User",
        "role": "viewer",
        "permissions": {"portfolio": "read"},
        "created_at": START - timedelta(days=100),
        "updated_at": START,
    }
    fields.update(overrides)
    return UserProfile(**fields)


def make_identity(user_id: str = "user-1", **overrides) -> UserIdentity:
    """An identity record matching make_profile() with the same user_id."""
    role = overrides.pop("role", "viewer")
    fields = {
        "id": user_id,
        "email": f"{user_id}@example.com",
        "email_verified": True,
        "display_name": "Test User",
        "custom_claims": CustomClaims(role=role, permissions={"portfolio": "read"}),
    }
    fields.update(overrides)
    return UserIdentity(**fields)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings, clients and the container around each test."""
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()
    yield
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def memory_settings() -> Settings:
    """Settings for the in-memory backend with the scheduler disabled."""
    return Settings(
        _env_file=None,
        storage_backend="memory",
        enable_scheduler=False,
        supabase_jwt_secret=TEST_JWT_SECRET,
    )


@pytest.fixture
def container(memory_settings: Settings, clock: ManualClock) -> ServiceContainer:
    return ServiceContainer(settings=memory_settings, clock=clock)


@pytest.fixture
def identities(container):
    return container.identities


@pytest.fixture
def profiles(container):
    return container.profiles


@pytest.fixture
def log_service(container):
    return container.inconsistency_log


@pytest.fixture
def lifecycle(container):
    return container.lifecycle


@pytest.fixture
def seed_user(identities, profiles):
    """Store a consistent identity/profile pair and return the profile."""
    def _seed(user_id: str = "user-1", identity: bool = True, **profile_overrides) -> UserProfile:
        profile = make_profile(user_id, **profile_overrides)
        profiles.insert_if_absent(profile)
        if identity:
            identities.add(make_identity(user_id))
        return profile
    return _seed


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def test_user_email() -> str:
    """Provide a consistent test user email."""
    return "test-user-123@example.com"


@pytest.fixture
def auth_token(test_user_id: str, test_user_email: str) -> str:
    """Create a valid auth token for testing."""
    return create_test_token(user_id=test_user_id, email=test_user_email)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def client(container):
    """
    TestClient wired to the test container.

    Tokens from create_test_token() are accepted. The lifespan does not
    run, so the scheduler stays stopped.
    """
    app.dependency_overrides[get_container] = lambda: container
    with patch("api.middleware.auth.get_settings", return_value=container.settings):
        yield TestClient(app)
    app.dependency_overrides.clear()


def bearer(user_id: str = "user-1", role: Optional[str] = None, **kwargs) -> dict[str, str]:
    """Authorization header for a test token."""
    email = kwargs.pop("email", f"{user_id}@example.com")
    token = create_test_token(user_id=user_id, email=email, role=role, **kwargs)
    return {"Authorization": f"Bearer {token}"}
