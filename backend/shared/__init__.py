"""
Shared infrastructure for the IdSync backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes
- clock: Injectable time source
- repository: Base class for Supabase repositories

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import get_supabase_client, reset_client_cache
from .clock import Clock, SystemClock, ManualClock
from .exceptions import (
    IdSyncError,
    NotFoundError,
    ValidationError,
    ConflictError,
    AuthorizationError,
    ExternalServiceError,
)
from .models import AuthenticatedUser

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "reset_client_cache",
    "Clock",
    "SystemClock",
    "ManualClock",
    "IdSyncError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "AuthorizationError",
    "ExternalServiceError",
    "AuthenticatedUser",
]
