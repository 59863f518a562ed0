"""
Consistency gate dependencies.

``require_active_user`` is the dependency for every end-user route: it
authenticates the caller, runs the consistency check, and blocks a
suspended caller from every route outside the allow-list.
``require_admin`` guards the admin API and skips the check entirely.
"""

import logging
from typing import Iterable

from fastapi import Depends, HTTPException, Request, status

from shared.models import AuthenticatedUser
from modules.consistency.exceptions import (
    AccountDeletedError,
    AccountSuspendedError,
    IdentityRecordMissingError,
    InsufficientPermissionsError,
)
from modules.consistency.models import CheckedUser
from ..dependencies import ServiceContainer, get_container
from .auth import get_current_user

logger = logging.getLogger(__name__)


def route_key(request: Request) -> str:
    """``"METHOD /path"`` for allow-list matching, ignoring a trailing slash."""
    path = request.url.path
    if len(path) > 1:
        path = path.rstrip("/")
    return f"{request.method.upper()} {path}"


def is_allowed_while_suspended(request: Request, allowed_routes: Iterable[str]) -> bool:
    return route_key(request) in set(allowed_routes)


def get_checked_user(
    user: AuthenticatedUser = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> CheckedUser:
    """Authenticate and run the consistency check, without gating."""
    try:
        return container.checker.check(user)
    except (AccountDeletedError, IdentityRecordMissingError) as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.to_dict())


def require_active_user(
    request: Request,
    checked: CheckedUser = Depends(get_checked_user),
    container: ServiceContainer = Depends(get_container),
) -> CheckedUser:
    """Checked user, rejected with ACCOUNT_SUSPENDED outside the allow-list."""
    if checked.is_suspended and not is_allowed_while_suspended(
        request, container.settings.suspended_allowed_routes
    ):
        annotation = checked.annotation
        logger.info(f"Blocked suspended user {checked.id} from {route_key(request)}")
        error = AccountSuspendedError(
            checked.id,
            expires_at=annotation.suspension_expires_at,
            missing_fields=annotation.missing_fields,
            inconsistencies=annotation.inconsistencies,
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=error.to_dict())
    return checked


def require_admin(
    user: AuthenticatedUser = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> AuthenticatedUser:
    """Authenticated principal holding the admin role."""
    admin_role = container.settings.admin_role
    if user.role != admin_role:
        error = InsufficientPermissionsError(user.id, admin_role)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=error.to_dict())
    return user
