"""
User-related endpoints.

Self-service profile access and repair. Every route runs the consistency
gate; a suspended user can only reach the allow-listed routes (profile
read, suspension status, profile completion).
"""

from fastapi import APIRouter, Depends, HTTPException

from shared.exceptions import IdSyncError
from modules.consistency.models import CheckedUser
from modules.profiles.exceptions import ProfileNotFoundError
from modules.profiles.models import UserProfile
from modules.remediation.exceptions import RemediationValidationError
from modules.remediation.models import (
    CompleteProfileRequest,
    SuspensionStatus,
    UpdateNameRequest,
)
from ..dependencies import ServiceContainer, get_container
from ..middleware.consistency import require_active_user
from ..models.errors import GATE_RESPONSES
from ..models.user import CurrentUserResponse

router = APIRouter(responses=GATE_RESPONSES)


def _http_error(error: IdSyncError) -> HTTPException:
    if isinstance(error, RemediationValidationError):
        return HTTPException(status_code=400, detail=error.to_dict())
    if isinstance(error, ProfileNotFoundError):
        return HTTPException(status_code=404, detail=error.to_dict())
    return HTTPException(status_code=500, detail=error.to_dict())


@router.get("/me", response_model=CurrentUserResponse)
def get_current_user_profile(
    checked: CheckedUser = Depends(require_active_user),
) -> CurrentUserResponse:
    """
    Get the current user's profile and consistency state.

    Reachable while suspended.
    """
    user = checked.user
    return CurrentUserResponse(
        id=user.id,
        email=user.email,
        email_verified=user.email_verified,
        role=user.role,
        profile=checked.profile,
        consistency=checked.annotation,
    )


@router.get("/me/suspension", response_model=SuspensionStatus)
def get_suspension_status(
    checked: CheckedUser = Depends(require_active_user),
    container: ServiceContainer = Depends(get_container),
) -> SuspensionStatus:
    """Suspension details and days remaining. Reachable while suspended."""
    try:
        return container.profile_completion.get_status(checked.id)
    except ProfileNotFoundError as e:
        raise _http_error(e)


@router.post("/me/complete-profile", response_model=UserProfile)
def complete_profile(
    body: CompleteProfileRequest,
    checked: CheckedUser = Depends(require_active_user),
    container: ServiceContainer = Depends(get_container),
) -> UserProfile:
    """
    Supply the missing profile data and lift the suspension.

    Reachable while suspended.
    """
    try:
        return container.profile_completion.complete_profile(checked.id, body.name, body.email)
    except (RemediationValidationError, ProfileNotFoundError) as e:
        raise _http_error(e)


@router.patch("/me", response_model=UserProfile)
def update_current_user(
    body: UpdateNameRequest,
    checked: CheckedUser = Depends(require_active_user),
    container: ServiceContainer = Depends(get_container),
) -> UserProfile:
    """Change the current user's name. Blocked while suspended."""
    try:
        return container.profile_completion.update_name(checked.id, body.name)
    except (RemediationValidationError, ProfileNotFoundError) as e:
        raise _http_error(e)
