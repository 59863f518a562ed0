"""
Remediation module.

Public API:
- ProfileCompletionService: Self-service profile completion and status
- AdminRemediationService: Administrator log and restore operations
- Request/response models
- RemediationValidationError
"""

from .models import (
    CompleteProfileRequest,
    UpdateNameRequest,
    RestoreUserRequest,
    ResolveLogRequest,
    SuspensionStatus,
)
from .service import ProfileCompletionService, AdminRemediationService
from .exceptions import RemediationValidationError

__all__ = [
    # Models
    "CompleteProfileRequest",
    "UpdateNameRequest",
    "RestoreUserRequest",
    "ResolveLogRequest",
    "SuspensionStatus",
    # Services
    "ProfileCompletionService",
    "AdminRemediationService",
    # Exceptions
    "RemediationValidationError",
]
