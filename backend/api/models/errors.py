"""
Error response models.

Standardized error responses for the API. Domain errors are returned as
``{"detail": IdSyncError.to_dict()}``.
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorBody(BaseModel):
    """Serialized domain error."""

    error: str = Field(..., description="Stable error code, e.g. ACCOUNT_SUSPENDED")
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response format."""

    detail: ErrorBody


# OpenAPI documentation for the consistency gate's rejections
GATE_RESPONSES: dict[int | str, dict[str, Any]] = {
    401: {"description": "Missing or invalid bearer token"},
    403: {
        "model": ErrorResponse,
        "description": "ACCOUNT_SUSPENDED, ACCOUNT_DELETED or IDENTITY_RECORD_MISSING",
    },
}
