"""API models package."""

from .user import AuthenticatedUser, TokenPayload, CurrentUserResponse
from .errors import ErrorBody, ErrorResponse, GATE_RESPONSES

__all__ = [
    "AuthenticatedUser",
    "TokenPayload",
    "CurrentUserResponse",
    "ErrorBody",
    "ErrorResponse",
    "GATE_RESPONSES",
]
