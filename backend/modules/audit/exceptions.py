"""
Audit module exceptions.
"""

from shared.exceptions import NotFoundError


class LogEntryNotFoundError(NotFoundError):
    """Raised when an inconsistency log entry does not exist."""

    def __init__(self, log_id: str):
        super().__init__(
            f"Inconsistency log entry not found: {log_id}",
            code="LOG_ENTRY_NOT_FOUND",
            details={"log_id": log_id},
        )
