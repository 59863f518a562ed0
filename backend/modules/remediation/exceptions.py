"""
Remediation module exceptions.
"""

from shared.exceptions import ValidationError


class RemediationValidationError(ValidationError):
    """Raised when remediation input is rejected. Nothing has been written."""

    def __init__(self, errors: dict[str, str]):
        super().__init__(
            "Invalid input: " + ", ".join(f"{k}: {v}" for k, v in errors.items()),
            code="VALIDATION_ERROR",
            details={"fields": errors},
        )
        self.errors = errors
