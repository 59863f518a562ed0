"""
Reconciliation module exceptions.
"""

from shared.exceptions import ConflictError


class JobAlreadyRunningError(ConflictError):
    """Raised when a job is started while a run of the same job is in progress."""

    def __init__(self, job: str):
        super().__init__(
            f"Reconciliation job already running: {job}",
            code="JOB_ALREADY_RUNNING",
            details={"job": job},
        )
