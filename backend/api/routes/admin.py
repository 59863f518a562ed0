"""
Admin remediation endpoints.

Inspection and repair of inconsistencies. All routes require the admin
role; administrators are never subject to the consistency check.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from shared.models import AuthenticatedUser
from modules.audit.exceptions import LogEntryNotFoundError
from modules.audit.models import (
    DeletedAccountRecord,
    InconsistencyLogEntry,
    InconsistencyLogList,
    InconsistencyStats,
    InconsistencyType,
    LogStatusFilter,
)
from modules.profiles.exceptions import ProfileNotFoundError
from modules.profiles.models import UserProfile
from modules.reconciliation.exceptions import JobAlreadyRunningError
from modules.reconciliation.models import ScheduledJob
from modules.remediation.exceptions import RemediationValidationError
from modules.remediation.models import ResolveLogRequest, RestoreUserRequest
from ..dependencies import ServiceContainer, get_container
from ..middleware.consistency import require_admin

router = APIRouter()


@router.get("/inconsistency-logs", response_model=InconsistencyLogList)
def list_inconsistency_logs(
    status: LogStatusFilter = Query(LogStatusFilter.ALL),
    type: Optional[InconsistencyType] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: AuthenticatedUser = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> InconsistencyLogList:
    """List log entries newest first, each with the subject's live profile."""
    return container.admin_remediation.list_logs(
        status=status, entry_type=type, limit=limit, offset=offset
    )


@router.get("/users/{user_id}/inconsistency-logs", response_model=list[InconsistencyLogEntry])
def get_user_inconsistency_logs(
    user_id: str,
    admin: AuthenticatedUser = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> list[InconsistencyLogEntry]:
    """All log entries for one user, newest first."""
    return container.admin_remediation.user_logs(user_id)


@router.get("/deleted-accounts", response_model=list[DeletedAccountRecord])
def list_deleted_accounts(
    limit: int = Query(100, ge=1, le=500),
    admin: AuthenticatedUser = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> list[DeletedAccountRecord]:
    """Snapshots of deleted accounts, newest first."""
    return container.admin_remediation.deleted_accounts(limit)


@router.post("/inconsistency-logs/{log_id}/resolve", response_model=InconsistencyLogEntry)
def resolve_inconsistency_log(
    log_id: str,
    body: ResolveLogRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> InconsistencyLogEntry:
    """Mark an entry resolved. The user's suspension is not lifted."""
    try:
        return container.admin_remediation.resolve(log_id, admin.id, body.notes)
    except LogEntryNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.to_dict())


@router.post("/users/{user_id}/restore", response_model=UserProfile)
def restore_user(
    user_id: str,
    body: RestoreUserRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> UserProfile:
    """Lift a user's suspension. Notes are required."""
    try:
        return container.admin_remediation.restore_user(user_id, admin.id, body.notes)
    except RemediationValidationError as e:
        raise HTTPException(status_code=400, detail=e.to_dict())
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.to_dict())


@router.get("/inconsistency-stats", response_model=InconsistencyStats)
def get_inconsistency_stats(
    admin: AuthenticatedUser = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> InconsistencyStats:
    return container.admin_remediation.stats()


@router.post("/reconciliation/{job}/run")
async def run_reconciliation_job(
    job: ScheduledJob,
    admin: AuthenticatedUser = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """Run a reconciliation job now and return its summary."""
    try:
        summary = await container.scheduler.run_now(job)
    except JobAlreadyRunningError as e:
        raise HTTPException(status_code=409, detail=e.to_dict())
    return {"job": job.value, "summary": summary.model_dump(mode="json")}
