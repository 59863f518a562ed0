"""
Audit module data models.

The inconsistency log is the append-only trail of every anomaly and every
exit from suspension. Each entry type carries its own payload model; the
payloads form a discriminated union on ``details.type``.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from modules.profiles.models import FieldMismatch, UserProfile


class InconsistencyType(str, Enum):
    """Kinds of inconsistency log entries."""

    MISSING_PROFILE_RECORD = "missing_profile_record"    # Identity without profile
    MISSING_IDENTITY_RECORD = "missing_identity_record"  # Profile without identity
    DATA_MISMATCH = "data_mismatch"                      # Fields diverge or are missing
    PROFILE_COMPLETED = "profile_completed"              # User repaired their profile
    MANUAL_RESTORATION = "manual_restoration"            # Admin override
    ACCOUNT_DELETED = "account_deleted"                  # Suspension expired


ANOMALY_TYPES = frozenset({
    InconsistencyType.MISSING_PROFILE_RECORD,
    InconsistencyType.MISSING_IDENTITY_RECORD,
    InconsistencyType.DATA_MISMATCH,
})


class DetectionSource(str, Enum):
    """Where an anomaly was detected."""

    REQUEST = "request"  # Inline consistency check
    SCAN = "scan"        # Scheduled full scan


class SuspensionSnapshot(BaseModel):
    """Suspension state of a profile captured just before it was cleared."""

    reason: Optional[str] = None
    suspended_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    missing_fields: list[str] = Field(default_factory=list)
    inconsistencies: list[FieldMismatch] = Field(default_factory=list)

    @classmethod
    def of(cls, profile: UserProfile) -> "SuspensionSnapshot":
        return cls(
            reason=profile.suspension_reason,
            suspended_at=profile.suspended_at,
            expires_at=profile.suspension_expires_at,
            missing_fields=list(profile.missing_fields),
            inconsistencies=list(profile.inconsistencies),
        )


# -----------------------------------------------------------------------------
# Entry payloads
# -----------------------------------------------------------------------------


class MissingProfileRecordDetails(BaseModel):
    type: Literal["missing_profile_record"] = "missing_profile_record"
    email: Optional[str] = Field(None, description="Email claimed by the token")
    suspension_expires_at: Optional[datetime] = None


class MissingIdentityRecordDetails(BaseModel):
    type: Literal["missing_identity_record"] = "missing_identity_record"
    source: DetectionSource
    profile: UserProfile
    suspension_expires_at: Optional[datetime] = Field(
        None, description="Set when the scan suspended the profile"
    )


class DataMismatchDetails(BaseModel):
    type: Literal["data_mismatch"] = "data_mismatch"
    source: DetectionSource
    reason: str
    inconsistencies: list[FieldMismatch] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)
    suspension_expires_at: datetime
    profile: UserProfile


class ProfileCompletedDetails(BaseModel):
    type: Literal["profile_completed"] = "profile_completed"
    name: Optional[str] = None
    email: Optional[str] = None
    previous: SuspensionSnapshot


class ManualRestorationDetails(BaseModel):
    type: Literal["manual_restoration"] = "manual_restoration"
    restored_by: str
    notes: str
    previous: SuspensionSnapshot


class AccountDeletedDetails(BaseModel):
    type: Literal["account_deleted"] = "account_deleted"
    reason: str
    deleted_at: datetime
    profile: UserProfile


LogDetails = Annotated[
    Union[
        MissingProfileRecordDetails,
        MissingIdentityRecordDetails,
        DataMismatchDetails,
        ProfileCompletedDetails,
        ManualRestorationDetails,
        AccountDeletedDetails,
    ],
    Field(discriminator="type"),
]


# -----------------------------------------------------------------------------
# Stored records
# -----------------------------------------------------------------------------


class InconsistencyLogEntry(BaseModel):
    """
    One entry of the inconsistency log.

    Entries are never edited except for the resolution fields.
    """

    id: str = Field(..., description="Entry ID (UUID)")
    user_id: str = Field(..., description="Subject user ID")
    type: InconsistencyType
    details: LogDetails
    resolved: bool = Field(default=False)
    resolved_by: Optional[str] = Field(None)
    resolved_at: Optional[datetime] = Field(None)
    resolution_notes: Optional[str] = Field(None)
    timestamp: datetime

    @model_validator(mode="after")
    def _details_match_type(self) -> "InconsistencyLogEntry":
        if self.details.type != self.type.value:
            raise ValueError(
                f"details of type {self.details.type!r} cannot be stored as {self.type.value!r}"
            )
        return self

    def to_row(self) -> dict:
        return self.model_dump(mode="json")


class DeletedAccountRecord(BaseModel):
    """Immutable snapshot written exactly once when an account is deleted."""

    id: str
    user_id: str
    profile: UserProfile
    reason: str
    deleted_at: datetime

    model_config = {"frozen": True}

    def to_row(self) -> dict:
        return self.model_dump(mode="json")


class JobRunRecord(BaseModel):
    """Summary of one reconciliation job run."""

    id: str
    job: str
    started_at: datetime
    finished_at: datetime
    stats: dict[str, int] = Field(default_factory=dict)

    def to_row(self) -> dict:
        return self.model_dump(mode="json")


# -----------------------------------------------------------------------------
# Query/response models
# -----------------------------------------------------------------------------


class LogStatusFilter(str, Enum):
    ALL = "all"
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"

    def as_resolved_flag(self) -> Optional[bool]:
        if self is LogStatusFilter.RESOLVED:
            return True
        if self is LogStatusFilter.UNRESOLVED:
            return False
        return None


class UserSnapshot(BaseModel):
    """Live view of the subject's profile, attached to listed entries."""

    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    is_temporarily_suspended: bool = False


class LogEntryView(InconsistencyLogEntry):
    """A log entry enriched with the subject's current profile (not stored)."""

    user: Optional[UserSnapshot] = None


class InconsistencyLogList(BaseModel):
    logs: list[LogEntryView]
    total: int
    limit: int
    offset: int
    has_more: bool


class InconsistencyStats(BaseModel):
    total_inconsistencies: int
    unresolved_inconsistencies: int
    resolved_inconsistencies: int
    suspended_users: int
    type_breakdown: dict[str, int] = Field(default_factory=dict)
