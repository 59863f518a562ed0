"""
Profile repository implementations.

Encapsulates all access to the ``profiles`` table. The in-memory variant
mirrors the Supabase behaviour for tests and local development.
"""

from datetime import datetime
from typing import Iterator, Optional

from supabase import Client

from shared.repository import BaseRepository
from .models import UserProfile


class InMemoryProfileRepository:
    """Profile repository with in-memory storage."""

    def __init__(self, profiles: Optional[list[UserProfile]] = None):
        self._profiles: dict[str, UserProfile] = {}
        for profile in profiles or []:
            self._profiles[profile.id] = profile.model_copy(deep=True)

    def get(self, user_id: str) -> Optional[UserProfile]:
        profile = self._profiles.get(user_id)
        return profile.model_copy(deep=True) if profile else None

    def insert_if_absent(self, profile: UserProfile) -> bool:
        if profile.id in self._profiles:
            return False
        self._profiles[profile.id] = profile.model_copy(deep=True)
        return True

    def save(self, profile: UserProfile) -> bool:
        if profile.id not in self._profiles:
            return False
        self._profiles[profile.id] = profile.model_copy(deep=True)
        return True

    def delete(self, user_id: str) -> bool:
        return self._profiles.pop(user_id, None) is not None

    def iter_all(self, page_size: int = 500) -> Iterator[UserProfile]:
        for user_id in sorted(self._profiles):
            profile = self._profiles.get(user_id)
            if profile is not None:
                yield profile.model_copy(deep=True)

    def list_expired_suspensions(self, now: datetime) -> list[UserProfile]:
        return [
            p.model_copy(deep=True)
            for p in self._profiles.values()
            if p.is_temporarily_suspended
            and p.suspension_expires_at is not None
            and p.suspension_expires_at <= now
        ]

    def count_suspended(self) -> int:
        return sum(1 for p in self._profiles.values() if p.is_temporarily_suspended)


class ProfileRepository(BaseRepository[UserProfile]):
    """
    Repository for the ``profiles`` table.

    All methods return Pydantic models mapped from database rows.
    This repository does NOT enforce lifecycle rules; SuspensionLifecycle
    is the only writer of suspension fields.
    """

    def __init__(self, db: Client, table: str = "profiles") -> None:
        super().__init__(db, table)

    def get(self, user_id: str) -> Optional[UserProfile]:
        row = self._first(self._query().eq("id", user_id).execute())
        return UserProfile.model_validate(row) if row else None

    def insert_if_absent(self, profile: UserProfile) -> bool:
        return self._insert_if_absent(profile.to_row())

    def save(self, profile: UserProfile) -> bool:
        row = profile.to_row()
        row.pop("id")
        result = self._db.table(self._table).update(row).eq("id", profile.id).execute()
        return bool(result.data)

    def delete(self, user_id: str) -> bool:
        result = self._db.table(self._table).delete().eq("id", user_id).execute()
        return bool(result.data)

    def iter_all(self, page_size: int = 500) -> Iterator[UserProfile]:
        """
        Iterate over every profile using keyset pagination on ``id``.

        Keyset pages stay stable while earlier rows are deleted mid-scan.
        """
        last_id: Optional[str] = None
        while True:
            query = self._query()
            if last_id is not None:
                query = query.gt("id", last_id)
            result = query.order("id").limit(page_size).execute()
            rows = result.data or []
            for row in rows:
                yield UserProfile.model_validate(row)
            if len(rows) < page_size:
                return
            last_id = rows[-1]["id"]

    def list_expired_suspensions(self, now: datetime) -> list[UserProfile]:
        result = (
            self._query()
            .eq("is_temporarily_suspended", True)
            .lte("suspension_expires_at", now.isoformat())
            .order("suspension_expires_at")
            .execute()
        )
        return [UserProfile.model_validate(row) for row in result.data or []]

    def count_suspended(self) -> int:
        result = (
            self._query("id", count="exact")
            .eq("is_temporarily_suspended", True)
            .execute()
        )
        return result.count or 0
