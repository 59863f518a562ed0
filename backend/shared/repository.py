"""
Base repository class for database access.

Provides a common abstraction layer for the Supabase-backed repositories,
encapsulating client access and the row helpers they share.
"""

from typing import Any, Optional, TypeVar, Generic
from supabase import Client


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all Supabase repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - The table name the repository owns via self._table
    - Generic type parameter for model type hints

    Subclasses implement domain-specific data access methods and handle
    dict-to-Pydantic model mapping internally.

    Example:
        class ProfileRepository(BaseRepository[UserProfile]):
            def get(self, user_id: str) -> Optional[UserProfile]:
                row = self._first(self._query().eq("id", user_id).execute())
                return UserProfile.model_validate(row) if row else None
    """

    def __init__(self, db: Client, table: str) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
            table: Name of the table this repository reads and writes.
        """
        self._db = db
        self._table = table

    def _query(self, columns: str = "*", **kwargs: Any):
        """Start a select query on the repository's table."""
        return self._db.table(self._table).select(columns, **kwargs)

    def _insert_if_absent(self, row: dict[str, Any], on_conflict: str = "id") -> bool:
        """
        Insert a row unless one with the same conflict key already exists.

        Returns True when this call created the row.
        """
        result = self._db.table(self._table).upsert(
            row,
            on_conflict=on_conflict,
            ignore_duplicates=True,
        ).execute()
        return bool(result.data)

    @staticmethod
    def _first(result: Any) -> Optional[dict[str, Any]]:
        """Return the first row of a query result, or None."""
        if not result.data:
            return None
        return result.data[0]
