"""Supabase-backed data access for content and bookkeeping tables."""

from typing import Any

from supabase import Client, create_client

from content_hub.config import Settings
from content_hub.errors import StoreError


def create_supabase_client(settings: Settings) -> Client:
    """
    Create a Supabase client from settings.

    Args:
        settings: Application settings

    Returns:
        Supabase client

    Raises:
        ValueError: If the Supabase URL or key is missing
    """
    if not settings.supabase_url or not settings.supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be provided")
    return create_client(settings.supabase_url, settings.supabase_key)


class ContentStore:
    """Generic per-table operations against Supabase Postgres.

    Every editor screen and the plan executor go through the same five
    operations; rows are plain dicts keyed by column name and every table has
    an `id` primary key.
    """

    def __init__(self, supabase: Client):
        """
        Initialize the store.

        Args:
            supabase: Supabase client
        """
        self.supabase = supabase

    def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a row.

        Args:
            table: Table name
            row: Column values

        Returns:
            The inserted row as stored (with generated columns)
        """
        try:
            response = self.supabase.table(table).insert(row).execute()
        except Exception as e:
            raise StoreError(f"Insert into {table} failed: {e!s}") from e

        if not response.data:
            raise StoreError(f"Insert into {table} returned no row")
        return response.data[0]

    def update(self, table: str, patch: dict[str, Any], match_id: str) -> dict[str, Any]:
        """
        Apply a patch to the row with the given id.

        Returns:
            The updated row

        Raises:
            StoreError: If the update fails or no row matched
        """
        try:
            response = self.supabase.table(table).update(patch).eq("id", match_id).execute()
        except Exception as e:
            raise StoreError(f"Update of {table}/{match_id} failed: {e!s}") from e

        if not response.data:
            raise StoreError(f"No row {match_id} in {table}")
        return response.data[0]

    def delete(self, table: str, match_id: str) -> None:
        """Delete the row with the given id."""
        try:
            self.supabase.table(table).delete().eq("id", match_id).execute()
        except Exception as e:
            raise StoreError(f"Delete of {table}/{match_id} failed: {e!s}") from e

    def select_one(self, table: str, record_id: str) -> dict[str, Any] | None:
        """
        Point lookup by id.

        Returns:
            The row, or None if it does not exist
        """
        try:
            response = (
                self.supabase.table(table).select("*").eq("id", record_id).limit(1).execute()
            )
        except Exception as e:
            raise StoreError(f"Lookup of {table}/{record_id} failed: {e!s}") from e

        return response.data[0] if response.data else None

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order: tuple[str, bool] | None = None,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """
        Query rows with equality filters.

        Args:
            table: Table name
            filters: Column -> value; list values match any element
            order: (column, descending) ordering
            limit: Maximum number of rows
            columns: PostgREST select string

        Returns:
            Matching rows
        """
        query = self.supabase.table(table).select(columns)
        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                query = query.in_(column, list(value))
            else:
                query = query.eq(column, value)
        if order:
            column, descending = order
            query = query.order(column, desc=descending)
        if limit is not None:
            query = query.limit(limit)

        try:
            response = query.execute()
        except Exception as e:
            raise StoreError(f"Query of {table} failed: {e!s}") from e

        return response.data or []

    def count(self, table: str) -> int:
        """Exact row count of a table."""
        try:
            response = self.supabase.table(table).select("id", count="exact").limit(1).execute()
        except Exception as e:
            raise StoreError(f"Count of {table} failed: {e!s}") from e

        return response.count or 0
