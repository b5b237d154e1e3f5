"""
Supabase client. Schema defined in migrations/001_explorations.sql

One row per exploration root:
    id         text primary key
    name       text
    timestamp  bigint        (epoch ms, used for ordering)
    data       jsonb         (the whole item tree)

API Key Usage:
- This module uses the SECRET key (sb_secret_...) by default
- The secret key bypasses RLS for full database access
- For RLS-respecting operations, pass elevated=False to get_supabase()
"""
from typing import Optional

from supabase import create_client, Client

from curious_explorer.config import Config
from curious_explorer.errors import PersistenceFailed
from curious_explorer.explorer.state import ExploredItem
from .store import sort_newest_first


def get_supabase(elevated: bool = True) -> Client:
    """
    Get Supabase client with appropriate API key.

    Args:
        elevated: If True, use secret key (bypasses RLS, full access).
                 If False, use publishable key (respects RLS).

    Returns:
        Supabase Client instance
    """
    api_key = Config.get_supabase_key(elevated=elevated)
    return create_client(Config.SUPABASE_URL, api_key)


def to_row(item: ExploredItem) -> dict:
    return {
        "id": item["id"],
        "name": item.get("name", ""),
        "timestamp": item.get("timestamp", 0),
        "data": item,
    }


class SupabaseExplorationStore:
    """ExplorationStore backed by a Supabase table."""

    def __init__(self, client: Optional[Client] = None, table: Optional[str] = None):
        self._client = client
        self.table = table or Config.EXPLORATIONS_TABLE

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    # ─────────────────────────────────────────────────────────────
    # Exploration Operations
    # ─────────────────────────────────────────────────────────────

    def put(self, item: ExploredItem) -> None:
        """Insert or replace one exploration root."""
        try:
            self.client.table(self.table).upsert(to_row(item)).execute()
        except Exception as e:
            raise PersistenceFailed(f"Failed to save exploration {item['id']}: {e}") from e

    def bulk_put(self, items: list[ExploredItem]) -> None:
        """Insert or replace many roots in one request."""
        if not items:
            return
        try:
            self.client.table(self.table).upsert([to_row(item) for item in items]).execute()
        except Exception as e:
            raise PersistenceFailed(f"Failed to bulk save {len(items)} explorations: {e}") from e

    def delete(self, item_id: str) -> None:
        try:
            self.client.table(self.table).delete().eq("id", item_id).execute()
        except Exception as e:
            raise PersistenceFailed(f"Failed to delete exploration {item_id}: {e}") from e

    def get_all(self) -> list[ExploredItem]:
        """All roots, newest first."""
        try:
            result = self.client.table(self.table).select("data").order(
                "timestamp", desc=True
            ).execute()
        except Exception as e:
            raise PersistenceFailed(f"Failed to load explorations: {e}") from e

        return sort_newest_first([row["data"] for row in result.data or [] if row.get("data")])
