"""
Persistence gateway.

A key-value store of root items keyed by id. Each record is a whole
exploration tree, so deleting a root removes every descendant with it.
"""
import copy
from typing import Protocol

from curious_explorer.config import Config
from curious_explorer.explorer.state import ExploredItem


class ExplorationStore(Protocol):
    def put(self, item: ExploredItem) -> None: ...

    def bulk_put(self, items: list[ExploredItem]) -> None: ...

    def delete(self, item_id: str) -> None: ...

    def get_all(self) -> list[ExploredItem]:
        """All stored roots, newest timestamp first."""
        ...


def sort_newest_first(items: list[ExploredItem]) -> list[ExploredItem]:
    return sorted(items, key=lambda item: item.get("timestamp", 0), reverse=True)


class InMemoryExplorationStore:
    """Dict-backed store for tests and runs without Supabase."""

    def __init__(self, items: list[ExploredItem] = None):
        self._items: dict[str, ExploredItem] = {}
        for item in items or []:
            self.put(item)

    def put(self, item: ExploredItem) -> None:
        self._items[item["id"]] = copy.deepcopy(item)

    def bulk_put(self, items: list[ExploredItem]) -> None:
        for item in items:
            self.put(item)

    def delete(self, item_id: str) -> None:
        self._items.pop(item_id, None)

    def get_all(self) -> list[ExploredItem]:
        return sort_newest_first([copy.deepcopy(item) for item in self._items.values()])

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items


def create_store() -> ExplorationStore:
    """Supabase when configured, otherwise an in-memory store."""
    if Config.has_supabase():
        from .supabase_client import SupabaseExplorationStore
        return SupabaseExplorationStore()

    print("⚠️  Supabase not configured. Explorations will not outlive this process.")
    return InMemoryExplorationStore()
