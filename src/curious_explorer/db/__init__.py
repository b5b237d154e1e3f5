from .store import (
    ExplorationStore,
    InMemoryExplorationStore,
    create_store,
    sort_newest_first,
)

__all__ = [
    "ExplorationStore",
    "InMemoryExplorationStore",
    "create_store",
    "sort_newest_first",
]
