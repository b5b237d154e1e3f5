"""
Explorer core: item model, lineage queries, tree operations and the session
reducer.

The session controller lives in `explorer.session` and is imported from
there; it depends on the pipeline, which in turn depends on this package.
"""
from .context import build_context_query, lineage_names
from .reducer import Action, ActionType, reduce
from .state import (
    ExploredItem,
    ExplorerState,
    GenerationOptions,
    GenerationStatus,
    ItemCharacteristic,
    ItemImages,
    ItemPart,
    active_root,
    create_initial_state,
    default_options,
    idle_status,
)
from .tree import (
    attach_child,
    collect_ids,
    find_item,
    find_matching_child,
    find_path,
    iter_items,
    remove_root,
    search_collection,
    upsert_root,
)

__all__ = [
    # Context
    "build_context_query",
    "lineage_names",
    # Reducer
    "Action",
    "ActionType",
    "reduce",
    # State
    "ExploredItem",
    "ExplorerState",
    "GenerationOptions",
    "GenerationStatus",
    "ItemCharacteristic",
    "ItemImages",
    "ItemPart",
    "active_root",
    "create_initial_state",
    "default_options",
    "idle_status",
    # Tree
    "attach_child",
    "collect_ids",
    "find_item",
    "find_matching_child",
    "find_path",
    "iter_items",
    "remove_root",
    "search_collection",
    "upsert_root",
]
