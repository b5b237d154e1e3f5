"""
Tree Store operations.

All functions are pure: they never mutate the trees or collections they are
given. `attach_child` rebuilds only the nodes on the path from the root to
the parent; untouched subtrees are shared with the previous root.
"""
from typing import Iterator, Optional

from .state import ExploredItem


# ─────────────────────────────────────────────────────────────
# Lookup
# ─────────────────────────────────────────────────────────────

def find_path(root: ExploredItem, target_id: str) -> Optional[list[ExploredItem]]:
    """
    Depth-first search from `root` to the node with `target_id`.

    Returns:
        [root, ..., target] or None if the id is not in this tree
    """
    if root["id"] == target_id:
        return [root]
    for child in root.get("children") or []:
        path = find_path(child, target_id)
        if path:
            return [root] + path
    return None


def find_item(root: ExploredItem, target_id: str) -> Optional[ExploredItem]:
    path = find_path(root, target_id)
    return path[-1] if path else None


def iter_items(root: ExploredItem) -> Iterator[ExploredItem]:
    """Pre-order walk over a tree."""
    yield root
    for child in root.get("children") or []:
        yield from iter_items(child)


def collect_ids(root: ExploredItem) -> list[str]:
    return [item["id"] for item in iter_items(root)]


def names_match(name: str, query: str) -> bool:
    """Bidirectional case-insensitive containment ("Seed" ~ "Avocado Seed")."""
    name, query = name.lower(), query.lower()
    return query in name or name in query


def find_matching_child(parent: ExploredItem, query: str) -> Optional[ExploredItem]:
    """
    Find an already-explored child of `parent` that answers `query`.

    Short generic part names ("Core", "Cap") can match unrelated children;
    containment is the only disambiguation applied.
    """
    for child in parent.get("children") or []:
        if names_match(child["name"], query):
            return child
    return None


# ─────────────────────────────────────────────────────────────
# Mutation (returns new values)
# ─────────────────────────────────────────────────────────────

def attach_child(root: ExploredItem, parent_id: str, new_child: ExploredItem) -> ExploredItem:
    """
    Return a new tree with `new_child` appended under `parent_id`.

    A child with the same id is replaced in place rather than duplicated,
    so attaching twice is the same as attaching once. If `parent_id` is not
    in the tree, `root` is returned unchanged.
    """
    if root["id"] == parent_id:
        children = list(root.get("children") or [])
        for index, child in enumerate(children):
            if child["id"] == new_child["id"]:
                children[index] = new_child
                break
        else:
            children.append(new_child)
        return {**root, "children": children}

    children = root.get("children") or []
    for index, child in enumerate(children):
        updated = attach_child(child, parent_id, new_child)
        if updated is not child:
            rebuilt = list(children)
            rebuilt[index] = updated
            return {**root, "children": rebuilt}
    return root


def upsert_root(collection: list[ExploredItem], root: ExploredItem) -> list[ExploredItem]:
    """Replace the root with the same id, or prepend it."""
    for index, existing in enumerate(collection):
        if existing["id"] == root["id"]:
            updated = list(collection)
            updated[index] = root
            return updated
    return [root] + list(collection)


def remove_root(collection: list[ExploredItem], root_id: str) -> list[ExploredItem]:
    return [item for item in collection if item["id"] != root_id]


# ─────────────────────────────────────────────────────────────
# Search
# ─────────────────────────────────────────────────────────────

def has_search_match(item: ExploredItem, text: str) -> bool:
    """True if any node in the subtree has `text` in its name."""
    needle = text.lower()
    return any(needle in node["name"].lower() for node in iter_items(item))


def search_collection(collection: list[ExploredItem], text: str) -> list[ExploredItem]:
    """Roots whose tree contains a name matching `text`. Empty text matches all."""
    if not text or not text.strip():
        return list(collection)
    return [root for root in collection if has_search_match(root, text.strip())]
