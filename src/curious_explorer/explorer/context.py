"""
Lineage-aware query construction.

Recursing into "Seed" while inside "Avocado" must ask for "Seed from Avocado",
not a context-free "Seed". Ancestors already spelled out by their successor
are dropped so "Avocado" → "Avocado Seed" reads "Avocado Seed", not
"Avocado Avocado Seed".
"""
from typing import Sequence, Union

from .state import ExploredItem

PathEntry = Union[ExploredItem, str]


def lineage_names(path: Sequence[PathEntry]) -> list[str]:
    """Names along a root→current path. Entries may be items or plain names."""
    return [entry if isinstance(entry, str) else entry.get("name", "") for entry in path]


def build_context_query(path: Sequence[PathEntry], query: str) -> str:
    """
    Build the analysis query for `query` explored beneath `path`.

    Args:
        path: Ordered root→current items (or their names)
        query: Free text naming the next part

    Returns:
        "<query> from <ancestor context>", or the bare query when there is
        no path or every ancestor is implied by what follows it.

    Example:
        build_context_query(["Avocado"], "Seed")         -> "Seed from Avocado"
        build_context_query(["Avocado"], "Avocado Seed") -> "Avocado Seed"
    """
    if not path:
        return query

    names = lineage_names(path) + [query]

    for i in range(len(names) - 1, 0, -1):
        if names[i - 1].lower() in names[i].lower():
            names[i - 1] = ""

    context = " ".join(name for name in names[:-1] if name)
    if not context:
        return query
    return f"{query} from {context}"
