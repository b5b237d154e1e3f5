"""
Context query construction.
"""
from curious_explorer.explorer.context import build_context_query, lineage_names

from conftest import make_item


def test_empty_path_returns_query():
    assert build_context_query([], "Seed") == "Seed"


def test_single_ancestor_adds_context():
    assert build_context_query(["Avocado"], "Seed") == "Seed from Avocado"


def test_ancestor_implied_by_query_is_dropped():
    assert build_context_query(["Avocado"], "Avocado Seed") == "Avocado Seed"


def test_ancestor_implied_by_next_ancestor_is_dropped():
    assert build_context_query(["Avocado", "Avocado Seed"], "Core") == "Core from Avocado Seed"


def test_containment_is_case_insensitive():
    assert build_context_query(["avocado"], "AVOCADO Seed") == "AVOCADO Seed"


def test_deep_lineage_keeps_order():
    assert build_context_query(["Car", "Engine"], "Piston") == "Piston from Car Engine"


def test_accepts_items():
    path = [make_item("Car"), make_item("Engine")]
    assert lineage_names(path) == ["Car", "Engine"]
    assert build_context_query(path, "Piston") == "Piston from Car Engine"


def test_deterministic():
    path = ["Ice Lemon Tea"]
    assert build_context_query(path, "Ice Cubes") == build_context_query(path, "Ice Cubes")
    assert build_context_query(path, "Ice Cubes") == "Ice Cubes from Ice Lemon Tea"
