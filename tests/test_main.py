"""
Command-line output and one-shot runs.
"""
import argparse
import asyncio

from curious_explorer.db.store import InMemoryExplorationStore
from curious_explorer.explorer.session import ExplorerSession
from curious_explorer.main import print_item, run_once

from conftest import FakeAI, make_item


def one_shot(query=None, image=None):
    session = ExplorerSession(ai=FakeAI(), store=InMemoryExplorationStore())
    args = argparse.Namespace(query=query, image=image, save_images=None)
    return asyncio.run(run_once(session, args))


def test_explored_parts_are_marked(capsys):
    engine = make_item("Engine from Car", depth=1)
    car = make_item("Car", [engine])
    car["parts"] = [
        {"id": "p1", "name": "Engine", "description": "", "x": 10, "y": 10},
        {"id": "p2", "name": "Wheels", "description": "", "x": 20, "y": 20},
    ]

    print_item(car, [car])

    lines = capsys.readouterr().out.splitlines()
    assert any(line.strip().startswith("✓") and "Engine" in line for line in lines)
    assert not any(line.strip().startswith("✓") and "Wheels" in line for line in lines)


def test_one_shot_query():
    assert one_shot(query="Car") == 0


def test_one_shot_missing_image(tmp_path, capsys):
    assert one_shot(image=str(tmp_path / "missing.jpg")) == 1
    assert "❌ Image not found" in capsys.readouterr().out


def test_one_shot_unreadable_image(tmp_path, capsys):
    path = tmp_path / "notes.jpg"
    path.write_text("not an image")

    assert one_shot(image=str(path)) == 1
    assert "❌ Not a readable image" in capsys.readouterr().out


def test_one_shot_blank_query(capsys):
    assert one_shot(query="   ") == 1
    assert "❌" in capsys.readouterr().out
