"""
Shared fixtures: a scripted AI capability, item builders and sessions wired
to the in-memory store.
"""
import asyncio
import itertools
from typing import Optional

import pytest

from curious_explorer.db.store import InMemoryExplorationStore
from curious_explorer.errors import AnalysisFailed, IdentificationFailed
from curious_explorer.explorer.session import ExplorerSession, end_session
from curious_explorer.pipeline.capability import AnalysisResult, Characteristic, DetectedPart


VIEW_TAGS = {
    "[ASSEMBLED_VIEW]": "assembled",
    "[CUTAWAY_VIEW]": "cutaway",
    "[EXPLODED_VIEW]": "exploded",
}

DEFAULT_PARTS = {
    "Car": ["Engine", "Chassis", "Wheels", "Transmission", "Car Seats"],
    "Engine from Car": ["Piston", "Crankshaft", "Cylinder Head", "Spark Plug", "Engine Block"],
}


def view_of(prompt: str) -> str:
    for tag, view in VIEW_TAGS.items():
        if prompt.startswith(tag):
            return view
    return "unknown"


def fake_image(view: str) -> str:
    return f"data:image/png;base64,{view}"


class FakeAI:
    """
    Scripted AICapability.

    Analyses are built from the query unless overridden in `analyses`.
    `failing_views` lists views ("assembled", "cutaway", "exploded") whose
    generation returns None. Every call is appended to `calls`.
    """

    def __init__(
        self,
        analyses: Optional[dict] = None,
        identified: str = "Car",
        failing_views=(),
        fail_identify: bool = False,
        fail_analyze: bool = False,
        fail_detect: bool = False,
        is_configured: bool = True,
    ):
        self.analyses = analyses or {}
        self.identified = identified
        self.failing_views = set(failing_views)
        self.fail_identify = fail_identify
        self.fail_analyze = fail_analyze
        self.fail_detect = fail_detect
        self.is_configured = is_configured
        self.calls: list[tuple] = []

    def set_api_key(self, api_key: str) -> None:
        self.calls.append(("set_api_key", api_key))
        self.is_configured = True

    async def identify_object(self, image: str) -> str:
        self.calls.append(("identify_object", image))
        if self.fail_identify:
            raise IdentificationFailed()
        return self.identified

    async def analyze(self, query: str, options) -> AnalysisResult:
        self.calls.append(("analyze", query))
        await asyncio.sleep(0)
        if self.fail_analyze:
            raise AnalysisFailed()
        if query in self.analyses:
            return self.analyses[query]
        return make_analysis(query, DEFAULT_PARTS.get(query))

    async def generate_image(self, prompt: str, reference_image: Optional[str] = None) -> Optional[str]:
        view = view_of(prompt)
        self.calls.append(("generate_image", view, reference_image))
        await asyncio.sleep(0)
        if view in self.failing_views:
            return None
        return fake_image(view)

    async def detect_coordinates(self, image: str, part_names: list[str]) -> list[DetectedPart]:
        self.calls.append(("detect_coordinates", image))
        if self.fail_detect:
            return []
        return [
            DetectedPart(name=name, description=f"The {name}", x=10 + 15 * i, y=20 + 10 * i)
            for i, name in enumerate(part_names)
        ]

    def called(self, method: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == method]


class FailingStore(InMemoryExplorationStore):
    """In-memory store whose operations can be switched to raise."""

    def __init__(self, items=None, fail_put=False, fail_delete=False, fail_get=False):
        self.fail_put = False
        super().__init__(items)
        self.fail_put = fail_put
        self.fail_delete = fail_delete
        self.fail_get = fail_get

    def put(self, item):
        if self.fail_put:
            raise ConnectionError("storage offline")
        super().put(item)

    def bulk_put(self, items):
        if self.fail_put:
            raise ConnectionError("storage offline")
        super().bulk_put(items)

    def delete(self, item_id):
        if self.fail_delete:
            raise ConnectionError("storage offline")
        super().delete(item_id)

    def get_all(self):
        if self.fail_get:
            raise ConnectionError("storage offline")
        return super().get_all()


# ─────────────────────────────────────────────────────────────
# Builders
# ─────────────────────────────────────────────────────────────

_ids = itertools.count(1)


def make_analysis(name: str, part_names: Optional[list[str]] = None) -> AnalysisResult:
    return AnalysisResult(
        name=name,
        category="Mechanical",
        description=f"A {name}.",
        part_names=part_names or ["Housing", "Core", "Fastener"],
        facts=[f"{name} fact one", f"{name} fact two", f"{name} fact three"],
        characteristics=[Characteristic(label="Mass", value="1 kg")],
    )


def make_item(name: str, children=None, item_id: Optional[str] = None, depth: int = 0,
              root_id: Optional[str] = None, parent_id: Optional[str] = None, timestamp: Optional[int] = None) -> dict:
    item_id = item_id or f"id-{next(_ids)}"
    item = {
        "id": item_id,
        "rootId": root_id or item_id,
        "name": name,
        "category": "Test",
        "description": f"A {name}.",
        "images": {"exploded": fake_image("exploded")},
        "parts": [],
        "facts": [],
        "characteristics": [],
        "children": list(children or []),
        "depth": depth,
        "timestamp": timestamp if timestamp is not None else next(_ids),
    }
    if parent_id:
        item["parentId"] = parent_id
    return item


def make_tree() -> dict:
    """Car → Engine → Piston, Car → Wheels."""
    piston = make_item("Piston", item_id="piston", depth=2, root_id="car", parent_id="engine")
    engine = make_item("Engine", [piston], item_id="engine", depth=1, root_id="car", parent_id="car")
    wheels = make_item("Wheels", item_id="wheels", depth=1, root_id="car", parent_id="car")
    return make_item("Car", [engine, wheels], item_id="car")


# ─────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────

@pytest.fixture
def fake_ai():
    return FakeAI()


@pytest.fixture
def store():
    return InMemoryExplorationStore()


@pytest.fixture
def session(fake_ai, store):
    return ExplorerSession(ai=fake_ai, store=store)


@pytest.fixture
def tree():
    return make_tree()


@pytest.fixture(autouse=True)
def _clear_session():
    yield
    end_session()
