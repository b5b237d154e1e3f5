"""
Exploration pipeline: stages, fallbacks and progress reporting.
"""
import asyncio

import pytest

from curious_explorer.errors import AnalysisFailed, IdentificationFailed
from curious_explorer.pipeline import ExplorationPipeline, ExplorationRequest
from curious_explorer.pipeline.parts import UNAVAILABLE_DESCRIPTION, filter_part_names, placeholder_parts

from conftest import FakeAI, fake_image, make_analysis, view_of


def run(ai, request):
    statuses = []
    item = asyncio.run(ExplorationPipeline(ai).run(request, on_status=statuses.append))
    return item, statuses


def stages(statuses):
    return [(s["stage"], s["message"]) for s in statuses]


# ─────────────────────────────────────────────────────────────
# Synthesis modes
# ─────────────────────────────────────────────────────────────

def test_full_mode_renders_three_views():
    ai = FakeAI()
    item, _ = run(ai, ExplorationRequest(query="Car", mode="full"))

    assert item["images"] == {
        "assembled": fake_image("assembled"),
        "cutaway": fake_image("cutaway"),
        "exploded": fake_image("exploded"),
    }
    # Detail views reference the assembled render
    detail_refs = [ref for _, view, ref in ai.called("generate_image") if view != "assembled"]
    assert detail_refs == [fake_image("assembled")] * 2


def test_full_mode_detail_views_render_concurrently():
    class OverlapAI(FakeAI):
        """Each detail render waits until the other one has started."""

        def __init__(self):
            super().__init__()
            self.in_flight = 0
            self.peak = 0
            self.both_started = None

        async def generate_image(self, prompt, reference_image=None):
            if view_of(prompt) == "assembled":
                return await super().generate_image(prompt, reference_image)

            if self.both_started is None:
                self.both_started = asyncio.Event()
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
            if self.in_flight == 2:
                self.both_started.set()
            # A sequential render never gets here twice and times out
            await asyncio.wait_for(self.both_started.wait(), timeout=1)
            self.in_flight -= 1
            return await super().generate_image(prompt, reference_image)

    ai = OverlapAI()
    item, _ = run(ai, ExplorationRequest(query="Car", mode="full"))

    assert ai.peak == 2
    assert item["images"]["cutaway"] == fake_image("cutaway")
    assert item["images"]["exploded"] == fake_image("exploded")
    refs = {view: ref for _, view, ref in ai.called("generate_image") if view != "assembled"}
    assert refs == {"cutaway": fake_image("assembled"), "exploded": fake_image("assembled")}


def test_fast_mode_renders_exploded_only():
    ai = FakeAI()
    item, _ = run(ai, ExplorationRequest(query="Car", mode="fast"))

    assert item["images"] == {"exploded": fake_image("exploded")}
    assert [call[1] for call in ai.called("generate_image")] == ["exploded"]


def test_full_mode_without_assembled_has_no_images():
    ai = FakeAI(failing_views={"assembled"})
    item, _ = run(ai, ExplorationRequest(query="Car", mode="full"))

    assert item["images"] is None
    assert len(ai.called("generate_image")) == 1
    assert ai.called("detect_coordinates") == []
    assert all(part["description"] == UNAVAILABLE_DESCRIPTION for part in item["parts"])


def test_full_mode_failed_detail_falls_back_to_assembled():
    ai = FakeAI(failing_views={"cutaway"})
    item, _ = run(ai, ExplorationRequest(query="Car", mode="full"))

    assert item["images"]["cutaway"] == fake_image("assembled")
    assert item["images"]["exploded"] == fake_image("exploded")


def test_fast_mode_failure_has_no_images():
    ai = FakeAI(failing_views={"exploded"})
    item, _ = run(ai, ExplorationRequest(query="Car", mode="fast"))
    assert item["images"] is None


def test_reference_image_goes_to_first_render():
    ai = FakeAI()
    run(ai, ExplorationRequest(query="Kettle", mode="full", reference_image="data:image/png;base64,photo"))

    first = ai.called("generate_image")[0]
    assert first[1] == "assembled"
    assert first[2] == "data:image/png;base64,photo"


# ─────────────────────────────────────────────────────────────
# Scan
# ─────────────────────────────────────────────────────────────

def test_scan_uses_detected_coordinates():
    item, _ = run(FakeAI(), ExplorationRequest(query="Car", mode="fast"))

    names = [part["name"] for part in item["parts"]]
    assert names == ["Engine", "Chassis", "Wheels", "Transmission", "Car Seats"]
    assert item["parts"][0]["x"] == 10
    assert item["parts"][0]["y"] == 20
    assert len({part["id"] for part in item["parts"]}) == len(names)


def test_scan_failure_uses_stacked_placement():
    item, _ = run(FakeAI(fail_detect=True), ExplorationRequest(query="Car", mode="fast"))

    assert [(p["x"], p["y"]) for p in item["parts"]] == [(50, 50), (50, 60), (50, 70), (50, 80), (50, 90)]
    assert all(p["description"] == UNAVAILABLE_DESCRIPTION for p in item["parts"])


def test_detected_coordinates_are_clamped():
    class OffCanvasAI(FakeAI):
        async def detect_coordinates(self, image, part_names):
            from curious_explorer.pipeline.capability import DetectedPart
            return [DetectedPart(name="Lid", description="Lid", x=-5, y=140)]

    item, _ = run(OffCanvasAI(), ExplorationRequest(query="Kettle", mode="fast"))
    assert (item["parts"][0]["x"], item["parts"][0]["y"]) == (0, 100)


def test_placeholder_parts():
    parts = placeholder_parts(["A", "B"])
    assert [(p["name"], p["x"], p["y"]) for p in parts] == [("A", 50, 50), ("B", 50, 60)]


def test_filter_part_names_drops_subject_tokens():
    assert filter_part_names("Engine", ["Engine", "Piston"]) == ["Piston"]
    assert filter_part_names("Engine from Car", ["car", "Engine Block"]) == ["Engine Block"]


# ─────────────────────────────────────────────────────────────
# Progress
# ─────────────────────────────────────────────────────────────

def test_full_mode_status_sequence():
    _, statuses = run(FakeAI(), ExplorationRequest(query="Car", mode="full"))

    assert stages(statuses) == [
        ("analyzing", "Analyzing structure of Car..."),
        ("rendering_assembled", "Constructing base model..."),
        ("rendering_details", "Rendering cutaway and exploded views..."),
        ("scanning", "Calibrating component locations..."),
    ]
    assert all(s["isGenerating"] for s in statuses)
    assert statuses[1]["currentFacts"] == ["Car fact one", "Car fact two", "Car fact three"]


def test_fast_mode_status_sequence():
    _, statuses = run(FakeAI(), ExplorationRequest(query="Car", mode="fast"))

    assert stages(statuses) == [
        ("analyzing", "Analyzing structure of Car..."),
        ("rendering_assembled", "Generating schematic..."),
        ("scanning", "Calibrating component locations..."),
    ]


def test_child_request_reports_display_name():
    _, statuses = run(FakeAI(), ExplorationRequest(
        query="Engine from Car", display_name="Engine", parent_id="car", mode="fast", depth=1,
    ))
    assert statuses[0]["message"] == "Analyzing structure of Engine..."


# ─────────────────────────────────────────────────────────────
# Identify / analyze / compile
# ─────────────────────────────────────────────────────────────

def test_image_origin_identifies_then_analyzes():
    ai = FakeAI(identified="Car")
    item, statuses = run(ai, ExplorationRequest(reference_image="data:image/png;base64,photo", identify=True, mode="fast"))

    assert item["name"] == "Car"
    assert ai.called("analyze") == [("analyze", "Car")]
    assert stages(statuses)[:2] == [
        ("analyzing", "Scanning image for object identification..."),
        ("analyzing", "Analyzing structure of Car..."),
    ]


def test_identification_failure_raises():
    with pytest.raises(IdentificationFailed):
        run(FakeAI(fail_identify=True), ExplorationRequest(reference_image="data:image/png;base64,x", identify=True))


def test_analysis_failure_raises_without_rendering():
    ai = FakeAI(fail_analyze=True)
    with pytest.raises(AnalysisFailed):
        run(ai, ExplorationRequest(query="Car"))
    assert ai.called("generate_image") == []


def test_unexpected_analysis_error_is_wrapped():
    class BrokenAI(FakeAI):
        async def analyze(self, query, options):
            raise RuntimeError("socket closed")

    with pytest.raises(AnalysisFailed):
        run(BrokenAI(), ExplorationRequest(query="Car"))


def test_compiled_root_item():
    item, _ = run(FakeAI(), ExplorationRequest(query="Car", mode="fast"))

    assert item["rootId"] == item["id"]
    assert "parentId" not in item
    assert item["depth"] == 0
    assert item["children"] == []
    assert item["category"] == "Mechanical"
    assert item["characteristics"] == [{"label": "Mass", "value": "1 kg"}]
    assert item["timestamp"] > 0


def test_child_item_keeps_context_name():
    ai = FakeAI(analyses={"Engine from Car": make_analysis("V8 Engine")})
    item, _ = run(ai, ExplorationRequest(
        query="Engine from Car", display_name="Engine", parent_id="car", mode="fast", depth=1,
    ))

    assert item["name"] == "Engine from Car"
    assert item["parentId"] == "car"
    assert item["depth"] == 1


def test_root_item_takes_analysis_name():
    ai = FakeAI(analyses={"car": make_analysis("Car")})
    item, _ = run(ai, ExplorationRequest(query="car", mode="fast"))
    assert item["name"] == "Car"
