"""
Exploration pipeline graph.

Flow:
    START → (image origin?) → identify → analyze → synthesize → scan → compile → END
                    └──────── (text) ──────┘

Stage failures:
- identify / analyze raise and end the run (no partial item)
- synthesize / scan degrade: missing images, synthetic hotspots

Progress is reported through the `on_status` callable passed in the run
config; every node reports once it is done, synthesize also reports between
the assembled render and the detail renders.
"""
import asyncio
import time
import uuid
from typing import Callable, Literal, Optional

from langchain_core.runnables import RunnableConfig
from langgraph.graph import StateGraph, START, END

from curious_explorer.config import debug
from curious_explorer.errors import (
    AnalysisFailed,
    ExplorationError,
    IdentificationFailed,
    ScanUnavailable,
    SynthesisUnavailable,
)
from curious_explorer.explorer.state import ExploredItem, GenerationStatus, ItemImages
from .capability import AICapability
from .parts import compile_parts, filter_part_names, placeholder_parts
from .prompts import (
    build_anchor_block,
    build_assembled_prompt,
    build_cutaway_prompt,
    build_exploded_from_assembled_prompt,
    build_exploded_prompt,
)
from .state import ExplorationRequest, PipelineState, create_initial_state

StatusCallback = Callable[[GenerationStatus], None]


def _status(stage: str, message: str, facts: Optional[list[str]] = None) -> GenerationStatus:
    status: GenerationStatus = {"isGenerating": True, "stage": stage, "message": message}
    if facts is not None:
        status["currentFacts"] = list(facts)
    return status


def _report(config: RunnableConfig, status: GenerationStatus) -> None:
    on_status = (config or {}).get("configurable", {}).get("on_status")
    if on_status:
        on_status(status)


def initial_status(request: ExplorationRequest) -> GenerationStatus:
    if request.identify:
        return _status("analyzing", "Scanning image for object identification...")
    return _status("analyzing", f"Analyzing structure of {request.label}...")


class ExplorationPipeline:
    """Runs one exploration request end to end against an AI capability."""

    def __init__(self, ai: AICapability):
        self.ai = ai
        self.graph = self.build()

    # ─────────────────────────────────────────────────────────
    # Nodes
    # ─────────────────────────────────────────────────────────

    async def identify_node(self, state: PipelineState, config: RunnableConfig) -> dict:
        """Name the object in the captured image."""
        image = state.get("reference_image")
        if not image:
            raise IdentificationFailed("No image provided for identification.")

        try:
            name = (await self.ai.identify_object(image)).strip()
        except ExplorationError:
            raise
        except Exception as e:
            print(f"   ⚠️  Object identification failed: {e}", flush=True)
            raise IdentificationFailed() from e

        if not name:
            raise IdentificationFailed()

        print(f"   👁️  Identified: {name}", flush=True)
        status = _status("analyzing", f"Analyzing structure of {name}...")
        _report(config, status)
        return {
            "identified_name": name,
            "query": name,
            "display_name": name,
            "status": status,
        }

    async def analyze_node(self, state: PipelineState, config: RunnableConfig) -> dict:
        """Structure analysis: name, category, parts, facts, specs."""
        query = state["query"]
        try:
            analysis = await self.ai.analyze(query, state["options"])
        except ExplorationError:
            raise
        except Exception as e:
            print(f"   ⚠️  Structure analysis failed: {e}", flush=True)
            raise AnalysisFailed() from e

        # Nested items keep the strict context name so "Ice Cubes" under
        # "Ice Lemon Tea" does not come back as "Ice Lemon Tea with Ice Cubes"
        subject = query if state.get("parent_id") else (analysis.name.strip() or query)

        print(f"   🔍 Analyzed: {subject} ({analysis.category}, {len(analysis.part_names)} parts)", flush=True)

        message = "Constructing base model..." if state["mode"] == "full" else "Generating schematic..."
        status = _status("rendering_assembled", message, analysis.facts)
        _report(config, status)
        return {"analysis": analysis, "subject": subject, "status": status}

    async def synthesize_node(self, state: PipelineState, config: RunnableConfig) -> dict:
        """Render the views. Never fails the run; missing images are a normal outcome."""
        subject = state["subject"]
        analysis = state["analysis"]
        part_names = filter_part_names(subject, analysis.part_names)
        anchor = build_anchor_block(state["options"])
        reference = state.get("reference_image")

        if state["mode"] == "fast":
            images = await self._synthesize_fast(subject, part_names, anchor, reference)
        else:
            images = await self._synthesize_full(subject, part_names, anchor, reference, analysis.facts, config)

        if images is None:
            print(f"   ⚠️  {SynthesisUnavailable.message} Continuing without visuals.", flush=True)
        else:
            debug(f"   🖼️  Rendered views: {', '.join(sorted(images))}")

        status = _status("scanning", "Calibrating component locations...", analysis.facts)
        _report(config, status)
        return {"images": images, "status": status}

    async def scan_node(self, state: PipelineState, config: RunnableConfig) -> dict:
        """Locate parts on the exploded view, or fall back to stacked hotspots."""
        part_names = state["analysis"].part_names
        images = state.get("images") or {}
        exploded = images.get("exploded")

        detected = []
        if exploded:
            try:
                detected = await self.ai.detect_coordinates(exploded, part_names)
            except Exception as e:
                print(f"   ⚠️  Coordinate detection failed: {e}", flush=True)
                detected = []

        if detected:
            parts = compile_parts(detected)
            debug(f"   📍 Located {len(parts)} parts")
        else:
            print(f"   ⚠️  {ScanUnavailable.message} Using stacked placement.", flush=True)
            parts = placeholder_parts(part_names)

        return {"parts": parts}

    def compile_node(self, state: PipelineState) -> dict:
        """Assemble the final item. Tree placement is the caller's decision."""
        analysis = state["analysis"]
        item_id = str(uuid.uuid4())

        item: ExploredItem = {
            "id": item_id,
            "rootId": item_id,
            "name": state["subject"],
            "category": analysis.category or "Unknown",
            "description": analysis.description or "No description.",
            "images": state.get("images"),
            "parts": state.get("parts") or [],
            "facts": list(analysis.facts),
            "characteristics": [c.model_dump() for c in analysis.characteristics],
            "children": [],
            "depth": state.get("depth", 0),
            "timestamp": int(time.time() * 1000),
        }
        if state.get("parent_id"):
            item["parentId"] = state["parent_id"]

        return {"item": item}

    # ─────────────────────────────────────────────────────────
    # Synthesis helpers
    # ─────────────────────────────────────────────────────────

    async def _generate(self, prompt: str, reference: Optional[str] = None) -> Optional[str]:
        try:
            return await self.ai.generate_image(prompt, reference)
        except Exception as e:
            print(f"   ⚠️  Image generation failed for prompt: {prompt[:50]!r}: {e}", flush=True)
            return None

    async def _synthesize_fast(
        self,
        subject: str,
        part_names: list[str],
        anchor: str,
        reference: Optional[str],
    ) -> Optional[ItemImages]:
        prompt = build_exploded_prompt(subject, part_names, anchor, has_reference=bool(reference))
        exploded = await self._generate(prompt, reference)
        if not exploded:
            return None
        return {"exploded": exploded}

    async def _synthesize_full(
        self,
        subject: str,
        part_names: list[str],
        anchor: str,
        reference: Optional[str],
        facts: list[str],
        config: RunnableConfig,
    ) -> Optional[ItemImages]:
        assembled = await self._generate(
            build_assembled_prompt(subject, anchor, has_reference=bool(reference)),
            reference,
        )
        if not assembled:
            return None

        _report(config, _status("rendering_details", "Rendering cutaway and exploded views...", facts))

        # Both detail views reference the assembled render, not each other
        cutaway, exploded = await asyncio.gather(
            self._generate(build_cutaway_prompt(subject, anchor), assembled),
            self._generate(build_exploded_from_assembled_prompt(subject, part_names, anchor), assembled),
        )

        return {
            "assembled": assembled,
            "cutaway": cutaway or assembled,
            "exploded": exploded or assembled,
        }

    # ─────────────────────────────────────────────────────────
    # Graph
    # ─────────────────────────────────────────────────────────

    @staticmethod
    def route_entry(state: PipelineState) -> Literal["identify", "analyze"]:
        return "identify" if state.get("identify") else "analyze"

    def build(self):
        builder = StateGraph(PipelineState)

        builder.add_node("identify", self.identify_node)
        builder.add_node("analyze", self.analyze_node)
        builder.add_node("synthesize", self.synthesize_node)
        builder.add_node("scan", self.scan_node)
        builder.add_node("compile", self.compile_node)

        builder.add_conditional_edges(START, self.route_entry, ["identify", "analyze"])
        builder.add_edge("identify", "analyze")
        builder.add_edge("analyze", "synthesize")
        builder.add_edge("synthesize", "scan")
        builder.add_edge("scan", "compile")
        builder.add_edge("compile", END)

        return builder.compile()

    # ─────────────────────────────────────────────────────────
    # Run
    # ─────────────────────────────────────────────────────────

    async def run(self, request: ExplorationRequest, on_status: Optional[StatusCallback] = None) -> ExploredItem:
        """
        Execute one exploration request.

        Args:
            request: What to explore and how
            on_status: Called with each progress status, in order

        Returns:
            The compiled item (depth from the request, rootId = own id)

        Raises:
            ExplorationError: IdentificationFailed or AnalysisFailed; nothing
                is returned in that case
        """
        config: RunnableConfig = {"configurable": {"on_status": on_status}}
        if on_status:
            on_status(initial_status(request))

        print(f"\n🧭 Exploring: {request.label} ({request.mode} mode)", flush=True)

        final_state: dict = dict(create_initial_state(request))
        async for chunk in self.graph.astream(final_state, config=config, stream_mode="updates"):
            for node_name, update in chunk.items():
                debug(f"   ✓ {node_name}")
                if update:
                    final_state.update(update)

        item = final_state.get("item")
        if item is None:
            raise ExplorationError("Pipeline finished without compiling an item.")

        print(f"✓ Compiled: {item['name']} ({len(item['parts'])} parts)", flush=True)
        return item
