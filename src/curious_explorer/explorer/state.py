"""
Explorer State Definitions

Items are plain JSON-compatible dicts. The same shape is held in memory,
written to storage and produced by export, so keys keep their wire names
(`rootId`, `parentId`, `currentFacts`, ...).

## Key Concept: One Tree Per Root

A root item carries its whole exploration in `children`. The collection
holds roots only; storage is keyed by root id. Trees are treated as
immutable values: every change builds a new root (see tree.py), so a
`history` snapshot stays valid after later mutations.
"""
from typing import Literal, Optional
from typing_extensions import NotRequired, TypedDict


# ─────────────────────────────────────────────────────────────
# Item
# ─────────────────────────────────────────────────────────────

class ItemPart(TypedDict):
    """A hotspot on the exploded view."""
    id: str
    name: str
    description: str
    x: float                    # 0-100, 0 = left edge
    y: float                    # 0-100, 0 = top edge


class ItemImages(TypedDict, total=False):
    """Generated views as data URLs. `exploded` is always present."""
    assembled: str
    cutaway: str
    exploded: str


class ItemCharacteristic(TypedDict):
    label: str
    value: str


class ExploredItem(TypedDict):
    """One node of an exploration tree."""
    id: str
    rootId: str                 # ID of the top-level ancestor
    parentId: NotRequired[str]  # Absent for roots
    name: str
    category: str
    description: str
    images: NotRequired[Optional[ItemImages]]
    parts: list[ItemPart]
    facts: list[str]
    characteristics: list[ItemCharacteristic]
    children: list["ExploredItem"]
    depth: int
    timestamp: int              # Epoch milliseconds


# ─────────────────────────────────────────────────────────────
# Generation
# ─────────────────────────────────────────────────────────────

Stage = Literal[
    "idle",
    "analyzing",
    "rendering_assembled",
    "rendering_details",
    "scanning",
    "complete",
    "error",
]

GenerationMode = Literal["fast", "full"]
PerspectiveType = Literal["General", "Industrial", "Scientific", "Conceptual"]
StyleType = Literal["Default", "Schematic", "Drawing"]
DetailLevelType = Literal["Simple", "Normal", "Detailed"]

GENERATION_MODES = ("fast", "full")
PERSPECTIVES = ("General", "Industrial", "Scientific", "Conceptual")
STYLES = ("Default", "Schematic", "Drawing")
DETAIL_LEVELS = ("Simple", "Normal", "Detailed")


class GenerationStatus(TypedDict, total=False):
    isGenerating: bool
    stage: Stage
    message: str
    currentFacts: list[str]     # Facts to cycle through while rendering


class GenerationOptions(TypedDict):
    perspective: PerspectiveType
    style: StyleType
    detailLevel: DetailLevelType


# ─────────────────────────────────────────────────────────────
# Session
# ─────────────────────────────────────────────────────────────

class ExplorerState(TypedDict):
    """Everything the session owns. Only the reducer produces new values."""
    currentItem: Optional[ExploredItem]
    history: list[ExploredItem]         # Linear path from root to current
    collection: list[ExploredItem]      # Saved roots, most recent first
    status: GenerationStatus
    generationMode: GenerationMode
    generationOptions: GenerationOptions
    isConfigured: bool
    isOffline: bool


def idle_status() -> GenerationStatus:
    return {"isGenerating": False, "stage": "idle"}


def default_options() -> GenerationOptions:
    return {"perspective": "General", "style": "Default", "detailLevel": "Normal"}


def create_initial_state(
    generation_mode: GenerationMode = "full",
    collection: Optional[list[ExploredItem]] = None,
) -> ExplorerState:
    """Create the state a fresh session starts from."""
    if generation_mode not in GENERATION_MODES:
        generation_mode = "full"
    return ExplorerState(
        currentItem=None,
        history=[],
        collection=list(collection or []),
        status=idle_status(),
        generationMode=generation_mode,
        generationOptions=default_options(),
        isConfigured=False,
        isOffline=False,
    )


def active_root(state: ExplorerState) -> Optional[ExploredItem]:
    """history[0] is always the root of the active exploration."""
    history = state["history"]
    return history[0] if history else None
