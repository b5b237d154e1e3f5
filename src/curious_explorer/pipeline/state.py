"""
Exploration Pipeline State

One graph run turns one ExplorationRequest into one compiled item:
identify? → analyze → synthesize → scan → compile
"""
from dataclasses import dataclass, field
from typing import Optional
from typing_extensions import TypedDict

from curious_explorer.explorer.state import (
    ExploredItem,
    GenerationMode,
    GenerationOptions,
    GenerationStatus,
    ItemImages,
    ItemPart,
    default_options,
)
from .capability import AnalysisResult


@dataclass
class ExplorationRequest:
    """
    Input for one pipeline run.

    `query` is the effective (context-built) query. For image-origin runs it
    may be empty; the identify stage fills it in. `display_name` is what
    progress messages call the subject.
    """
    query: str = ""
    display_name: Optional[str] = None
    parent_id: Optional[str] = None
    reference_image: Optional[str] = None
    identify: bool = False
    mode: GenerationMode = "full"
    options: GenerationOptions = field(default_factory=default_options)
    depth: int = 0

    @property
    def label(self) -> str:
        return self.display_name or self.query


class PipelineState(TypedDict, total=False):
    """State passed between graph nodes."""
    # ─────────────────────────────────────────────────────────
    # Request
    # ─────────────────────────────────────────────────────────
    query: str
    display_name: str
    parent_id: Optional[str]
    reference_image: Optional[str]
    identify: bool
    mode: GenerationMode
    options: GenerationOptions
    depth: int

    # ─────────────────────────────────────────────────────────
    # Stage outputs
    # ─────────────────────────────────────────────────────────
    identified_name: Optional[str]
    analysis: Optional[AnalysisResult]
    subject: Optional[str]              # Name the item is compiled under
    images: Optional[ItemImages]
    parts: Optional[list[ItemPart]]
    item: Optional[ExploredItem]

    # Last progress report; streamed to the caller after each node
    status: Optional[GenerationStatus]


def create_initial_state(request: ExplorationRequest) -> PipelineState:
    """Create initial state for one graph invocation."""
    return PipelineState(
        query=request.query,
        display_name=request.label,
        parent_id=request.parent_id,
        reference_image=request.reference_image,
        identify=request.identify,
        mode=request.mode,
        options=request.options,
        depth=request.depth,
        identified_name=None,
        analysis=None,
        subject=None,
        images=None,
        parts=None,
        item=None,
        status=None,
    )
