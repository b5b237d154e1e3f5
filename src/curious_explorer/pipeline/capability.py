"""
AI capability boundary.

The pipeline talks to the generative service only through `AICapability`.
Structured payloads are validated into pydantic models here, so malformed
responses fail at the boundary instead of leaking into the tree.
"""
from typing import Optional, Protocol

from pydantic import BaseModel, Field, field_validator

from curious_explorer.explorer.state import GenerationOptions


class Characteristic(BaseModel):
    label: str
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, value):
        # Specs like calories come back as numbers
        if isinstance(value, (int, float)):
            return str(value)
        return value


class AnalysisResult(BaseModel):
    """Structure analysis of one object."""
    name: str = Field(description="Canonical name of the object")
    category: str = Field(description="Category such as Food, Electronics, Biological, Mechanical")
    description: str = Field(description="Brief technical description, max 20 words")
    part_names: list[str] = Field(
        description="5-7 distinct major internal components visible in an exploded view"
    )
    facts: list[str] = Field(description="3-5 short, interesting technical facts")
    characteristics: list[Characteristic] = Field(
        description="3-6 key characteristics or specs relevant to the category"
    )


class DetectedPart(BaseModel):
    """One component located on the exploded view."""
    name: str = Field(description="The exact name from the provided list")
    description: str = Field(description="One-sentence visual description in this image")
    x: float = Field(description="Center X, 0 = left edge, 100 = right edge")
    y: float = Field(description="Center Y, 0 = top edge, 100 = bottom edge")


class DetectedParts(BaseModel):
    parts: list[DetectedPart]


class AICapability(Protocol):
    """What the pipeline needs from the AI service."""

    async def identify_object(self, image: str) -> str:
        """Name the main object in a data-URL image. Raises IdentificationFailed."""
        ...

    async def analyze(self, query: str, options: GenerationOptions) -> AnalysisResult:
        """Raises AnalysisFailed on service error or malformed payload."""
        ...

    async def generate_image(self, prompt: str, reference_image: Optional[str] = None) -> Optional[str]:
        """Return a data URL, or None. Never raises."""
        ...

    async def detect_coordinates(self, image: str, part_names: list[str]) -> list[DetectedPart]:
        """Return located parts, or [] on failure. Never raises."""
        ...
