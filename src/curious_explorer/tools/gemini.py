"""
Gemini capability for the exploration pipeline.

Wraps the Gemini API for the four things the pipeline needs:
- identify_object: vision, single object name
- analyze: structured analysis (pydantic schema)
- generate_image: image generation, optionally from a reference image
- detect_coordinates: vision, part centers on the exploded view

Usage:
    from curious_explorer.tools.gemini import GeminiCapability

    ai = GeminiCapability()
    result = await ai.analyze("Seed from Avocado", options)
"""
import re
from typing import Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from curious_explorer.config import Config, debug
from curious_explorer.errors import AnalysisFailed, IdentificationFailed
from curious_explorer.explorer.state import GenerationOptions
from curious_explorer.pipeline.capability import AnalysisResult, DetectedPart, DetectedParts
from curious_explorer.pipeline.prompts import IDENTIFY_PROMPT, build_analysis_prompt, build_scan_prompt
from .images import bytes_to_data_url, data_url_to_bytes


_FENCE = re.compile(r"```(?:json)?")


def clean_json(text: str) -> str:
    """Strip markdown code fences the model sometimes wraps JSON in."""
    return _FENCE.sub("", text or "").strip()


def _image_part(data_url: str) -> types.Part:
    data, mime_type = data_url_to_bytes(data_url)
    return types.Part.from_bytes(data=data, mime_type=mime_type)


class GeminiCapability:
    """AICapability backed by google-genai's async client."""

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key or Config.GEMINI_API_KEY
        self._client: Optional[genai.Client] = None

    # ─────────────────────────────────────────────────────────────
    # Client Setup
    # ─────────────────────────────────────────────────────────────

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def set_api_key(self, api_key: str) -> None:
        """Use a user-supplied key from now on."""
        self._api_key = api_key
        self._client = None

    def get_genai_client(self) -> genai.Client:
        """Get configured Gemini client."""
        if not self._api_key:
            raise ValueError("GEMINI_API_KEY is not set. Add it to your .env file or configure access.")
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    # ─────────────────────────────────────────────────────────────
    # Identification (Vision)
    # ─────────────────────────────────────────────────────────────

    async def identify_object(self, image: str) -> str:
        try:
            client = self.get_genai_client()
            response = await client.aio.models.generate_content(
                model=Config.VISION_MODEL,
                contents=[_image_part(image), IDENTIFY_PROMPT],
            )
        except Exception as e:
            print(f"Object identification failed: {e}")
            raise IdentificationFailed() from e

        return (response.text or "").strip() or "Unknown Object"

    # ─────────────────────────────────────────────────────────────
    # Analysis
    # ─────────────────────────────────────────────────────────────

    async def analyze(self, query: str, options: GenerationOptions) -> AnalysisResult:
        try:
            client = self.get_genai_client()
            response = await client.aio.models.generate_content(
                model=Config.ANALYSIS_MODEL,
                contents=build_analysis_prompt(query, options),
                config={
                    "response_mime_type": "application/json",
                    "response_json_schema": AnalysisResult.model_json_schema(),
                },
            )
        except Exception as e:
            print(f"Structure analysis failed: {e}")
            raise AnalysisFailed() from e

        try:
            result = AnalysisResult.model_validate_json(clean_json(response.text or "{}"))
        except ValidationError as e:
            print(f"Structure analysis returned malformed data: {e}")
            raise AnalysisFailed() from e

        if not result.name.strip():
            result = result.model_copy(update={"name": query})
        return result

    # ─────────────────────────────────────────────────────────────
    # Image Generation
    # ─────────────────────────────────────────────────────────────

    async def generate_image(self, prompt: str, reference_image: Optional[str] = None) -> Optional[str]:
        """
        Generate one square image.

        Args:
            prompt: Detailed description of the view to render
            reference_image: Optional data URL the render should follow

        Returns:
            PNG data URL, or None when the model returns no image or errors
        """
        if not self.is_configured:
            return None

        contents: list = [prompt]
        if reference_image:
            contents.insert(0, _image_part(reference_image))

        try:
            client = self.get_genai_client()
            response = await client.aio.models.generate_content(
                model=Config.IMAGE_MODEL,
                contents=contents,
                config=types.GenerateContentConfig(
                    response_modalities=["TEXT", "IMAGE"],
                    image_config=types.ImageConfig(
                        aspect_ratio=Config.IMAGE_ASPECT_RATIO,
                        image_size=Config.IMAGE_SIZE,
                    ),
                ),
            )
        except Exception as e:
            print(f"Image generation failed for prompt: {prompt[:50]!r}: {e}")
            return None

        return _response_image(response)

    # ─────────────────────────────────────────────────────────────
    # Scanning (Vision)
    # ─────────────────────────────────────────────────────────────

    async def detect_coordinates(self, image: str, part_names: list[str]) -> list[DetectedPart]:
        if not image or not self.is_configured:
            return []

        try:
            client = self.get_genai_client()
            response = await client.aio.models.generate_content(
                model=Config.VISION_MODEL,
                contents=[_image_part(image), build_scan_prompt(part_names)],
                config={
                    "response_mime_type": "application/json",
                    "response_json_schema": DetectedParts.model_json_schema(),
                },
            )
            result = DetectedParts.model_validate_json(clean_json(response.text or '{"parts": []}'))
        except Exception as e:
            print(f"Coordinate detection failed: {e}")
            return []

        return result.parts


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

def _response_image(response) -> Optional[str]:
    """Extract the first inline image from a Gemini response as a data URL."""
    for part in response.parts or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return bytes_to_data_url(inline.data, inline.mime_type or "image/png")

    text_parts = [p.text for p in response.parts or [] if getattr(p, "text", None)]
    if text_parts:
        debug(f"   Image generation returned text only: {' '.join(text_parts)[:120]}")
    return None
