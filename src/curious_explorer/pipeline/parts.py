"""
Part list helpers: prompt filtering, hotspot compilation and the synthetic
placement used when scanning is unavailable.
"""
import uuid

from curious_explorer.explorer.state import ItemPart
from .capability import DetectedPart

UNAVAILABLE_DESCRIPTION = "Visual analysis unavailable."


def filter_part_names(subject: str, part_names: list[str]) -> list[str]:
    """
    Drop parts that are just a word of the subject itself.

    Exploding "Engine" should not list "Engine" as one of its components.
    Only whole-token equality counts; "Engine Block" is kept.
    """
    subject_tokens = subject.lower().split(" ")
    return [part for part in part_names if part.lower() not in subject_tokens]


def _part_id() -> str:
    return uuid.uuid4().hex


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def placeholder_parts(part_names: list[str]) -> list[ItemPart]:
    """Stack hotspots down the center so the UI always has something to render."""
    return [
        ItemPart(
            id=_part_id(),
            name=name,
            description=UNAVAILABLE_DESCRIPTION,
            x=50,
            y=50 + index * 10,
        )
        for index, name in enumerate(part_names)
    ]


def compile_parts(detected: list[DetectedPart]) -> list[ItemPart]:
    return [
        ItemPart(
            id=_part_id(),
            name=part.name,
            description=part.description,
            x=_clamp(part.x),
            y=_clamp(part.y),
        )
        for part in detected
    ]
