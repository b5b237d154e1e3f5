"""
Exploration Pipeline Package

identify (image origin only) → analyze → synthesize → scan → compile
"""
from .capability import AICapability, AnalysisResult, Characteristic, DetectedPart
from .graph import ExplorationPipeline, initial_status
from .state import ExplorationRequest, PipelineState, create_initial_state

__all__ = [
    "AICapability",
    "AnalysisResult",
    "Characteristic",
    "DetectedPart",
    "ExplorationPipeline",
    "ExplorationRequest",
    "PipelineState",
    "create_initial_state",
    "initial_status",
]
