"""
HTTP layer for the explorer session.

Usage:
    python -m uvicorn curious_explorer.backend.server:app --reload --port 8000
"""

from .adapter import SSE_CONTENT_TYPE, encode_event, history_summary, stream_exploration
from .server import app

__all__ = [
    "SSE_CONTENT_TYPE",
    "encode_event",
    "history_summary",
    "stream_exploration",
    "app",
]
