"""
Curious Explorer

Name an object (or photograph one) and get back a generated teardown:
assembled, cutaway and exploded views with labelled hotspots. Every part
can be explored in turn, building a tree per exploration.

Usage:
    # Interactive mode
    python -m curious_explorer.main

    # HTTP server
    python -m uvicorn curious_explorer.backend.server:app --port 8000

    # Programmatic
    from curious_explorer import ExplorerSession
    session = ExplorerSession()
    car = await session.explore("Car")
    engine = await session.explore("Engine", parent_id=car["id"])
"""
from .errors import ExplorationError
from .explorer.session import ExplorerSession, end_session, get_session, set_session

__version__ = "0.1.0"

__all__ = ["ExplorationError", "ExplorerSession", "end_session", "get_session", "set_session"]
