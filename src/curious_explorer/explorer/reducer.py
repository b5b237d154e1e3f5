"""
Session reducer.

The session never assigns into its state directly; it dispatches an Action
and replaces its state with `reduce(state, action)`. The reducer is pure and
handles every ActionType explicitly.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .state import (
    DETAIL_LEVELS,
    GENERATION_MODES,
    PERSPECTIVES,
    STYLES,
    ExplorerState,
    create_initial_state,
    idle_status,
)
from .tree import find_path, remove_root, upsert_root


class ActionType(str, Enum):
    UPDATE_SESSION = "UPDATE_SESSION"
    INIT_COLLECTION = "INIT_COLLECTION"
    REMOVE_FROM_COLLECTION = "REMOVE_FROM_COLLECTION"
    LOAD_FROM_COLLECTION = "LOAD_FROM_COLLECTION"
    SET_STATUS = "SET_STATUS"
    NAVIGATE_TO = "NAVIGATE_TO"
    SET_GENERATION_MODE = "SET_GENERATION_MODE"
    SET_GENERATION_OPTIONS = "SET_GENERATION_OPTIONS"
    CONFIGURE_ACCESS = "CONFIGURE_ACCESS"
    RESET = "RESET"
    RECONFIGURE = "RECONFIGURE"


@dataclass(frozen=True)
class Action:
    type: ActionType
    payload: Any = None


_OPTION_VALUES = {
    "perspective": PERSPECTIVES,
    "style": STYLES,
    "detailLevel": DETAIL_LEVELS,
}


def validate_options(options: dict) -> dict:
    """Reject unknown option keys or values before they reach the reducer."""
    for key, value in options.items():
        allowed = _OPTION_VALUES.get(key)
        if allowed is None:
            raise ValueError(f"Unknown generation option '{key}'")
        if value not in allowed:
            raise ValueError(f"Invalid {key} '{value}'. Expected one of: {', '.join(allowed)}")
    return options


def _cleared(state: ExplorerState, is_configured: bool, is_offline: bool) -> ExplorerState:
    fresh = create_initial_state(state["generationMode"], state["collection"])
    return {
        **fresh,
        "generationOptions": state["generationOptions"],
        "isConfigured": is_configured,
        "isOffline": is_offline,
    }


def reduce(state: ExplorerState, action: Action) -> ExplorerState:
    kind = action.type
    payload = action.payload

    if kind is ActionType.UPDATE_SESSION:
        return {
            **state,
            "currentItem": payload["currentItem"],
            "history": list(payload["history"]),
            "collection": upsert_root(state["collection"], payload["root"]),
        }

    if kind is ActionType.INIT_COLLECTION:
        return {**state, "collection": list(payload)}

    if kind is ActionType.REMOVE_FROM_COLLECTION:
        return {**state, "collection": remove_root(state["collection"], payload)}

    if kind is ActionType.LOAD_FROM_COLLECTION:
        return {
            **state,
            "currentItem": payload,
            "history": [payload],
            "status": idle_status(),
        }

    if kind is ActionType.SET_STATUS:
        return {**state, "status": dict(payload)}

    if kind is ActionType.NAVIGATE_TO:
        if not state["history"]:
            return state
        new_path = find_path(state["history"][0], payload)
        if not new_path:
            return state
        return {**state, "currentItem": new_path[-1], "history": new_path}

    if kind is ActionType.SET_GENERATION_MODE:
        if payload not in GENERATION_MODES:
            raise ValueError(f"Invalid generation mode '{payload}'. Expected 'fast' or 'full'")
        return {**state, "generationMode": payload}

    if kind is ActionType.SET_GENERATION_OPTIONS:
        validate_options(payload)
        return {**state, "generationOptions": {**state["generationOptions"], **payload}}

    if kind is ActionType.CONFIGURE_ACCESS:
        return {**state, "isConfigured": True, "isOffline": bool(payload["isOffline"])}

    if kind is ActionType.RESET:
        return _cleared(state, state["isConfigured"], state["isOffline"])

    if kind is ActionType.RECONFIGURE:
        return _cleared(state, False, False)

    raise ValueError(f"Unknown action type: {kind!r}")
