"""
Export / import of the exploration collection.

Exports are a JSON array of root items, exactly as stored. Imports must be
the same shape; anything else is rejected with ImportMalformed before it
reaches storage.
"""
import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from curious_explorer.errors import ImportMalformed
from .state import ExploredItem


class ImportedItem(BaseModel):
    """Minimum shape an imported node must have. Extra keys are kept."""
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    rootId: Optional[str] = None
    depth: Optional[int] = None
    timestamp: int = 0
    children: list["ImportedItem"] = []


_import_adapter = TypeAdapter(list[ImportedItem])


def _complete(node: dict, root_id: str, depth: int) -> ExploredItem:
    """Fill `rootId` and `depth` where the imported node left them out."""
    if node.get("rootId") is None:
        node["rootId"] = root_id
    if node.get("depth") is None:
        node["depth"] = depth
    node["children"] = [_complete(child, root_id, depth + 1) for child in node["children"]]
    return node


def validate_import(payload: Any) -> list[ExploredItem]:
    """
    Check an import payload and return its roots as complete items.

    Missing `children`, `rootId`, `depth` and `timestamp` are filled in, so
    every stored node can be explored under. Unknown keys are kept.

    Raises:
        ImportMalformed: If the payload is not a list of item-shaped dicts
    """
    if not isinstance(payload, list):
        raise ImportMalformed()
    try:
        roots = _import_adapter.validate_python(payload)
    except ValidationError as e:
        raise ImportMalformed(f"Invalid exploration in import: {e.error_count()} problem(s)") from e
    return [_complete(root.model_dump(), root.id, 0) for root in roots]


def parse_import(text: str) -> list[ExploredItem]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportMalformed(f"Import file is not valid JSON: {e.msg}") from e
    return validate_import(payload)


def export_json(items: list[ExploredItem]) -> str:
    return json.dumps(items, indent=2)


def backup_filename(now: Optional[datetime] = None) -> str:
    """curious_explorer_backup_YYYY-MM-DD_HH-MM-SS.json"""
    stamp = (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")
    return f"curious_explorer_backup_{stamp}.json"
