"""
Session controller.

Owns the single ExplorerState for one user and turns user actions (explore,
navigate, load, delete, reset, import/export) into reducer actions, pipeline
runs and storage calls.

Concurrency:
- One exploration in flight at a time; further requests are rejected
- Storage writes after an exploration are detached tasks; the new item is
  exposed before they finish and a failed write is only printed
"""
import asyncio
import threading
from pathlib import Path
from typing import Callable, Optional

from curious_explorer.config import Config, debug
from curious_explorer.db.store import ExplorationStore, create_store
from curious_explorer.errors import ExplorationError, OfflineBlocked
from curious_explorer.pipeline import ExplorationPipeline, ExplorationRequest
from .context import build_context_query
from .reducer import Action, ActionType, reduce
from .state import (
    ExploredItem,
    ExplorerState,
    GenerationMode,
    GenerationStatus,
    active_root,
    create_initial_state,
)
from .transfer import backup_filename, export_json, parse_import, validate_import
from .tree import attach_child, find_matching_child, find_path

Listener = Callable[[ExplorerState], None]


class ExplorerSession:
    """
    One user's exploration session.

    Args:
        ai: AI capability (defaults to Gemini)
        store: Persistence gateway (defaults to create_store())
        pipeline: Pre-built pipeline; built from `ai` when omitted
        generation_mode: Initial mode, "fast" or "full"
    """

    def __init__(
        self,
        ai=None,
        store: Optional[ExplorationStore] = None,
        pipeline: Optional[ExplorationPipeline] = None,
        generation_mode: Optional[GenerationMode] = None,
    ):
        if ai is None and pipeline is None:
            from curious_explorer.tools.gemini import GeminiCapability
            ai = GeminiCapability()
        self.ai = ai if ai is not None else pipeline.ai
        self.pipeline = pipeline or ExplorationPipeline(self.ai)
        self.store = store if store is not None else create_store()

        self._state = create_initial_state(generation_mode or Config.DEFAULT_GENERATION_MODE)
        self._busy = False
        self._pending_writes: set[asyncio.Task] = set()
        self._listeners: list[Listener] = []

        if getattr(self.ai, "is_configured", True):
            self.dispatch(Action(ActionType.CONFIGURE_ACCESS, {"isOffline": False}))

    # ─────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────

    @property
    def state(self) -> ExplorerState:
        return self._state

    @property
    def current_item(self) -> Optional[ExploredItem]:
        return self._state["currentItem"]

    @property
    def history(self) -> list[ExploredItem]:
        return self._state["history"]

    @property
    def collection(self) -> list[ExploredItem]:
        return self._state["collection"]

    @property
    def status(self) -> GenerationStatus:
        return self._state["status"]

    @property
    def is_generating(self) -> bool:
        return self._busy or bool(self._state["status"].get("isGenerating"))

    def dispatch(self, action: Action) -> ExplorerState:
        self._state = reduce(self._state, action)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` after every transition. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_status(self, status: GenerationStatus) -> None:
        self.dispatch(Action(ActionType.SET_STATUS, status))

    def _fail(self, message: str) -> None:
        self._set_status({"isGenerating": False, "stage": "error", "message": message})

    # ─────────────────────────────────────────────────────────
    # Explore
    # ─────────────────────────────────────────────────────────

    async def explore(
        self,
        query: str,
        parent_id: Optional[str] = None,
        reference_image: Optional[str] = None,
    ) -> Optional[ExploredItem]:
        """
        Explore `query`, as a new root or as a part of `parent_id`.

        Returns:
            The item now shown (new, or already explored on a memory hit),
            or None if the request was rejected or failed; the failure is
            on `status`.
        """
        query = (query or "").strip()
        if not query:
            raise ValueError("Query must not be empty")

        if self.is_generating:
            print(f"⏳ Exploration in progress. Ignoring request for '{query}'.")
            return None

        root = active_root(self._state)
        parent_path = None
        if parent_id:
            parent_path = find_path(root, parent_id) if root else None
            if not parent_path:
                self._fail(f"Cannot explore '{query}': part {parent_id} is not in the active exploration.")
                return None

            existing = find_matching_child(parent_path[-1], query)
            if existing:
                print(f"🧠 Memory hit: '{query}' → {existing['name']}")
                self.dispatch(Action(ActionType.NAVIGATE_TO, existing["id"]))
                return self.current_item

        if self._state["isOffline"]:
            self._fail(OfflineBlocked.message)
            return None

        request = ExplorationRequest(
            query=build_context_query(parent_path or [], query),
            display_name=query,
            parent_id=parent_id,
            reference_image=reference_image,
            mode=self._state["generationMode"],
            options=dict(self._state["generationOptions"]),
            depth=parent_path[-1]["depth"] + 1 if parent_path else 0,
        )
        return await self._run(request, root if parent_id else None)

    async def explore_from_image(self, image: str) -> Optional[ExploredItem]:
        """Identify the object in a data-URL image and explore it as a new root."""
        if self.is_generating:
            print("⏳ Exploration in progress. Ignoring image request.")
            return None

        if self._state["isOffline"]:
            self._fail(OfflineBlocked.message)
            return None

        request = ExplorationRequest(
            reference_image=image,
            identify=True,
            mode=self._state["generationMode"],
            options=dict(self._state["generationOptions"]),
        )
        return await self._run(request, None)

    async def explore_from_file(self, image_path: str) -> Optional[ExploredItem]:
        """Load a photo from disk and explore it."""
        from curious_explorer.tools.images import load_image_as_data_url

        image = await asyncio.to_thread(load_image_as_data_url, image_path)
        return await self.explore_from_image(image)

    async def _run(self, request: ExplorationRequest, root: Optional[ExploredItem]) -> Optional[ExploredItem]:
        self._busy = True
        try:
            item = await self.pipeline.run(request, on_status=self._set_status)
        except ExplorationError as e:
            print(f"❌ {e.message}")
            self._fail(e.message)
            return None
        except Exception as e:
            print(f"❌ Exploration failed: {e}")
            self._fail("Exploration failed. System Error.")
            return None
        finally:
            self._busy = False

        return self._commit(item, request.parent_id, root)

    def _commit(
        self,
        item: ExploredItem,
        parent_id: Optional[str],
        root: Optional[ExploredItem],
    ) -> Optional[ExploredItem]:
        """
        Merge a compiled item into the tree, collection and storage.

        A child is attached to the root as it is now in the collection, not
        as it was when the run started; deletes and imports may have landed
        in between. If the root or the parent is gone the item is dropped.
        """
        if parent_id:
            current = self._current_root(root["id"])
            if current is None or find_path(current, parent_id) is None:
                print(f"⚠️  Discarding '{item['name']}': its exploration was deleted during the run.")
                self._fail(f"'{item['name']}' was discarded because its exploration was deleted.")
                return None

            item = {**item, "rootId": current["id"], "parentId": parent_id}
            new_root = attach_child(current, parent_id, item)
            history = find_path(new_root, item["id"]) or [new_root, item]
        else:
            new_root = item
            history = [item]

        self.dispatch(Action(ActionType.UPDATE_SESSION, {
            "currentItem": item,
            "history": history,
            "root": new_root,
        }))
        self._schedule_save(new_root)
        self._set_status({"isGenerating": False, "stage": "complete"})
        return item

    def _current_root(self, root_id: str) -> Optional[ExploredItem]:
        """Latest version of a root: the collection entry, else the active one."""
        for entry in self.collection:
            if entry["id"] == root_id:
                return entry
        active = active_root(self._state)
        if active is not None and active["id"] == root_id:
            return active
        return None

    # ─────────────────────────────────────────────────────────
    # Persistence (fire-and-forget)
    # ─────────────────────────────────────────────────────────

    def _schedule_save(self, root: ExploredItem) -> None:
        task = asyncio.create_task(self._save(root))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _save(self, root: ExploredItem) -> None:
        try:
            await asyncio.to_thread(self.store.put, root)
            debug(f"   💾 Saved exploration {root['id'][:8]}...")
        except Exception as e:
            print(f"⚠️  Auto-save failed: {e}")

    async def wait_for_pending_writes(self) -> None:
        """Wait for detached storage writes (shutdown, tests)."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes))

    # ─────────────────────────────────────────────────────────
    # Navigation
    # ─────────────────────────────────────────────────────────

    def navigate_to(self, target_id: str) -> Optional[ExploredItem]:
        """Move within the active exploration. Unknown ids are ignored."""
        self.dispatch(Action(ActionType.NAVIGATE_TO, target_id))
        return self.current_item

    def load_exploration(self, item: ExploredItem) -> ExploredItem:
        """Make a root from the collection the active exploration."""
        self.dispatch(Action(ActionType.LOAD_FROM_COLLECTION, item))
        return item

    def open_item(self, root_id: str, target_id: Optional[str] = None) -> Optional[ExploredItem]:
        """Jump to any node of any saved exploration."""
        root = active_root(self._state)
        if root is None or root["id"] != root_id:
            match = next((item for item in self.collection if item["id"] == root_id), None)
            if match is None:
                return None
            self.load_exploration(match)
        if target_id:
            self.navigate_to(target_id)
        return self.current_item

    def reset(self) -> None:
        self.dispatch(Action(ActionType.RESET))

    def reconfigure(self) -> None:
        self.dispatch(Action(ActionType.RECONFIGURE))

    # ─────────────────────────────────────────────────────────
    # Settings
    # ─────────────────────────────────────────────────────────

    def configure_access(self, api_key: Optional[str] = None) -> None:
        """Go online with `api_key`, or offline (browse only) without one."""
        if api_key:
            if hasattr(self.ai, "set_api_key"):
                self.ai.set_api_key(api_key)
            self.dispatch(Action(ActionType.CONFIGURE_ACCESS, {"isOffline": False}))
        else:
            self.dispatch(Action(ActionType.CONFIGURE_ACCESS, {"isOffline": True}))

    def set_generation_mode(self, mode: GenerationMode) -> None:
        self.dispatch(Action(ActionType.SET_GENERATION_MODE, mode))

    def set_generation_options(self, **options) -> None:
        self.dispatch(Action(ActionType.SET_GENERATION_OPTIONS, options))

    # ─────────────────────────────────────────────────────────
    # Collection
    # ─────────────────────────────────────────────────────────

    async def initialize(self) -> list[ExploredItem]:
        """Load saved explorations from storage."""
        try:
            items = await asyncio.to_thread(self.store.get_all)
        except Exception as e:
            print(f"⚠️  Failed to initialize database: {e}")
            return self.collection
        self.dispatch(Action(ActionType.INIT_COLLECTION, items))
        print(f"📂 Loaded {len(items)} saved explorations")
        return self.collection

    async def remove_exploration(self, item_id: str) -> bool:
        """
        Delete a root and its whole tree.

        Returns:
            False if storage refused the delete (nothing changes in memory)
        """
        try:
            await asyncio.to_thread(self.store.delete, item_id)
        except Exception as e:
            print(f"⚠️  Failed to delete exploration {item_id}: {e}")
            return False

        root = active_root(self._state)
        self.dispatch(Action(ActionType.REMOVE_FROM_COLLECTION, item_id))
        if root is not None and root["id"] == item_id:
            self.reset()
        return True

    async def export_all(self) -> str:
        """Serialize every saved exploration as a JSON array."""
        await self.wait_for_pending_writes()
        try:
            items = await asyncio.to_thread(self.store.get_all)
        except Exception as e:
            print(f"⚠️  Export could not read storage, using in-memory collection: {e}")
            items = self.collection
        return export_json(items)

    async def export_to_file(self, directory: Optional[str] = None) -> Path:
        output_dir = Path(directory) if directory else Config.EXPORT_DIR
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / backup_filename()
        output_path.write_text(await self.export_all(), encoding="utf-8")
        print(f"📦 Exported {len(self.collection)} explorations to {output_path}")
        return output_path

    async def import_all(self, items) -> int:
        """
        Write imported roots to storage, then reload the collection from it.

        Raises:
            ImportMalformed: If `items` is not a list of explorations
            PersistenceFailed: If storage rejected the write
        """
        roots = validate_import(items)
        try:
            await asyncio.to_thread(self.store.bulk_put, roots)
        except Exception as e:
            print(f"⚠️  Import failed: {e}")
            raise

        collection = await asyncio.to_thread(self.store.get_all)
        self.dispatch(Action(ActionType.INIT_COLLECTION, collection))
        print(f"📥 Imported {len(roots)} explorations")
        return len(roots)

    async def import_from_file(self, path: str) -> int:
        text = Path(path).read_text(encoding="utf-8")
        return await self.import_all(parse_import(text))


# ─────────────────────────────────────────────────────────────
# Process-wide session (CLI and server)
# ─────────────────────────────────────────────────────────────

_current_session: Optional[ExplorerSession] = None
_session_lock = threading.Lock()


def get_session() -> ExplorerSession:
    """Get or create the current session."""
    global _current_session
    with _session_lock:
        if _current_session is None:
            _current_session = ExplorerSession()
        return _current_session


def set_session(session: ExplorerSession) -> ExplorerSession:
    """Install a specific session (tests, custom wiring)."""
    global _current_session
    with _session_lock:
        _current_session = session
        return session


def end_session() -> None:
    """Clear the current session."""
    global _current_session
    with _session_lock:
        _current_session = None
