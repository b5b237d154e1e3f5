"""
SSE adapter for exploration runs.

Streams the session's GenerationStatus changes while an exploration runs,
then one final event:
- complete: the item now shown, plus the history path
- error:    the status message
- rejected: another exploration was already running
"""
import asyncio
import json
from typing import AsyncGenerator, Awaitable, Optional

from curious_explorer.config import debug
from curious_explorer.explorer.session import ExplorerSession
from curious_explorer.explorer.state import ExploredItem


SSE_CONTENT_TYPE = "text/event-stream"
HEARTBEAT_INTERVAL = 15  # seconds


def encode_event(event: str, data) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


def history_summary(session: ExplorerSession) -> list[dict]:
    return [{"id": item["id"], "name": item["name"], "depth": item["depth"]} for item in session.history]


async def stream_exploration(
    session: ExplorerSession,
    run: Awaitable[Optional[ExploredItem]],
) -> AsyncGenerator[str, None]:
    """
    Run an exploration coroutine and stream its progress as SSE.

    Args:
        session: The session the coroutine operates on
        run: e.g. session.explore("Engine", parent_id=car_id)

    Yields:
        SSE-formatted events
    """
    queue: asyncio.Queue = asyncio.Queue()
    unsubscribe = session.subscribe(lambda state: queue.put_nowait(state["status"]))

    task = asyncio.ensure_future(run)
    task.add_done_callback(lambda _: queue.put_nowait(None))

    last_status = None
    try:
        while True:
            try:
                status = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_INTERVAL)
            except asyncio.TimeoutError:
                yield ": heartbeat\n\n"
                continue

            if status is None:
                break
            if status == last_status or status.get("stage") in ("complete", "error"):
                continue
            last_status = status
            debug(f"  🔊 SSE: status {status.get('stage')}")
            yield encode_event("status", status)
    finally:
        unsubscribe()

    item = task.result()
    final_status = session.status

    if item is not None:
        yield encode_event("complete", {
            "item": item,
            "history": history_summary(session),
            "status": final_status,
        })
    elif final_status.get("stage") == "error":
        yield encode_event("error", {"message": final_status.get("message", ""), "status": final_status})
    else:
        yield encode_event("rejected", {"message": "An exploration is already in progress."})
