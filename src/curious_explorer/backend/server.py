"""
FastAPI server exposing the exploration session.

Run:
    uvicorn curious_explorer.backend.server:app --reload --port 8000
"""
from contextlib import asynccontextmanager
from typing import Any, Literal, Optional

from fastapi import Body, Depends, FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from curious_explorer.errors import ImportMalformed, PersistenceFailed
from curious_explorer.explorer.session import ExplorerSession, get_session
from curious_explorer.explorer.transfer import backup_filename
from curious_explorer.explorer.tree import search_collection
from curious_explorer.tools.images import image_to_data_url
from .adapter import SSE_CONTENT_TYPE, history_summary, stream_exploration


@asynccontextmanager
async def lifespan(app: FastAPI):
    await get_session().initialize()
    yield
    await get_session().wait_for_pending_writes()


app = FastAPI(
    title="Curious Explorer API",
    description="Recursive object exploration backed by generated imagery",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
    "Connection": "keep-alive",
}


# ─────────────────────────────────────────────────────────────
# Request Models
# ─────────────────────────────────────────────────────────────

class ExploreRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(min_length=1)
    parent_id: Optional[str] = None
    reference_image: Optional[str] = None


class ConfigureRequest(BaseModel):
    api_key: Optional[str] = None


class SettingsRequest(BaseModel):
    mode: Optional[Literal["fast", "full"]] = None
    perspective: Optional[str] = None
    style: Optional[str] = None
    detailLevel: Optional[str] = None


# ─────────────────────────────────────────────────────────────
# Exploration
# ─────────────────────────────────────────────────────────────

@app.post("/explore")
async def explore(request: ExploreRequest, session: ExplorerSession = Depends(get_session)):
    """Explore a root (no parent_id) or a part. Streams status events as SSE."""
    return StreamingResponse(
        stream_exploration(
            session,
            session.explore(request.query, request.parent_id, request.reference_image),
        ),
        media_type=SSE_CONTENT_TYPE,
        headers=SSE_HEADERS,
    )


@app.post("/explore/image")
async def explore_image(file: UploadFile = File(...), session: ExplorerSession = Depends(get_session)):
    """Identify the object in an uploaded photo and explore it."""
    from io import BytesIO
    from PIL import Image, UnidentifiedImageError

    data = await file.read()
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            image = image_to_data_url(img)
    except UnidentifiedImageError:
        raise HTTPException(status_code=400, detail="Upload is not a readable image")

    return StreamingResponse(
        stream_exploration(session, session.explore_from_image(image)),
        media_type=SSE_CONTENT_TYPE,
        headers=SSE_HEADERS,
    )


# ─────────────────────────────────────────────────────────────
# Session
# ─────────────────────────────────────────────────────────────

@app.get("/state")
async def get_state(session: ExplorerSession = Depends(get_session)):
    return session.state


@app.post("/navigate/{item_id}")
async def navigate(item_id: str, session: ExplorerSession = Depends(get_session)):
    current = session.navigate_to(item_id)
    if current is None or current["id"] != item_id:
        raise HTTPException(status_code=404, detail="Item not in the active exploration")
    return {"currentItem": current, "history": history_summary(session)}


@app.post("/load/{root_id}")
async def load(
    root_id: str,
    target_id: Optional[str] = None,
    session: ExplorerSession = Depends(get_session),
):
    current = session.open_item(root_id, target_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Exploration not found")
    return {"currentItem": current, "history": history_summary(session)}


@app.post("/reset")
async def reset(session: ExplorerSession = Depends(get_session)):
    session.reset()
    return {"status": session.status}


@app.post("/configure")
async def configure(request: ConfigureRequest, session: ExplorerSession = Depends(get_session)):
    session.configure_access(request.api_key)
    return {"isConfigured": session.state["isConfigured"], "isOffline": session.state["isOffline"]}


@app.put("/settings")
async def update_settings(request: SettingsRequest, session: ExplorerSession = Depends(get_session)):
    options = request.model_dump(exclude_none=True)
    mode = options.pop("mode", None)
    try:
        if mode:
            session.set_generation_mode(mode)
        if options:
            session.set_generation_options(**options)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {
        "generationMode": session.state["generationMode"],
        "generationOptions": session.state["generationOptions"],
    }


# ─────────────────────────────────────────────────────────────
# Collection
# ─────────────────────────────────────────────────────────────

@app.get("/collection")
async def get_collection(q: Optional[str] = Query(None), session: ExplorerSession = Depends(get_session)):
    return {"explorations": search_collection(session.collection, q or "")}


@app.delete("/explorations/{item_id}")
async def delete_exploration(item_id: str, session: ExplorerSession = Depends(get_session)):
    if not await session.remove_exploration(item_id):
        raise HTTPException(status_code=502, detail="Failed to delete item from database.")
    return {"deleted": item_id, "status": session.status}


@app.get("/export")
async def export(session: ExplorerSession = Depends(get_session)):
    return Response(
        content=await session.export_all(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{backup_filename()}"'},
    )


@app.post("/import")
async def import_explorations(payload: Any = Body(...), session: ExplorerSession = Depends(get_session)):
    try:
        count = await session.import_all(payload)
    except ImportMalformed as e:
        raise HTTPException(status_code=400, detail=e.message)
    except PersistenceFailed as e:
        raise HTTPException(status_code=503, detail=e.message)
    return {"imported": count, "total": len(session.collection)}


# ─────────────────────────────────────────────────────────────
# Health
# ─────────────────────────────────────────────────────────────

@app.get("/health")
async def health(session: ExplorerSession = Depends(get_session)):
    return {
        "status": "ok",
        "offline": session.state["isOffline"],
        "generating": session.is_generating,
    }
