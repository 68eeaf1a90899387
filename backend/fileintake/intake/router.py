"""FastAPI router exposing intake sessions.

HTTP endpoints:
    - POST   /intake/sessions: Open a session (optional config overrides)
    - GET    /intake/{session_id}: Current selection
    - POST   /intake/{session_id}/files: Picker selection (multipart ``files``)
    - PATCH  /intake/{session_id}/files/{entry_id}: Upload-workflow status change
    - GET    /intake/{session_id}/files/{entry_id}/preview: Image preview bytes
    - DELETE /intake/{session_id}/files/{entry_id}: Remove one file
    - DELETE /intake/{session_id}/files: Clear the selection
    - DELETE /intake/{session_id}: Close the session

WebSocket /ws/intake/{session_id} carries drag-and-drop events.

Client -> server:
    {"type": "dragenter" | "dragover" | "dragleave"}
    {"type": "drop", "files": [{"name": ..., "type": ..., "data": <base64>}]}

Server -> client:
    {"type": "files", "files": [...], "count": n}   on connect and after changes
    {"type": "state", "state": "idle" | "drag_active"}   after every event
    {"type": "notification", "level": ..., "message": ...}   per message
    {"type": "error", "error": ...}   malformed event
"""
import base64
import json
import logging
from typing import Iterable, List, Optional

from fastapi import APIRouter, File, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.responses import Response
from pydantic import ValidationError

from .dragdrop import EventType, IntakeEvent
from .errors import SessionLimitError, SessionNotFoundError, StoreClosedError
from .schemas import (
    BatchResponse,
    DroppedFilePayload,
    FileEntry,
    FileEntryView,
    IntakeConfigOverrides,
    RawFile,
    SelectionResponse,
    SessionCreated,
    StatusUpdate,
)
from .session import IntakeSession, IntakeSessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["intake"])


def _registry() -> IntakeSessionRegistry:
    return IntakeSessionRegistry.get_instance()


def _session(session_id: str) -> IntakeSession:
    try:
        return _registry().get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Intake session not found")


def _views(entries: Iterable[FileEntry]) -> List[FileEntryView]:
    return [FileEntryView.from_entry(e) for e in entries]


def _selection(session: IntakeSession) -> SelectionResponse:
    snapshot = session.store.snapshot()
    return SelectionResponse(
        session_id=session.session_id,
        files=_views(snapshot),
        count=len(snapshot),
        max_files=session.config.max_files,
    )


def _parse_event(raw: str) -> IntakeEvent:
    """Build an IntakeEvent from a WebSocket text frame.

    Raises:
        ValueError: Non-JSON text, unknown event type, bad payload or
            invalid base64.
    """
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")
    event_type = EventType(data.get("type"))
    if event_type == EventType.CHANGE:
        raise ValueError("Picker selections must be uploaded over HTTP")
    files = []
    for item in data.get("files") or []:
        payload = DroppedFilePayload(**item)
        files.append(RawFile(
            name=payload.name,
            mime_type=payload.type,
            content=base64.b64decode(payload.data, validate=True),
        ))
    return IntakeEvent(type=event_type, files=files)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@router.post("/intake/sessions", response_model=SessionCreated, status_code=201)
async def create_session(overrides: Optional[IntakeConfigOverrides] = None):
    """Open a new intake session.

    Args:
        overrides: Optional config fields replacing the configured defaults.

    Returns:
        The session ID, its effective config and the picker accept attribute.

    Raises:
        HTTPException 422: If the overrides produce an invalid config
        HTTPException 429: If the session limit is reached
    """
    values = overrides.model_dump(exclude_none=True) if overrides else None
    try:
        session = _registry().create(values)
    except SessionLimitError as e:
        raise HTTPException(status_code=429, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    return SessionCreated(
        session_id=session.session_id,
        config=session.config,
        accept=session.config.accept_attribute,
    )


@router.get("/intake/{session_id}", response_model=SelectionResponse)
async def get_selection(session_id: str):
    """Return the session's current selection in insertion order."""
    return _selection(_session(session_id))


@router.post("/intake/{session_id}/files", response_model=BatchResponse)
async def add_files(session_id: str, files: List[UploadFile] = File(...)):
    """Add a picker selection to the session.

    Each file is validated and deduplicated; rejections come back alongside
    one user-facing message per rejection and one aggregate success message.
    """
    session = _session(session_id)

    raw_files = []
    for upload in files:
        content = await upload.read()
        raw_files.append(RawFile(
            name=upload.filename or "unnamed",
            mime_type=upload.content_type or "",
            content=content,
        ))

    result = session.controller.handle_picker_change(
        IntakeEvent(type=EventType.CHANGE, files=raw_files)
    )
    notifications = session.sink.drain()
    selection = _selection(session)

    logger.info(
        "[intake] Session %s picker batch of %d: %d accepted",
        session_id, len(raw_files), len(result.accepted) if result else 0,
    )
    return BatchResponse(
        **selection.model_dump(),
        accepted=_views(result.accepted) if result else [],
        rejected=list(result.rejected) if result else [],
        notifications=notifications,
    )


@router.patch("/intake/{session_id}/files/{entry_id}", response_model=FileEntryView)
async def update_status(session_id: str, entry_id: str, body: StatusUpdate):
    """Record an upload status change reported by the upload workflow."""
    session = _session(session_id)
    updated = session.store.set_status(entry_id, body.status)
    if updated is None:
        raise HTTPException(status_code=404, detail="File not found")
    return FileEntryView.from_entry(updated)


@router.get("/intake/{session_id}/files/{entry_id}/preview")
async def get_preview(session_id: str, entry_id: str):
    """Serve an image entry's preview bytes."""
    session = _session(session_id)
    entry = session.store.get(entry_id)
    if entry is None or entry.preview is None:
        raise HTTPException(status_code=404, detail="Preview not found")
    return Response(content=entry.preview.read(), media_type=entry.preview.mime_type)


@router.delete("/intake/{session_id}/files/{entry_id}", response_model=SelectionResponse)
async def remove_file(session_id: str, entry_id: str):
    """Remove one file. Removing an unknown ID leaves the selection unchanged."""
    session = _session(session_id)
    session.store.remove(entry_id)
    return _selection(session)


@router.delete("/intake/{session_id}/files", response_model=SelectionResponse)
async def clear_files(session_id: str):
    """Remove every file from the selection."""
    session = _session(session_id)
    session.store.clear()
    return _selection(session)


@router.delete("/intake/{session_id}")
async def close_session(session_id: str):
    """Close a session and release everything it holds."""
    try:
        released = _registry().close(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Intake session not found")
    return {"session_id": session_id, "released_count": released}


# ---------------------------------------------------------------------------
# WebSocket
# ---------------------------------------------------------------------------


@router.websocket("/ws/intake/{session_id}")
async def intake_events(websocket: WebSocket, session_id: str):
    """Drag-and-drop event stream for one session."""
    try:
        session = _registry().get(session_id)
    except SessionNotFoundError:
        logger.warning("[WS] Unknown intake session %s; closing", session_id)
        await websocket.close(code=1008)
        return

    await websocket.accept()
    logger.info("[WS] Intake events connected for session %s", session_id)

    async def send_files() -> None:
        snapshot = session.store.snapshot()
        await websocket.send_json({
            "type": "files",
            "files": [v.model_dump(mode="json") for v in _views(snapshot)],
            "count": len(snapshot),
        })

    try:
        await send_files()

        while True:
            raw = await websocket.receive_text()
            try:
                event = _parse_event(raw)
            except (ValueError, TypeError) as e:
                await websocket.send_json({"type": "error", "error": str(e)})
                continue

            revision = session.revision
            try:
                result = session.controller.handle(event)
            except StoreClosedError:
                await websocket.send_json({"type": "error", "error": "Intake session closed"})
                await websocket.close(code=1000)
                return
            logger.debug("[WS] Session %s event=%s state=%s", session_id, event.type.value, session.controller.state.value)

            await websocket.send_json({"type": "state", "state": session.controller.state.value})
            if result is not None:
                for notification in session.sink.drain():
                    await websocket.send_json({"type": "notification", **notification.model_dump()})
            if session.revision != revision:
                await send_files()

    except WebSocketDisconnect:
        logger.info("[WS] Intake events disconnected for session %s", session_id)
