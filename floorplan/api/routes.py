"""FastAPI route definitions."""

from __future__ import annotations
from typing import Any

from fastapi import APIRouter, HTTPException

from floorplan.models import ProjectData
from floorplan.core.events import WILDCARD
from floorplan.services.session import EditorSession
from floorplan.services.storage import export_project, import_project
from floorplan.api.schemas import (
    EventRequest, EventResponse, SelectionState, StateResponse, ToolInfo,
)

router = APIRouter()

# Shared session instance
_session = EditorSession()


def _state() -> StateResponse:
    selection = _session.selection
    return StateResponse(
        counts=_session.counts(),
        active_tool=_session.tools.active_tool_id,
        can_undo=_session.history.can_undo(),
        can_redo=_session.history.can_redo(),
        selection=SelectionState(
            node_ids=selection.node_ids, wall_ids=selection.wall_ids,
            door_ids=selection.door_ids, window_ids=selection.window_ids,
        ),
    )


def _capture(action) -> list[dict[str, Any]]:
    """Run `action` and collect every event emitted meanwhile."""
    captured: list[dict[str, Any]] = []
    unsubscribe = _session.bus.on(WILDCARD, lambda e: captured.append(e.model_dump(mode="json")))
    try:
        action()
    finally:
        unsubscribe()
    return captured


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/tools", response_model=list[ToolInfo])
async def list_tools() -> list[ToolInfo]:
    """List the tools available in the session."""
    active = _session.tools.active_tool_id
    return [
        ToolInfo(
            id=m.id, name=m.name, section=m.section, order=m.order,
            shortcut=m.shortcut, tooltip=m.tooltip, active=m.id == active,
        )
        for m in _session.tools.available()
    ]


@router.post("/tools/{tool_id}/activate", response_model=StateResponse)
async def activate_tool(tool_id: str) -> StateResponse:
    if not _session.tools.activate(tool_id):
        raise HTTPException(status_code=404, detail=f"Tool '{tool_id}' is not available")
    return _state()


@router.post("/events", response_model=EventResponse)
async def dispatch_event(request: EventRequest) -> EventResponse:
    """Feed one pointer or keyboard event through the active tool."""
    if request.canvas is not None:
        events = _capture(lambda: _session.tools.emit_canvas(request.canvas))
    else:
        events = _capture(lambda: _session.tools.emit_key(request.key))
    return EventResponse(events=events, state=_state())


@router.post("/undo", response_model=EventResponse)
async def undo() -> EventResponse:
    events = _capture(_session.undo)
    return EventResponse(events=events, state=_state())


@router.post("/redo", response_model=EventResponse)
async def redo() -> EventResponse:
    events = _capture(_session.redo)
    return EventResponse(events=events, state=_state())


@router.get("/project", response_model=ProjectData)
async def get_project() -> ProjectData:
    return export_project(_session)


@router.put("/project", response_model=StateResponse)
async def put_project(project: ProjectData) -> StateResponse:
    import_project(_session, project)
    return _state()


@router.get("/state", response_model=StateResponse)
async def get_state() -> StateResponse:
    return _state()
