"""API request/response schemas."""

from __future__ import annotations
from typing import Any
from pydantic import BaseModel, model_validator

from floorplan.models import CanvasEvent, KeyEvent


class ToolInfo(BaseModel):
    id: str
    name: str
    section: str
    order: int
    shortcut: str | None = None
    tooltip: str = ""
    active: bool = False


class EventRequest(BaseModel):
    """One input event from the frontend: pointer or key, not both."""
    canvas: CanvasEvent | None = None
    key: KeyEvent | None = None

    @model_validator(mode="after")
    def exactly_one_payload(self) -> EventRequest:
        if (self.canvas is None) == (self.key is None):
            raise ValueError("send exactly one of 'canvas' or 'key'")
        return self


class SelectionState(BaseModel):
    node_ids: list[str] = []
    wall_ids: list[str] = []
    door_ids: list[str] = []
    window_ids: list[str] = []


class StateResponse(BaseModel):
    counts: dict[str, int]
    active_tool: str | None
    can_undo: bool
    can_redo: bool
    selection: SelectionState


class EventResponse(BaseModel):
    """Events emitted while handling the request, plus the resulting state."""
    events: list[dict[str, Any]]
    state: StateResponse
