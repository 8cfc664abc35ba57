"""Editor events — a closed, tagged union discriminated on `type`."""

from __future__ import annotations
from typing import Annotated, Literal, Union
from pydantic import BaseModel, Field, TypeAdapter

from .geometry import Point2D


class Modifiers(BaseModel):
    ctrl: bool = False
    shift: bool = False
    alt: bool = False


class CanvasEvent(BaseModel):
    """Normalized pointer input in canvas coordinates."""
    type: Literal["mousedown", "mousemove", "mouseup"]
    position: Point2D
    modifiers: Modifiers = Field(default_factory=Modifiers)
    button: int = 0


class KeyEvent(BaseModel):
    key: str
    modifiers: Modifiers = Field(default_factory=Modifiers)


class PreviewData(BaseModel):
    """Transient geometry a tool wants drawn while an interaction is live."""
    kind: Literal["wall", "node", "door", "window", "room", "move"]
    start: Point2D | None = None
    end: Point2D | None = None
    position: Point2D | None = None
    angle: float | None = None
    width: float | None = None
    wall_id: str | None = None
    points: list[Point2D] = []
    valid: bool = True


# -- graph -----------------------------------------------------------------

class GraphChanged(BaseModel):
    type: Literal["graph:changed"] = "graph:changed"
    nodes: int = 0
    walls: int = 0
    doors: int = 0
    windows: int = 0
    rooms: int = 0


class NodeCreated(BaseModel):
    type: Literal["node:created"] = "node:created"
    node_id: str
    position: Point2D


class NodeUpdated(BaseModel):
    type: Literal["node:updated"] = "node:updated"
    node_id: str
    position: Point2D
    previous_position: Point2D | None = None


class NodeDeleted(BaseModel):
    type: Literal["node:deleted"] = "node:deleted"
    node_id: str


class NodesMerged(BaseModel):
    type: Literal["nodes:merged"] = "nodes:merged"
    source_id: str
    target_id: str
    wall_ids: list[str] = []   # Walls now attached to target in place of source's


class WallCreated(BaseModel):
    type: Literal["wall:created"] = "wall:created"
    wall_id: str
    start_node_id: str
    end_node_id: str


class WallUpdated(BaseModel):
    type: Literal["wall:updated"] = "wall:updated"
    wall_id: str
    thickness: float
    height: float


class WallDeleted(BaseModel):
    type: Literal["wall:deleted"] = "wall:deleted"
    wall_id: str


class WallSplit(BaseModel):
    type: Literal["wall:split"] = "wall:split"
    wall_id: str
    node_id: str
    new_wall_ids: list[str]


class WallMoved(BaseModel):
    type: Literal["wall:moved"] = "wall:moved"
    wall_id: str


class ObjectDeleted(BaseModel):
    type: Literal["object:deleted"] = "object:deleted"
    object_id: str
    kind: Literal["node", "wall", "door", "window", "room"]


# -- openings ----------------------------------------------------------------

class DoorAdded(BaseModel):
    type: Literal["door:added"] = "door:added"
    door_id: str
    number: int


class DoorChanged(BaseModel):
    type: Literal["door:changed"] = "door:changed"
    door_ids: list[str]


class DoorRemoved(BaseModel):
    type: Literal["door:removed"] = "door:removed"
    door_id: str


class DoorCleared(BaseModel):
    type: Literal["door:cleared"] = "door:cleared"


class WindowAdded(BaseModel):
    type: Literal["window:added"] = "window:added"
    window_id: str
    number: int


class WindowChanged(BaseModel):
    type: Literal["window:changed"] = "window:changed"
    window_ids: list[str]


class WindowRemoved(BaseModel):
    type: Literal["window:removed"] = "window:removed"
    window_id: str


class WindowCleared(BaseModel):
    type: Literal["window:cleared"] = "window:cleared"


class RoomChanged(BaseModel):
    type: Literal["room:changed"] = "room:changed"
    room_ids: list[str]


# -- interaction -------------------------------------------------------------

class SelectionChanged(BaseModel):
    type: Literal["selection:changed"] = "selection:changed"
    node_ids: list[str] = []
    wall_ids: list[str] = []
    door_ids: list[str] = []
    window_ids: list[str] = []


class CanvasPreview(BaseModel):
    type: Literal["canvas:preview"] = "canvas:preview"
    tool_id: str
    preview: PreviewData | None = None   # None clears


class CanvasInput(BaseModel):
    type: Literal["canvas:input"] = "canvas:input"
    event: CanvasEvent


class KeyboardKeydown(BaseModel):
    type: Literal["keyboard:keydown"] = "keyboard:keydown"
    key: str
    modifiers: Modifiers = Field(default_factory=Modifiers)


class ToolChanged(BaseModel):
    type: Literal["tool:changed"] = "tool:changed"
    tool_id: str | None
    previous_tool_id: str | None = None


class HistoryChanged(BaseModel):
    type: Literal["history:changed"] = "history:changed"
    can_undo: bool
    can_redo: bool
    size: int
    cursor: int


EditorEvent = Annotated[
    Union[
        GraphChanged, NodeCreated, NodeUpdated, NodeDeleted, NodesMerged,
        WallCreated, WallUpdated, WallDeleted, WallSplit, WallMoved, ObjectDeleted,
        DoorAdded, DoorChanged, DoorRemoved, DoorCleared,
        WindowAdded, WindowChanged, WindowRemoved, WindowCleared,
        RoomChanged, SelectionChanged, CanvasPreview, CanvasInput,
        KeyboardKeydown, ToolChanged, HistoryChanged,
    ],
    Field(discriminator="type"),
]

event_adapter: TypeAdapter[EditorEvent] = TypeAdapter(EditorEvent)
