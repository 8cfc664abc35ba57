"""Flat storage records — the snapshot shape exchanged with the storage layer."""

from __future__ import annotations
from datetime import datetime, timezone
from pydantic import BaseModel, Field

from .geometry import Point2D


class NodeData(BaseModel):
    id: str
    position: Point2D
    connected_wall_ids: list[str] = []


class WallData(BaseModel):
    id: str
    start_node_id: str
    end_node_id: str
    start_point: Point2D
    end_point: Point2D
    thickness: float
    height: float


class DoorData(BaseModel):
    id: str
    wall_id: str
    position: float     # Fraction of wall length from the wall start (0-1)
    width: float
    height: float
    open_direction: str = "left"
    is_flipped: bool = False
    number: int | None = None
    color: str = "#8B4513"


class WindowData(BaseModel):
    id: str
    wall_id: str
    position: float     # Fraction of wall length from the wall start (0-1)
    width: float
    height: float
    sill_height: float
    open_direction: str = "left"
    is_flipped: bool = False
    number: int | None = None
    color: str = "#FF69B4"


class RoomData(BaseModel):
    id: str
    wall_ids: list[str]
    name: str = ""
    area: float = 0.0


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProjectMetadata(BaseModel):
    id: str = "default"
    name: str = "Untitled"
    version: str = "1.0.0"
    created: str = Field(default_factory=_now)
    last_modified: str = Field(default_factory=_now)
    author: str | None = None
    description: str | None = None


class ProjectSettings(BaseModel):
    scale: float = 1.0
    units: str = "cm"
    grid_size: float = 10.0
    snap_to_grid: bool = False
    default_wall_height: float = 280.0
    default_wall_thickness: float = 10.0
    default_door_width: float = 100.0
    default_door_height: float = 210.0
    default_window_width: float = 100.0
    default_window_height: float = 150.0
    default_window_sill_height: float = 90.0


class CanvasData(BaseModel):
    nodes: list[NodeData] = []
    walls: list[WallData] = []
    doors: list[DoorData] = []
    windows: list[WindowData] = []
    rooms: list[RoomData] = []


class ProjectData(BaseModel):
    """Complete project snapshot."""
    metadata: ProjectMetadata = Field(default_factory=ProjectMetadata)
    settings: ProjectSettings = Field(default_factory=ProjectSettings)
    canvas: CanvasData = Field(default_factory=CanvasData)
