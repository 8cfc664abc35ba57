from .geometry import Point2D, Vector2D, direction_from_points
from .entities import Node, Wall, Room, RenderLayer, new_id
from .openings import Opening, Door, Window, OpeningType, OpenDirection, ConnectorNode
from .parameters import EditorParams, EditorConfig
from .events import (
    CanvasEvent, KeyEvent, Modifiers, PreviewData, EditorEvent, event_adapter,
)
from .snapshot import (
    NodeData, WallData, DoorData, WindowData, RoomData,
    ProjectMetadata, ProjectSettings, CanvasData, ProjectData,
)

__all__ = [
    "Point2D", "Vector2D", "direction_from_points",
    "Node", "Wall", "Room", "RenderLayer", "new_id",
    "Opening", "Door", "Window", "OpeningType", "OpenDirection", "ConnectorNode",
    "EditorParams", "EditorConfig",
    "CanvasEvent", "KeyEvent", "Modifiers", "PreviewData", "EditorEvent", "event_adapter",
    "NodeData", "WallData", "DoorData", "WindowData", "RoomData",
    "ProjectMetadata", "ProjectSettings", "CanvasData", "ProjectData",
]
