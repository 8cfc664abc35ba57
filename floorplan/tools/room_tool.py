"""Rectangular room tool."""

from __future__ import annotations
import logging
from enum import Enum

from floorplan.models import CanvasEvent, Point2D, PreviewData
from floorplan.commands.base import Command, CompositeCommand
from floorplan.commands.graph_commands import CreateNodeCommand, CreateWallCommand
from floorplan.commands.opening_commands import CreateRoomCommand
from floorplan.tools.base import Tool, ToolManifest
from floorplan.tools.constraints import constrain_point

logger = logging.getLogger(__name__)


class RoomMode(str, Enum):
    IDLE = "idle"
    DRAWING = "drawing"


def rectangle_corners(a: Point2D, b: Point2D) -> list[Point2D]:
    """Corners of the axis-aligned rectangle spanned by a and b, rounded to whole units."""
    x0, x1 = sorted((round(a.x), round(b.x)))
    y0, y1 = sorted((round(a.y), round(b.y)))
    return [
        Point2D(x=x0, y=y0), Point2D(x=x1, y=y0),
        Point2D(x=x1, y=y1), Point2D(x=x0, y=y1),
    ]


class RoomTool(Tool):
    """Drag a rectangle; release creates four walls and a room as one undo step."""

    manifest = ToolManifest(
        id="room", name="Room", icon="room", tooltip="Draw rectangular rooms (R)",
        section="draw", order=20, shortcut="r",
    )

    def __init__(self, session) -> None:
        super().__init__(session)
        self.mode = RoomMode.IDLE
        self.anchor: Point2D | None = None

    def reset(self) -> None:
        self.mode = RoomMode.IDLE
        self.anchor = None

    def on_canvas_event(self, event: CanvasEvent) -> None:
        params = self.session.params
        point = constrain_point(None, event.position, event.modifiers, params)
        if event.type == "mousedown" and event.button == 0 and self.mode is RoomMode.IDLE:
            self.mode = RoomMode.DRAWING
            self.anchor = point
        elif event.type == "mousemove" and self.mode is RoomMode.DRAWING:
            corners = rectangle_corners(self.anchor, point)
            self.preview(PreviewData(kind="room", points=corners, valid=self._is_valid(corners)))
        elif event.type == "mouseup" and self.mode is RoomMode.DRAWING:
            corners = rectangle_corners(self.anchor, point)
            self.clear_preview()
            self.reset()
            if not self._is_valid(corners):
                logger.warning("Room rejected: sides shorter than minimum wall length")
                return
            self._create(corners)

    def _is_valid(self, corners: list[Point2D]) -> bool:
        min_len = self.session.params.min_wall_length
        return corners[0].distance_to(corners[1]) >= min_len and \
            corners[1].distance_to(corners[2]) >= min_len

    def _create(self, corners: list[Point2D]) -> None:
        session = self.session
        service = session.commands
        steps: list[Command] = []
        node_ids: list[str] = []
        for corner in corners:
            existing = session.validation.find_nearest_node(corner)
            if existing is not None and existing.id not in node_ids:
                node_ids.append(existing.id)
                continue
            create = CreateNodeCommand(service, corner)
            steps.append(create)
            node_ids.append(create.node_id)

        wall_ids: list[str] = []
        for i, start_id in enumerate(node_ids):
            end_id = node_ids[(i + 1) % len(node_ids)]
            existing_wall = session.graph.find_wall_between(start_id, end_id)
            if existing_wall is not None:
                wall_ids.append(existing_wall.id)
                continue
            create_wall = CreateWallCommand(
                service, start_id, end_id,
                thickness=session.params.wall_thickness, height=session.params.wall_height,
            )
            steps.append(create_wall)
            wall_ids.append(create_wall.wall_id)

        name = f"Room {len(session.rooms) + 1}"
        steps.append(CreateRoomCommand(service, wall_ids, name=name))
        self.run(CompositeCommand(service, steps, name="Draw room"))
