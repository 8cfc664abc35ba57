"""Openings (doors and windows) hosted by walls.

An opening stores its absolute centre and angle, plus two connector nodes
marking its endpoints along the host wall. Persisted records keep the
position as a fraction of the wall length instead of coordinates.
"""

from __future__ import annotations
import math
from enum import Enum
from pydantic import BaseModel, Field

from .entities import Selectable, Wall, new_id
from .geometry import (
    Point2D, Vector2D, distance_to_segment, normalize_angle,
    project_onto_segment, projection_parameter,
)
from .snapshot import DoorData, WindowData


class OpeningType(str, Enum):
    WINDOW = "window"
    DOOR = "door"


class OpenDirection(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    def toggled(self) -> OpenDirection:
        return OpenDirection.RIGHT if self is OpenDirection.LEFT else OpenDirection.LEFT


class ConnectorNode(BaseModel):
    """Endpoint of an opening, linked to the wall node on the same side."""
    id: str = Field(default_factory=new_id)
    position: Point2D
    wall_node_id: str


class Opening(Selectable):
    """Base for anything cut into a wall."""
    id: str = Field(default_factory=new_id)
    kind: OpeningType
    wall_id: str
    position: Point2D               # Centre, on the wall axis
    angle: float = 0.0              # Radians, along the wall (+pi when flipped)
    width: float
    height: float
    is_flipped: bool = False
    open_direction: OpenDirection = OpenDirection.LEFT
    number: int | None = None       # Ordinal assigned by the owning store
    color: str = "#000000"
    node_a: ConnectorNode
    node_b: ConnectorNode

    @classmethod
    def on_wall(cls, wall: Wall, position: Point2D, **fields) -> Opening:
        """Build an opening centred at `position` and aligned with `wall`."""
        flipped = fields.get("is_flipped", False)
        first, second = wall.start_node_id, wall.end_node_id
        if flipped:
            first, second = second, first
        angle = normalize_angle(wall.angle + (math.pi if flipped else 0.0))
        opening = cls(
            wall_id=wall.id,
            position=position.model_copy(),
            angle=angle,
            node_a=ConnectorNode(position=position.model_copy(), wall_node_id=first),
            node_b=ConnectorNode(position=position.model_copy(), wall_node_id=second),
            **fields,
        )
        opening._align_connectors()
        return opening

    @property
    def label(self) -> str:
        prefix = "Door" if self.kind is OpeningType.DOOR else "Window"
        return f"{prefix}_{self.number}" if self.number is not None else prefix

    @property
    def axis(self) -> Vector2D:
        return Vector2D(x=math.cos(self.angle), y=math.sin(self.angle))

    def _align_connectors(self) -> None:
        half = self.width / 2
        d = self.axis
        self.node_a.position = Point2D(x=self.position.x - d.x * half, y=self.position.y - d.y * half)
        self.node_b.position = Point2D(x=self.position.x + d.x * half, y=self.position.y + d.y * half)

    def endpoints(self) -> tuple[Point2D, Point2D]:
        return (self.node_a.position, self.node_b.position)

    def connectors(self) -> tuple[ConnectorNode, ConnectorNode]:
        return (self.node_a, self.node_b)

    def update_position(self, point: Point2D) -> None:
        """Move the centre; connectors follow symmetrically, width unchanged."""
        self.position = point.model_copy()
        self._align_connectors()

    def update_wall_reference(self, wall: Wall) -> None:
        """Re-host on `wall`, taking its direction as the new angle."""
        self.wall_id = wall.id
        self.angle = normalize_angle(wall.angle + (math.pi if self.is_flipped else 0.0))
        if self.is_flipped:
            self.node_a.wall_node_id = wall.end_node_id
            self.node_b.wall_node_id = wall.start_node_id
        else:
            self.node_a.wall_node_id = wall.start_node_id
            self.node_b.wall_node_id = wall.end_node_id
        self._align_connectors()

    def flip(self) -> None:
        self.node_a, self.node_b = self.node_b, self.node_a
        self.angle = normalize_angle(self.angle + math.pi)
        self.open_direction = self.open_direction.toggled()
        self.is_flipped = not self.is_flipped
        self._align_connectors()

    def contains_point(self, point: Point2D, padding: float = 0.0) -> bool:
        return distance_to_segment(point, self.node_a.position, self.node_b.position) <= padding

    def connector_at(self, point: Point2D, radius: float) -> ConnectorNode | None:
        best: ConnectorNode | None = None
        best_dist = radius
        for connector in self.connectors():
            d = connector.position.distance_to(point)
            if d <= best_dist and (best is None or d < best_dist):
                best = connector
                best_dist = d
        return best

    def centre_for_connector(self, connector_id: str, point: Point2D, wall: Wall) -> Point2D:
        """Centre that puts the given connector on the wall point nearest `point`."""
        target = project_onto_segment(point, wall.start_point, wall.end_point)
        half = self.width / 2
        d = self.axis
        if connector_id == self.node_a.id:
            return Point2D(x=target.x + d.x * half, y=target.y + d.y * half)
        if connector_id == self.node_b.id:
            return Point2D(x=target.x - d.x * half, y=target.y - d.y * half)
        raise ValueError(f"Connector '{connector_id}' does not belong to opening '{self.id}'")

    def relative_position(self, wall: Wall) -> float:
        return projection_parameter(self.position, wall.start_point, wall.end_point)

    def storage_fields(self, wall: Wall) -> dict:
        return {
            "id": self.id,
            "wall_id": self.wall_id,
            "position": self.relative_position(wall),
            "width": self.width,
            "height": self.height,
            "open_direction": self.open_direction.value,
            "is_flipped": self.is_flipped,
            "number": self.number,
            "color": self.color,
        }

    @staticmethod
    def _restore_fields(data: DoorData | WindowData, wall: Wall) -> tuple[Point2D, dict]:
        d = wall.direction
        centre = Point2D(
            x=wall.start_point.x + d.x * data.position,
            y=wall.start_point.y + d.y * data.position,
        )
        fields = {
            "id": data.id,
            "width": data.width,
            "height": data.height,
            "open_direction": OpenDirection(data.open_direction),
            "is_flipped": data.is_flipped,
            "number": data.number,
            "color": data.color,
        }
        return centre, fields


class Door(Opening):
    kind: OpeningType = OpeningType.DOOR
    width: float = 100.0
    height: float = 210.0
    color: str = "#8B4513"

    def to_storage_data(self, wall: Wall) -> DoorData:
        return DoorData(**self.storage_fields(wall))

    @classmethod
    def from_storage_data(cls, data: DoorData, wall: Wall) -> Door:
        centre, fields = cls._restore_fields(data, wall)
        return cls.on_wall(wall, centre, **fields)


class Window(Opening):
    kind: OpeningType = OpeningType.WINDOW
    width: float = 100.0
    height: float = 150.0
    sill_height: float = 90.0
    color: str = "#FF69B4"

    def to_storage_data(self, wall: Wall) -> WindowData:
        return WindowData(sill_height=self.sill_height, **self.storage_fields(wall))

    @classmethod
    def from_storage_data(cls, data: WindowData, wall: Wall) -> Window:
        centre, fields = cls._restore_fields(data, wall)
        return cls.on_wall(wall, centre, sill_height=data.sill_height, **fields)
