"""Graph entities — nodes, walls and room definitions.

Relations are id-based: a wall names its two nodes, a node lists the ids of
the walls it joins. The graph (`floorplan.core.graph.WallGraph`) owns both and
keeps the two sides consistent.
"""

from __future__ import annotations
import uuid
from typing import Protocol
from pydantic import BaseModel, Field

from .geometry import (
    Point2D, Vector2D, angle_of, direction_from_points,
    distance_to_segment, project_onto_segment,
)
from .snapshot import NodeData, WallData, RoomData


def new_id() -> str:
    return str(uuid.uuid4())


class RenderLayer(Protocol):
    """Drawing surface supplied by the rendering layer."""

    def draw(self, entity: object) -> None:
        ...


class Selectable(BaseModel):
    """Selection/highlight flags shared by everything drawn on the canvas."""
    is_selected: bool = Field(default=False, exclude=True)
    is_highlighted: bool = Field(default=False, exclude=True)

    def set_selected(self, selected: bool) -> None:
        self.is_selected = selected

    def set_highlighted(self, highlighted: bool) -> None:
        self.is_highlighted = highlighted

    def render(self, layer: RenderLayer) -> None:
        layer.draw(self)


class Node(Selectable):
    """Graph vertex: a wall endpoint or junction."""
    id: str = Field(default_factory=new_id)
    position: Point2D
    connected_wall_ids: list[str] = []

    def add_wall(self, wall_id: str) -> None:
        if wall_id not in self.connected_wall_ids:
            self.connected_wall_ids.append(wall_id)

    def remove_wall(self, wall_id: str) -> None:
        if wall_id in self.connected_wall_ids:
            self.connected_wall_ids.remove(wall_id)

    @property
    def degree(self) -> int:
        return len(self.connected_wall_ids)

    def contains_point(self, point: Point2D, radius: float) -> bool:
        return self.position.distance_to(point) <= radius

    def to_storage_data(self) -> NodeData:
        return NodeData(
            id=self.id,
            position=self.position.model_copy(),
            connected_wall_ids=list(self.connected_wall_ids),
        )

    @classmethod
    def from_storage_data(cls, data: NodeData) -> Node:
        return cls(
            id=data.id,
            position=data.position.model_copy(),
            connected_wall_ids=list(data.connected_wall_ids),
        )


class Wall(Selectable):
    """Graph edge between two nodes.

    `start_point`/`end_point` are caches of the node positions; the graph
    refreshes them whenever a node moves.
    """
    id: str = Field(default_factory=new_id)
    start_node_id: str
    end_node_id: str
    start_point: Point2D
    end_point: Point2D
    thickness: float = 10.0
    height: float = 280.0

    @property
    def length(self) -> float:
        return self.start_point.distance_to(self.end_point)

    @property
    def direction(self) -> Vector2D:
        return direction_from_points(self.start_point, self.end_point)

    @property
    def angle(self) -> float:
        return angle_of(self.start_point, self.end_point)

    @property
    def node_ids(self) -> tuple[str, str]:
        return (self.start_node_id, self.end_node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in (self.start_node_id, self.end_node_id)

    def other_node_id(self, node_id: str) -> str:
        if node_id == self.start_node_id:
            return self.end_node_id
        if node_id == self.end_node_id:
            return self.start_node_id
        raise ValueError(f"Node '{node_id}' is not an endpoint of wall '{self.id}'")

    def endpoint_of(self, node_id: str) -> Point2D:
        return self.start_point if node_id == self.start_node_id else self.end_point

    def closest_point(self, point: Point2D) -> Point2D:
        return project_onto_segment(point, self.start_point, self.end_point)

    def contains_point(self, point: Point2D) -> bool:
        """Hit test: distance to the clamped segment within half the thickness."""
        if self.length == 0:
            return False
        return distance_to_segment(point, self.start_point, self.end_point) <= self.thickness / 2

    def update_start_point(self, point: Point2D) -> None:
        self.start_point = point.model_copy()

    def update_end_point(self, point: Point2D) -> None:
        self.end_point = point.model_copy()

    def to_storage_data(self) -> WallData:
        return WallData(
            id=self.id,
            start_node_id=self.start_node_id,
            end_node_id=self.end_node_id,
            start_point=self.start_point.model_copy(),
            end_point=self.end_point.model_copy(),
            thickness=self.thickness,
            height=self.height,
        )

    @classmethod
    def from_storage_data(cls, data: WallData) -> Wall:
        return cls(
            id=data.id,
            start_node_id=data.start_node_id,
            end_node_id=data.end_node_id,
            start_point=data.start_point.model_copy(),
            end_point=data.end_point.model_copy(),
            thickness=data.thickness,
            height=data.height,
        )


class Room(BaseModel):
    """Room definition: an ordered loop of wall ids.

    Area is not stored authoritatively; the room store recomputes it from
    the current wall geometry.
    """
    id: str = Field(default_factory=new_id)
    name: str = ""
    wall_ids: list[str] = []
    area: float = 0.0   # Square metres, refreshed by RoomStore

    def to_storage_data(self) -> RoomData:
        return RoomData(id=self.id, wall_ids=list(self.wall_ids), name=self.name, area=self.area)

    @classmethod
    def from_storage_data(cls, data: RoomData) -> Room:
        return cls(id=data.id, name=data.name, wall_ids=list(data.wall_ids), area=data.area)
