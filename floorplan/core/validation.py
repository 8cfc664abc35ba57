"""Placement and geometry legality checks.

Validators never raise: they return a bool (or the offending object) and
log the reason a candidate was rejected.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Iterable
from shapely.geometry import LineString

from floorplan.models import EditorParams, Node, Opening, OpeningType, Point2D, Wall
from floorplan.models.geometry import EPSILON, is_point_on_line, projection_parameter
from floorplan.core.graph import WallGraph

if TYPE_CHECKING:
    from floorplan.core.stores import DoorStore, WindowStore

logger = logging.getLogger(__name__)


def _crossing_points(line: LineString, other: LineString) -> list[Point2D]:
    """Points where two segments meet; collinear overlaps are ignored."""
    inter = line.intersection(other)
    if inter.is_empty:
        return []
    if inter.geom_type == "Point":
        return [Point2D(x=inter.x, y=inter.y)]
    if inter.geom_type == "MultiPoint":
        return [Point2D(x=g.x, y=g.y) for g in inter.geoms]
    return []


class ValidationService:
    """Checks run by tools before they issue a command."""

    def __init__(
        self,
        graph: WallGraph,
        params: EditorParams | None = None,
        doors: DoorStore | None = None,
        windows: WindowStore | None = None,
    ) -> None:
        self.graph = graph
        self.params = params or graph.params
        self.doors = doors
        self.windows = windows

    # -- nodes and walls ----------------------------------------------------

    def find_nearest_node(self, point: Point2D, exclude_id: str | None = None) -> Node | None:
        return self.graph.find_closest_node(point, self.params.snap_threshold, exclude_id)

    def is_valid_node_position(self, point: Point2D, exclude_id: str | None = None) -> bool:
        """A free position: no other node inside the snap threshold."""
        return self.find_nearest_node(point, exclude_id) is None

    def find_wall_between(self, a_id: str, b_id: str) -> Wall | None:
        return self.graph.find_wall_between(a_id, b_id)

    def wall_defect(self, start_id: str, end_id: str) -> str | None:
        return self.graph.wall_defect(start_id, end_id)

    def is_valid_wall(self, start_id: str, end_id: str) -> bool:
        defect = self.wall_defect(start_id, end_id)
        if defect is not None:
            logger.warning(f"Invalid wall {start_id} -> {end_id}: {defect}")
            return False
        return True

    def is_valid_wall_placement(
        self, start: Point2D, end: Point2D, ignore_node_ids: Iterable[str] = (),
    ) -> bool:
        """Reject a segment that crosses an existing wall; touching at endpoints is fine.

        Walls attached to any of `ignore_node_ids` (the segment's own nodes)
        are not checked.
        """
        if start.distance_to(end) < self.params.min_wall_length:
            logger.warning(f"Wall placement rejected: shorter than {self.params.min_wall_length}")
            return False
        own = set(ignore_node_ids)
        candidate = LineString([(start.x, start.y), (end.x, end.y)])
        for wall in self.graph.get_all_walls():
            if own & set(wall.node_ids):
                continue
            other = LineString([(p.x, p.y) for p in (wall.start_point, wall.end_point)])
            ends = (start, end, wall.start_point, wall.end_point)
            hits = [
                hit for hit in _crossing_points(candidate, other)
                if all(hit.distance_to(p) >= 1e-6 for p in ends)
            ]
            if not hits:
                continue
            logger.warning(f"Wall placement rejected: crosses wall {wall.id}")
            return False
        return True

    def is_valid_split_point(self, wall: Wall, point: Point2D) -> bool:
        """Point lies on the wall and is farther than the snap threshold from both ends."""
        if not is_point_on_line(point, wall.start_point, wall.end_point, self.params.split_tolerance + 0.1):
            logger.warning(f"Split rejected: point not on wall {wall.id}")
            return False
        margin = self.params.snap_threshold
        if point.distance_to(wall.start_point) <= margin or point.distance_to(wall.end_point) <= margin:
            logger.warning(f"Split rejected: point within {margin} of an end of wall {wall.id}")
            return False
        return True

    def is_valid_node_move(self, node_id: str, position: Point2D) -> bool:
        """Every wall on the node keeps minimum length at the new position."""
        for wall in self.graph.walls_of(node_id):
            other = self.graph.get_node(wall.other_node_id(node_id))
            if other is None:
                continue
            if other.position.distance_to(position) < self.params.min_wall_length:
                logger.warning(f"Move rejected: wall {wall.id} would be shorter than minimum")
                return False
        return True

    # -- openings -----------------------------------------------------------

    def openings_on(self, wall_id: str) -> list[Opening]:
        found: list[Opening] = []
        for store in (self.doors, self.windows):
            if store is not None:
                found.extend(store.by_wall(wall_id))
        return found

    def validate_door_position(
        self, wall: Wall, position: Point2D, width: float, exclude_id: str | None = None,
    ) -> bool:
        return self._validate_opening(OpeningType.DOOR, wall, position, width, exclude_id)

    def validate_window_position(
        self, wall: Wall, position: Point2D, width: float, exclude_id: str | None = None,
    ) -> bool:
        return self._validate_opening(OpeningType.WINDOW, wall, position, width, exclude_id)

    def validate_opening_position(
        self, kind: OpeningType, wall: Wall, position: Point2D, width: float,
        exclude_id: str | None = None,
    ) -> bool:
        return self._validate_opening(kind, wall, position, width, exclude_id)

    def _validate_opening(
        self, kind: OpeningType, wall: Wall, position: Point2D, width: float,
        exclude_id: str | None,
    ) -> bool:
        length = wall.length
        margin = self.params.opening_margin
        if length < width or length < EPSILON:
            logger.warning(f"{kind.value} rejected: wall {wall.id} ({length:.1f}) narrower than {width}")
            return False

        along = projection_parameter(position, wall.start_point, wall.end_point) * length
        half = width / 2
        if along - half < margin - 1e-9 or along + half > length - margin + 1e-9:
            logger.warning(f"{kind.value} rejected: closer than {margin} to an end of wall {wall.id}")
            return False

        for other in self.openings_on(wall.id):
            if other.id == exclude_id:
                continue
            other_along = projection_parameter(other.position, wall.start_point, wall.end_point) * length
            required = (width + other.width) / 2 + margin
            if abs(along - other_along) < required - 1e-9:
                logger.warning(f"{kind.value} rejected: overlaps {other.kind.value} {other.id}")
                return False
        return True
