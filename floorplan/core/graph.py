"""Wall graph — the single source of truth for node/wall topology."""

from __future__ import annotations
import logging
from typing import Callable, Iterable
from pydantic import BaseModel

from floorplan.models import EditorParams, Node, Point2D, Wall
from floorplan.models.events import GraphChanged
from floorplan.models.geometry import distance_to_segment
from floorplan.core.errors import EntityNotFound, InvalidTopology
from floorplan.core.events import EventBus
from floorplan.core.journal import JournalRecorder

logger = logging.getLogger(__name__)


class MergeResult(BaseModel):
    """Outcome of merging `source_id` into `target_id`."""
    source_id: str
    target_id: str
    replacements: dict[str, str | None] = {}   # Old wall id -> wall now carrying it (None = collapsed)
    created_wall_ids: list[str] = []


class WallGraph:
    """
    Owns every node and wall.

    Relations are kept on both sides: a wall names its nodes and each node
    lists its walls. All mutations go through this class, which keeps the
    two sides and the cached wall endpoints consistent, reports touched
    entities to the journal recorder and emits `graph:changed`.
    """

    def __init__(
        self,
        params: EditorParams | None = None,
        bus: EventBus | None = None,
        recorder: JournalRecorder | None = None,
    ) -> None:
        self.params = params or EditorParams()
        self.bus = bus or EventBus()
        self.recorder = recorder or JournalRecorder()
        self.recorder.register("node", self)
        self.recorder.register("wall", self)
        self._nodes: dict[str, Node] = {}
        self._walls: dict[str, Wall] = {}
        # Extra counts (doors, windows, rooms) supplied by the owning session
        self.count_provider: Callable[[], dict[str, int]] | None = None

    # -- notifications ------------------------------------------------------

    def counts(self) -> dict[str, int]:
        counts = {"nodes": len(self._nodes), "walls": len(self._walls),
                  "doors": 0, "windows": 0, "rooms": 0}
        if self.count_provider is not None:
            counts.update(self.count_provider())
        return counts

    def notify_changed(self) -> None:
        self.bus.emit(GraphChanged(**self.counts()))

    def _touch_node(self, node_id: str) -> None:
        self.recorder.touch("node", node_id, self._nodes.get(node_id))

    def _touch_wall(self, wall_id: str) -> None:
        self.recorder.touch("wall", wall_id, self._walls.get(wall_id))

    # -- queries ------------------------------------------------------------

    def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def get_wall(self, wall_id: str) -> Wall | None:
        return self._walls.get(wall_id)

    def require_node(self, node_id: str) -> Node:
        node = self._nodes.get(node_id)
        if node is None:
            raise EntityNotFound("Node", node_id)
        return node

    def require_wall(self, wall_id: str) -> Wall:
        wall = self._walls.get(wall_id)
        if wall is None:
            raise EntityNotFound("Wall", wall_id)
        return wall

    def get_all_nodes(self) -> list[Node]:
        return list(self._nodes.values())

    def get_all_walls(self) -> list[Wall]:
        return list(self._walls.values())

    def walls_of(self, node_id: str) -> list[Wall]:
        node = self._nodes.get(node_id)
        if node is None:
            return []
        return [self._walls[wid] for wid in node.connected_wall_ids if wid in self._walls]

    def find_wall_between(self, a_id: str, b_id: str) -> Wall | None:
        for wall in self.walls_of(a_id):
            if wall.has_node(b_id):
                return wall
        return None

    def find_closest_node(
        self, point: Point2D, threshold: float, exclude_id: str | None = None,
    ) -> Node | None:
        """Nearest node strictly closer than `threshold`; first found wins ties."""
        best: Node | None = None
        best_dist = threshold
        for node in self._nodes.values():
            if node.id == exclude_id:
                continue
            d = node.position.distance_to(point)
            if d < best_dist:
                best = node
                best_dist = d
        return best

    def find_nearest_wall(self, point: Point2D, threshold: float) -> Wall | None:
        best: Wall | None = None
        best_dist = threshold
        for wall in self._walls.values():
            d = distance_to_segment(point, wall.start_point, wall.end_point)
            if d < best_dist or (best is None and d <= threshold):
                best = wall
                best_dist = d
        return best

    def find_wall_at(self, point: Point2D) -> Wall | None:
        for wall in self._walls.values():
            if wall.contains_point(point):
                return wall
        return None

    def wall_defect(self, start_id: str, end_id: str) -> str | None:
        """Reason a wall between the two nodes would be invalid, or None."""
        start = self._nodes.get(start_id)
        end = self._nodes.get(end_id)
        if start is None:
            return f"start node '{start_id}' does not exist"
        if end is None:
            return f"end node '{end_id}' does not exist"
        if start_id == end_id:
            return "start and end node are identical"
        length = start.position.distance_to(end.position)
        if length < self.params.min_wall_length:
            return f"length {length:.2f} is below minimum {self.params.min_wall_length}"
        if self.find_wall_between(start_id, end_id) is not None:
            return "a wall already connects these nodes"
        return None

    def integrity_errors(self) -> list[str]:
        """Violations of the node <-> wall reference invariants (empty when consistent)."""
        errors: list[str] = []
        for wall in self._walls.values():
            for node_id, point in ((wall.start_node_id, wall.start_point),
                                   (wall.end_node_id, wall.end_point)):
                node = self._nodes.get(node_id)
                if node is None:
                    errors.append(f"wall {wall.id} references missing node {node_id}")
                    continue
                if wall.id not in node.connected_wall_ids:
                    errors.append(f"node {node_id} does not list wall {wall.id}")
                if node.position.distance_to(point) > 1e-6:
                    errors.append(f"wall {wall.id} caches a stale position for {node_id}")
            if wall.start_node_id == wall.end_node_id:
                errors.append(f"wall {wall.id} is a self-loop")
        for node in self._nodes.values():
            for wall_id in node.connected_wall_ids:
                wall = self._walls.get(wall_id)
                if wall is None or not wall.has_node(node.id):
                    errors.append(f"node {node.id} lists foreign wall {wall_id}")
        return errors

    # -- mutations ----------------------------------------------------------

    def create_node(self, position: Point2D, node_id: str | None = None) -> Node:
        if node_id is not None and node_id in self._nodes:
            raise InvalidTopology(f"Node id '{node_id}' already exists")
        node = Node(position=position.model_copy()) if node_id is None else \
            Node(id=node_id, position=position.model_copy())
        self._touch_node(node.id)
        self._nodes[node.id] = node
        logger.debug(f"Created node {node.id} at ({position.x:.1f}, {position.y:.1f})")
        self.notify_changed()
        return node

    def _add_wall(
        self, start_id: str, end_id: str,
        thickness: float | None, height: float | None, wall_id: str | None,
    ) -> Wall:
        defect = self.wall_defect(start_id, end_id)
        if defect is not None:
            raise InvalidTopology(f"Cannot create wall: {defect}")
        if wall_id is not None and wall_id in self._walls:
            raise InvalidTopology(f"Wall id '{wall_id}' already exists")
        start = self._nodes[start_id]
        end = self._nodes[end_id]
        fields = {
            "start_node_id": start_id,
            "end_node_id": end_id,
            "start_point": start.position.model_copy(),
            "end_point": end.position.model_copy(),
            "thickness": self.params.wall_thickness if thickness is None else thickness,
            "height": self.params.wall_height if height is None else height,
        }
        if wall_id is not None:
            fields["id"] = wall_id
        wall = Wall(**fields)
        self._touch_wall(wall.id)
        self._touch_node(start_id)
        self._touch_node(end_id)
        self._walls[wall.id] = wall
        start.add_wall(wall.id)
        end.add_wall(wall.id)
        return wall

    def create_wall(
        self,
        start_id: str,
        end_id: str,
        thickness: float | None = None,
        height: float | None = None,
        wall_id: str | None = None,
    ) -> Wall:
        wall = self._add_wall(start_id, end_id, thickness, height, wall_id)
        logger.debug(f"Created wall {wall.id} ({start_id} -> {end_id}, {wall.length:.1f})")
        self.notify_changed()
        return wall

    def _detach_wall(self, wall_id: str) -> Wall | None:
        wall = self._walls.get(wall_id)
        if wall is None:
            return None
        self._touch_wall(wall_id)
        for node_id in wall.node_ids:
            node = self._nodes.get(node_id)
            if node is not None:
                self._touch_node(node_id)
                node.remove_wall(wall_id)
        del self._walls[wall_id]
        return wall

    def remove_wall(self, wall_id: str) -> Wall | None:
        """Detach and delete a wall; unknown ids are a silent no-op. Nodes are kept."""
        wall = self._detach_wall(wall_id)
        if wall is None:
            return None
        logger.debug(f"Removed wall {wall_id}")
        self.notify_changed()
        return wall

    def remove_node(self, node_id: str) -> Node | None:
        """Remove a node together with every wall attached to it."""
        node = self._nodes.get(node_id)
        if node is None:
            return None
        for wall_id in list(node.connected_wall_ids):
            self._detach_wall(wall_id)
        self._touch_node(node_id)
        del self._nodes[node_id]
        logger.debug(f"Removed node {node_id}")
        self.notify_changed()
        return node

    def move_node(self, node_id: str, position: Point2D) -> Node:
        node = self.require_node(node_id)
        self._touch_node(node_id)
        for wall in self.walls_of(node_id):
            self._touch_wall(wall.id)
        node.position = position.model_copy()
        for wall in self.walls_of(node_id):
            if wall.start_node_id == node_id:
                wall.update_start_point(position)
            if wall.end_node_id == node_id:
                wall.update_end_point(position)
        self.notify_changed()
        return node

    def update_wall(
        self, wall_id: str, thickness: float | None = None, height: float | None = None,
    ) -> Wall:
        wall = self.require_wall(wall_id)
        self._touch_wall(wall_id)
        if thickness is not None:
            wall.thickness = thickness
        if height is not None:
            wall.height = height
        self.notify_changed()
        return wall

    def split_wall(
        self,
        wall_id: str,
        point: Point2D,
        node_id: str | None = None,
        wall_ids: tuple[str, str] | None = None,
    ) -> tuple[Node, Wall, Wall]:
        """
        Replace a wall by two walls meeting at a new node placed at `point`.

        The caller checks the point with `ValidationService.is_valid_split_point`;
        this only refuses splits that would leave a piece below minimum length.
        """
        wall = self.require_wall(wall_id)
        min_len = self.params.min_wall_length
        if point.distance_to(wall.start_point) < min_len or point.distance_to(wall.end_point) < min_len:
            raise InvalidTopology(f"Split point too close to an end of wall '{wall_id}'")
        if node_id is not None and node_id in self._nodes:
            raise InvalidTopology(f"Node id '{node_id}' already exists")

        first_id, second_id = wall_ids if wall_ids is not None else (None, None)
        self._detach_wall(wall_id)
        node = Node(position=point.model_copy()) if node_id is None else \
            Node(id=node_id, position=point.model_copy())
        self._touch_node(node.id)
        self._nodes[node.id] = node
        first = self._add_wall(wall.start_node_id, node.id, wall.thickness, wall.height, first_id)
        second = self._add_wall(node.id, wall.end_node_id, wall.thickness, wall.height, second_id)
        logger.debug(f"Split wall {wall_id} at node {node.id} into {first.id}, {second.id}")
        self.notify_changed()
        return node, first, second

    def merge_nodes(
        self, source_id: str, target_id: str, wall_ids: Iterable[str] | None = None,
    ) -> MergeResult:
        """
        Reroute every wall of `source` through `target`, then delete `source`.

        A rerouted wall collapses instead of being recreated when it would
        join target to itself, would duplicate a wall target already has, or
        would fall below minimum length. Orientation of rerouted walls is
        preserved.
        """
        if source_id == target_id:
            raise InvalidTopology("Cannot merge a node into itself")
        source = self.require_node(source_id)
        self.require_node(target_id)
        fresh_ids = iter(wall_ids or ())
        result = MergeResult(source_id=source_id, target_id=target_id)

        for wall in self.walls_of(source_id):
            other_id = wall.other_node_id(source_id)
            self._detach_wall(wall.id)
            if other_id == target_id:
                result.replacements[wall.id] = None
                continue
            existing = self.find_wall_between(target_id, other_id)
            if existing is not None:
                result.replacements[wall.id] = existing.id
                continue
            start_id, end_id = (target_id, other_id) if wall.start_node_id == source_id \
                else (other_id, target_id)
            if self.wall_defect(start_id, end_id) is not None:
                logger.warning(f"Wall {wall.id} collapsed while merging {source_id} into {target_id}")
                result.replacements[wall.id] = None
                continue
            created = self._add_wall(start_id, end_id, wall.thickness, wall.height, next(fresh_ids, None))
            result.replacements[wall.id] = created.id
            result.created_wall_ids.append(created.id)

        self._touch_node(source_id)
        del self._nodes[source.id]
        logger.debug(f"Merged node {source_id} into {target_id}")
        self.notify_changed()
        return result

    def clear(self) -> None:
        self._nodes.clear()
        self._walls.clear()
        self.notify_changed()

    # -- journal repository -------------------------------------------------

    def journal_get(self, kind: str, entity_id: str) -> BaseModel | None:
        return self._nodes.get(entity_id) if kind == "node" else self._walls.get(entity_id)

    def journal_put(self, kind: str, entity: BaseModel) -> None:
        if kind == "node":
            self._nodes[entity.id] = entity
        else:
            self._walls[entity.id] = entity

    def journal_drop(self, kind: str, entity_id: str) -> None:
        if kind == "node":
            self._nodes.pop(entity_id, None)
        else:
            self._walls.pop(entity_id, None)
