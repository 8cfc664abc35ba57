"""Mutation façade used by commands.

Wraps graph and store mutations with opening reconciliation, room upkeep
and domain notifications. Commands call this; nothing here renders.
"""

from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Iterator

from floorplan.models import (
    Door, EditorParams, Node, Opening, OpeningType, Point2D, Room, Wall, Window,
)
from floorplan.models.events import (
    NodeCreated, NodeDeleted, NodesMerged, NodeUpdated, ObjectDeleted,
    WallCreated, WallDeleted, WallMoved, WallSplit, WallUpdated,
)
from floorplan.models.geometry import project_onto_segment
from floorplan.core.errors import EntityNotFound, InvalidPlacement, InvalidTopology
from floorplan.core.events import EventBus
from floorplan.core.graph import MergeResult, WallGraph
from floorplan.core.journal import ChangeJournal, JournalRecorder
from floorplan.core.reconciliation import OpeningReconciler
from floorplan.core.stores import DoorStore, OpeningStore, RoomStore, WindowStore
from floorplan.core.validation import ValidationService

logger = logging.getLogger(__name__)


class CommandService:
    """Graph/store mutations plus everything that has to follow them."""

    def __init__(
        self,
        graph: WallGraph,
        doors: DoorStore,
        windows: WindowStore,
        rooms: RoomStore,
        validation: ValidationService,
        reconciler: OpeningReconciler,
        bus: EventBus,
        recorder: JournalRecorder,
        params: EditorParams | None = None,
    ) -> None:
        self.graph = graph
        self.doors = doors
        self.windows = windows
        self.rooms = rooms
        self.validation = validation
        self.reconciler = reconciler
        self.bus = bus
        self.recorder = recorder
        self.params = params or graph.params

    @contextmanager
    def journal(self) -> Iterator[ChangeJournal]:
        """Journal one unit of work; a rolled-back outermost unit is re-announced."""
        outermost = not self.recorder.active
        journal: ChangeJournal | None = None
        try:
            with self.recorder.journal() as journal:
                yield journal
        except Exception:
            # the recorder has reverted by now
            if outermost and journal is not None:
                self.refresh(journal)
            raise

    def refresh(self, journal: ChangeJournal) -> None:
        """Announce state written back by an undo or redo."""
        self.graph.notify_changed()
        self.doors.notify_changed(journal.touched("door"))
        self.windows.notify_changed(journal.touched("window"))
        self.rooms.notify_changed(journal.touched("room"))

    def store_for(self, kind: OpeningType) -> OpeningStore:
        return self.doors if kind is OpeningType.DOOR else self.windows

    def find_opening(self, opening_id: str) -> Opening | None:
        return self.doors.get(opening_id) or self.windows.get(opening_id)

    def require_opening(self, opening_id: str) -> Opening:
        opening = self.find_opening(opening_id)
        if opening is None:
            raise EntityNotFound("Opening", opening_id)
        return opening

    # -- nodes --------------------------------------------------------------

    def create_node(self, position: Point2D, node_id: str | None = None) -> Node:
        node = self.graph.create_node(position, node_id)
        self.bus.emit(NodeCreated(node_id=node.id, position=node.position))
        return node

    def move_node(self, node_id: str, position: Point2D) -> Node:
        node = self.graph.require_node(node_id)
        previous = node.position.model_copy()
        before = [w.model_copy(deep=True) for w in self.graph.walls_of(node_id)]
        node = self.graph.move_node(node_id, position)
        for old in before:
            wall = self.graph.get_wall(old.id)
            self.reconciler.follow_wall(old, wall)
            self.bus.emit(WallMoved(wall_id=wall.id))
        self.bus.emit(NodeUpdated(node_id=node_id, position=node.position, previous_position=previous))
        logger.info(f"Moved node {node_id} to ({position.x:.1f}, {position.y:.1f})")
        return node

    def _drop_wall_dependents(self, wall_id: str) -> None:
        for opening in self.reconciler.remove_on_wall(wall_id):
            self.bus.emit(ObjectDeleted(object_id=opening.id, kind=opening.kind.value))
        self.rooms.replace_wall(wall_id, [])

    def delete_node(self, node_id: str) -> Node | None:
        """Remove a node with every wall on it (and those walls' openings)."""
        node = self.graph.get_node(node_id)
        if node is None:
            return None
        wall_ids = list(node.connected_wall_ids)
        for wall_id in wall_ids:
            self._drop_wall_dependents(wall_id)
        self.graph.remove_node(node_id)
        for wall_id in wall_ids:
            self.bus.emit(WallDeleted(wall_id=wall_id))
            self.bus.emit(ObjectDeleted(object_id=wall_id, kind="wall"))
        self.bus.emit(NodeDeleted(node_id=node_id))
        self.bus.emit(ObjectDeleted(object_id=node_id, kind="node"))
        logger.info(f"Deleted node {node_id} with {len(wall_ids)} walls")
        return node

    def prune_node(self, node_id: str) -> Node | None:
        """Delete a node only if no wall is attached to it any more."""
        node = self.graph.get_node(node_id)
        if node is None or node.connected_wall_ids:
            return None
        return self.delete_node(node_id)

    # -- walls --------------------------------------------------------------

    def create_wall(
        self,
        start_id: str,
        end_id: str,
        thickness: float | None = None,
        height: float | None = None,
        wall_id: str | None = None,
    ) -> Wall:
        wall = self.graph.create_wall(start_id, end_id, thickness, height, wall_id)
        self.bus.emit(WallCreated(wall_id=wall.id, start_node_id=start_id, end_node_id=end_id))
        logger.info(f"Created wall {wall.id} ({wall.length:.1f})")
        return wall

    def update_wall(
        self, wall_id: str, thickness: float | None = None, height: float | None = None,
    ) -> Wall:
        wall = self.graph.update_wall(wall_id, thickness, height)
        self.bus.emit(WallUpdated(wall_id=wall.id, thickness=wall.thickness, height=wall.height))
        return wall

    def delete_wall(self, wall_id: str) -> Wall | None:
        """Remove a wall and the openings it hosts; its nodes stay."""
        if self.graph.get_wall(wall_id) is None:
            return None
        self._drop_wall_dependents(wall_id)
        wall = self.graph.remove_wall(wall_id)
        self.bus.emit(WallDeleted(wall_id=wall_id))
        self.bus.emit(ObjectDeleted(object_id=wall_id, kind="wall"))
        logger.info(f"Deleted wall {wall_id}")
        return wall

    def split_wall(
        self,
        wall_id: str,
        point: Point2D,
        node_id: str | None = None,
        wall_ids: tuple[str, str] | None = None,
    ) -> tuple[Node, Wall, Wall]:
        self.graph.require_wall(wall_id)
        hosted = self.reconciler.openings_on(wall_id)
        node, first, second = self.graph.split_wall(wall_id, point, node_id, wall_ids)
        self.reconciler.reassign_split(hosted, [first, second])
        self.rooms.replace_wall(wall_id, [first.id, second.id])
        self.bus.emit(WallSplit(wall_id=wall_id, node_id=node.id, new_wall_ids=[first.id, second.id]))
        logger.info(f"Split wall {wall_id} at node {node.id}")
        return node, first, second

    def merge_nodes(self, source_id: str, target_id: str) -> MergeResult:
        """Merge `source` into `target`, carrying openings onto replacement walls."""
        self.graph.require_node(target_id)
        old_walls = [w.model_copy(deep=True) for w in self.graph.walls_of(source_id)]
        hosted = {w.id: self.reconciler.openings_on(w.id) for w in old_walls}
        result = self.graph.merge_nodes(source_id, target_id)
        node_map = {source_id: target_id}

        for old in old_walls:
            replacement_id = result.replacements.get(old.id)
            if replacement_id is None:
                self._drop_wall_dependents(old.id)
            else:
                new = self.graph.get_wall(replacement_id)
                for opening in hosted[old.id]:
                    self.reconciler.transfer(opening, old, new, node_map)
                self.rooms.replace_wall(old.id, [replacement_id])
            self.bus.emit(WallDeleted(wall_id=old.id))
        for wall_id in result.created_wall_ids:
            wall = self.graph.get_wall(wall_id)
            self.bus.emit(WallCreated(wall_id=wall_id, start_node_id=wall.start_node_id,
                                      end_node_id=wall.end_node_id))
        self.bus.emit(NodesMerged(source_id=source_id, target_id=target_id,
                                  wall_ids=[w for w in result.replacements.values() if w]))
        logger.info(f"Merged node {source_id} into {target_id}")
        return result

    def dissolve_node(self, node_id: str, wall_id: str | None = None) -> Wall | None:
        """
        Remove a node the way the remove tool does.

        Two walls fuse into one through-wall (returned); a single wall is
        removed with the node; any other degree cascades.
        """
        walls = self.graph.walls_of(node_id)
        if len(walls) == 1:
            self.delete_wall(walls[0].id)
            self.delete_node(node_id)
            return None
        if len(walls) != 2:
            self.delete_node(node_id)
            return None

        first, second = walls[0].model_copy(deep=True), walls[1].model_copy(deep=True)
        a_id = first.other_node_id(node_id)
        c_id = second.other_node_id(node_id)
        hosted = self.reconciler.openings_on(first.id) + self.reconciler.openings_on(second.id)

        self.graph.remove_wall(first.id)
        self.graph.remove_wall(second.id)
        self.graph.remove_node(node_id)

        fused = self.graph.find_wall_between(a_id, c_id)
        if fused is None and self.graph.wall_defect(a_id, c_id) is None:
            fused = self.graph.create_wall(a_id, c_id, first.thickness, first.height, wall_id)
            self.bus.emit(WallCreated(wall_id=fused.id, start_node_id=a_id, end_node_id=c_id))

        if fused is not None:
            self.reconciler.reassign_split(hosted, [fused])
            self.rooms.replace_wall(first.id, [fused.id])
            self.rooms.replace_wall(second.id, [])
        else:
            logger.warning(f"Walls around node {node_id} could not be fused")
            for opening in hosted:
                self.store_for(opening.kind).remove(opening.id)
            self.rooms.replace_wall(first.id, [])
            self.rooms.replace_wall(second.id, [])

        for old in (first, second):
            self.bus.emit(WallDeleted(wall_id=old.id))
            self.bus.emit(ObjectDeleted(object_id=old.id, kind="wall"))
        self.bus.emit(NodeDeleted(node_id=node_id))
        self.bus.emit(ObjectDeleted(object_id=node_id, kind="node"))
        logger.info(f"Dissolved node {node_id}")
        return fused

    # -- openings -----------------------------------------------------------

    def _check_placement(
        self, kind: OpeningType, wall: Wall, position: Point2D, width: float,
        exclude_id: str | None = None,
    ) -> None:
        if not self.validation.validate_opening_position(kind, wall, position, width, exclude_id):
            raise InvalidPlacement(f"{kind.value} does not fit on wall '{wall.id}' at that position")

    def place_opening(
        self,
        kind: OpeningType,
        wall_id: str,
        position: Point2D,
        opening_id: str | None = None,
        **properties,
    ) -> Opening:
        wall = self.graph.require_wall(wall_id)
        centre = project_onto_segment(position, wall.start_point, wall.end_point)
        if kind is OpeningType.DOOR:
            defaults = {"width": self.params.door_width, "height": self.params.door_height}
            cls = Door
        else:
            defaults = {"width": self.params.window_width, "height": self.params.window_height,
                        "sill_height": self.params.window_sill_height}
            cls = Window
        fields = {**defaults, **properties}
        if opening_id is not None:
            fields["id"] = opening_id
        self._check_placement(kind, wall, centre, fields["width"])
        opening = cls.on_wall(wall, centre, **fields)
        return self.store_for(kind).add(opening)

    def move_opening(self, opening_id: str, wall_id: str, position: Point2D) -> Opening:
        opening = self.require_opening(opening_id)
        wall = self.graph.require_wall(wall_id)
        centre = project_onto_segment(position, wall.start_point, wall.end_point)
        self._check_placement(opening.kind, wall, centre, opening.width, exclude_id=opening_id)
        updated = opening.model_copy(deep=True)
        if updated.wall_id != wall_id:
            updated.update_wall_reference(wall)
        updated.update_position(centre)
        return self.store_for(opening.kind).replace(updated)

    def flip_opening(self, opening_id: str) -> Opening:
        opening = self.require_opening(opening_id)
        updated = opening.model_copy(deep=True)
        updated.flip()
        return self.store_for(opening.kind).replace(updated)

    def remove_opening(self, opening_id: str) -> Opening | None:
        opening = self.find_opening(opening_id)
        if opening is None:
            return None
        self.store_for(opening.kind).remove(opening_id)
        self.bus.emit(ObjectDeleted(object_id=opening_id, kind=opening.kind.value))
        return opening

    # -- rooms --------------------------------------------------------------

    def create_room(self, wall_ids: list[str], name: str = "", room_id: str | None = None) -> Room:
        for wall_id in wall_ids:
            self.graph.require_wall(wall_id)
        fields = {"wall_ids": list(wall_ids), "name": name}
        if room_id is not None:
            fields["id"] = room_id
        room = Room(**fields)
        if self.rooms.outline(room, self.graph) is None:
            raise InvalidTopology("Room walls do not form a closed loop")
        self.rooms.add(room)
        self.rooms.closed_rooms(self.graph)
        self.graph.notify_changed()
        return room

    def delete_room(self, room_id: str) -> Room | None:
        room = self.rooms.remove(room_id)
        if room is not None:
            self.bus.emit(ObjectDeleted(object_id=room_id, kind="room"))
        return room
