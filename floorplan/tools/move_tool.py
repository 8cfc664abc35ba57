"""Move tool: drags the selected nodes and walls by the pointer delta."""

from __future__ import annotations
import logging
from enum import Enum

from floorplan.models import CanvasEvent, Point2D, PreviewData
from floorplan.models.geometry import EPSILON, snap_to_grid
from floorplan.core.graph import WallGraph
from floorplan.commands.base import CompositeCommand
from floorplan.commands.graph_commands import MoveNodeCommand
from floorplan.tools.base import Tool, ToolManifest

logger = logging.getLogger(__name__)


class MoveMode(str, Enum):
    IDLE = "idle"
    MOVING = "moving"


def ordered_moves(graph: WallGraph, node_ids: list[str], delta: Point2D) -> list[str]:
    """
    Order in which to move `node_ids` by `delta`.

    A node is moved before its neighbours whenever moving it later would
    land it on a neighbour that has not moved yet.
    """
    pending = list(node_ids)
    ordered: list[str] = []
    while pending:
        chosen = pending[0]
        for node_id in pending:
            target = graph.get_node(node_id).position + delta
            blocked = any(
                other != node_id and other in pending
                and graph.get_node(other).position.distance_to(target) < EPSILON
                for other in (w.other_node_id(node_id) for w in graph.walls_of(node_id))
            )
            if not blocked:
                chosen = node_id
                break
        pending.remove(chosen)
        ordered.append(chosen)
    return ordered


class MoveTool(Tool):
    """
    Press anywhere and drag to translate the selection.

    The moved set is every selected node plus both ends of every selected
    wall. Walls joining a moved node to a fixed one stretch, and their
    openings keep their relative positions. The whole drag is one undo step.
    ALT snaps the delta to the grid.
    """

    manifest = ToolManifest(
        id="move", name="Move", icon="hand", tooltip="Move selected objects (M)",
        section="edit", order=10, shortcut="m",
    )

    def __init__(self, session) -> None:
        super().__init__(session)
        self.mode = MoveMode.IDLE
        self.node_ids: list[str] = []
        self.press_point: Point2D | None = None

    def reset(self) -> None:
        self.mode = MoveMode.IDLE
        self.node_ids = []
        self.press_point = None

    def on_canvas_event(self, event: CanvasEvent) -> None:
        if event.type == "mousedown":
            self._on_mouse_down(event)
        elif event.type == "mousemove" and self.mode is MoveMode.MOVING:
            delta = self._delta(event)
            self.preview(PreviewData(
                kind="move", start=self.press_point, end=self.press_point + delta,
                points=[p + delta for p in self._positions()],
                valid=self._can_move(delta),
            ))
        elif event.type == "mouseup" and self.mode is MoveMode.MOVING:
            self._finish(event)

    def selected_node_ids(self) -> list[str]:
        graph = self.session.graph
        selection = self.session.selection
        ids: list[str] = []
        for node_id in selection.node_ids:
            if graph.get_node(node_id) is not None and node_id not in ids:
                ids.append(node_id)
        for wall_id in selection.wall_ids:
            wall = graph.get_wall(wall_id)
            if wall is None:
                continue
            for node_id in wall.node_ids:
                if node_id not in ids:
                    ids.append(node_id)
        return ids

    def _on_mouse_down(self, event: CanvasEvent) -> None:
        if event.button != 0 or self.mode is not MoveMode.IDLE:
            return
        node_ids = self.selected_node_ids()
        if not node_ids:
            return
        self.mode = MoveMode.MOVING
        self.node_ids = node_ids
        self.press_point = event.position
        logger.info(f"Moving {len(node_ids)} node(s)")

    def _delta(self, event: CanvasEvent) -> Point2D:
        delta = event.position - self.press_point
        if event.modifiers.alt:
            delta = snap_to_grid(delta, self.session.params.grid_pitch)
        return delta

    def _positions(self) -> list[Point2D]:
        return [self.session.graph.get_node(i).position for i in self.node_ids]

    def _can_move(self, delta: Point2D, quiet: bool = True) -> bool:
        """Walls from a moved node to a fixed node keep the minimum length."""
        graph = self.session.graph
        moving = set(self.node_ids)
        minimum = self.session.params.min_wall_length
        for node_id in self.node_ids:
            target = graph.get_node(node_id).position + delta
            for wall in graph.walls_of(node_id):
                other_id = wall.other_node_id(node_id)
                if other_id in moving:
                    continue
                if graph.get_node(other_id).position.distance_to(target) < minimum:
                    if not quiet:
                        logger.warning(f"Move rejected: wall {wall.id} would be shorter than {minimum}")
                    return False
        return True

    def _finish(self, event: CanvasEvent) -> None:
        delta = self._delta(event)
        node_ids = self.node_ids
        self.clear_preview()
        if abs(delta.x) < EPSILON and abs(delta.y) < EPSILON:
            self.reset()
            return
        if not self._can_move(delta, quiet=False):
            self.reset()
            return

        graph = self.session.graph
        service = self.session.commands
        steps = [
            MoveNodeCommand(service, node_id, graph.get_node(node_id).position + delta)
            for node_id in ordered_moves(graph, node_ids, delta)
        ]
        self.reset()
        self.run(CompositeCommand(service, steps, name="Move selection"))
