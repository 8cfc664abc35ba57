"""Wall drawing tool — draw, split and drag-to-move/merge nodes."""

from __future__ import annotations
import logging
from enum import Enum

from floorplan.models import CanvasEvent, Node, Point2D, PreviewData
from floorplan.commands.base import Command, CompositeCommand
from floorplan.commands.graph_commands import (
    CreateNodeCommand, CreateWallCommand, MergeNodesCommand, MoveNodeCommand, SplitWallCommand,
)
from floorplan.tools.base import Tool, ToolManifest
from floorplan.tools.constraints import constrain_point, resolve_target

logger = logging.getLogger(__name__)

# Pointer travel below which a node press counts as a click
CLICK_TOLERANCE = 2.0


class WallMode(str, Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    MOVING_NODE = "moving_node"
    SPLITTING_WALL = "splitting_wall"


class WallTool(Tool):
    """
    Pointer state machine for walls.

    * mousedown on a node starts dragging it; releasing over another node
      merges the two, elsewhere moves it. Releasing without moving starts a
      wall from that node instead.
    * mousedown on a wall starts a wall from a split point on it.
    * mousedown on empty space starts a wall from a fresh node.

    A wall is committed on mouseup as one composite command (start node or
    split, end node, wall). Releasing too close to the start keeps drawing,
    so click-click drawing works as well as drag drawing.
    """

    manifest = ToolManifest(
        id="wall", name="Wall", icon="wall", tooltip="Draw walls (W)",
        section="draw", order=10, shortcut="w",
    )

    def __init__(self, session) -> None:
        super().__init__(session)
        self.mode = WallMode.IDLE
        self.start_point: Point2D | None = None
        self.start_node_id: str | None = None     # Existing node the wall starts from
        self.split_wall_id: str | None = None     # Wall to split at start_point
        self.drag_node_id: str | None = None
        self.drag_origin: Point2D | None = None
        self.press_point: Point2D | None = None

    def reset(self) -> None:
        self.mode = WallMode.IDLE
        self.start_point = None
        self.start_node_id = None
        self.split_wall_id = None
        self.drag_node_id = None
        self.drag_origin = None
        self.press_point = None

    def on_canvas_event(self, event: CanvasEvent) -> None:
        if event.type == "mousedown":
            self._on_mouse_down(event)
        elif event.type == "mousemove":
            self._on_mouse_move(event)
        elif event.type == "mouseup":
            self._on_mouse_up(event)

    # -- transitions --------------------------------------------------------

    def _on_mouse_down(self, event: CanvasEvent) -> None:
        if event.button != 0 or self.mode is not WallMode.IDLE:
            return
        session = self.session
        node = session.validation.find_nearest_node(event.position)
        if node is not None:
            self.mode = WallMode.MOVING_NODE
            self.drag_node_id = node.id
            self.drag_origin = node.position.model_copy()
            self.press_point = event.position
            return

        wall = session.graph.find_wall_at(event.position)
        if wall is not None:
            point = wall.closest_point(event.position)
            if session.validation.is_valid_split_point(wall, point):
                self.mode = WallMode.SPLITTING_WALL
                self.split_wall_id = wall.id
                self.start_point = point
                return

        self.mode = WallMode.DRAWING
        self.start_point = constrain_point(None, event.position, event.modifiers, session.params)

    def _on_mouse_move(self, event: CanvasEvent) -> None:
        if self.mode in (WallMode.DRAWING, WallMode.SPLITTING_WALL):
            end, snapped = self._target(event)
            self.preview(PreviewData(
                kind="wall", start=self.start_point, end=end,
                valid=self._can_finish(end, snapped, quiet=True),
            ))
        elif self.mode is WallMode.MOVING_NODE:
            target, snapped = self._drag_target(event)
            valid = snapped is not None or \
                self.session.validation.is_valid_node_move(self.drag_node_id, target)
            self.preview(PreviewData(kind="node", start=self.drag_origin, position=target, valid=valid))

    def _on_mouse_up(self, event: CanvasEvent) -> None:
        if self.mode in (WallMode.DRAWING, WallMode.SPLITTING_WALL):
            end, snapped = self._target(event)
            if snapped is None and \
                    self.start_point.distance_to(end) < self.session.params.min_wall_length:
                # A click: keep drawing from the same start
                return
            self._finish_wall(end, snapped)
        elif self.mode is WallMode.MOVING_NODE:
            self._finish_drag(event)

    # -- helpers ------------------------------------------------------------

    def _target(self, event: CanvasEvent) -> tuple[Point2D, Node | None]:
        return resolve_target(
            self.session.graph, self.session.params, self.start_point,
            event.position, event.modifiers, exclude_id=self.start_node_id,
        )

    def _drag_target(self, event: CanvasEvent) -> tuple[Point2D, Node | None]:
        raw = self.drag_origin + (event.position - self.press_point)
        return resolve_target(
            self.session.graph, self.session.params, self.drag_origin,
            raw, event.modifiers, exclude_id=self.drag_node_id,
        )

    def _can_finish(self, end: Point2D, snapped: Node | None, quiet: bool = False) -> bool:
        validation = self.session.validation
        if self.start_point.distance_to(end) < self.session.params.min_wall_length:
            return False
        if snapped is not None and self.start_node_id is not None:
            if quiet:
                return validation.wall_defect(self.start_node_id, snapped.id) is None
            if not validation.is_valid_wall(self.start_node_id, snapped.id):
                return False
        if snapped is not None and self.split_wall_id is not None:
            host = self.session.graph.get_wall(self.split_wall_id)
            if host is not None and snapped.id in host.node_ids:
                # would retrace one half of the split wall
                if not quiet:
                    logger.warning(f"Wall rejected: ends on an end of split wall {host.id}")
                return False
        own = [i for i in (self.start_node_id, snapped.id if snapped else None) if i]
        return validation.is_valid_wall_placement(self.start_point, end, own)

    def _finish_wall(self, end: Point2D, snapped: Node | None) -> None:
        service = self.session.commands
        self.clear_preview()
        if not self._can_finish(end, snapped):
            logger.warning("Wall rejected; nothing created")
            self.reset()
            return

        steps: list[Command] = []
        if self.start_node_id is not None:
            start_id = self.start_node_id
        elif self.split_wall_id is not None:
            split = SplitWallCommand(service, self.split_wall_id, self.start_point)
            steps.append(split)
            start_id = split.node_id
        else:
            create = CreateNodeCommand(service, self.start_point)
            steps.append(create)
            start_id = create.node_id

        if snapped is not None:
            end_id = snapped.id
        else:
            create_end = CreateNodeCommand(service, end)
            steps.append(create_end)
            end_id = create_end.node_id

        steps.append(CreateWallCommand(
            service, start_id, end_id,
            thickness=self.session.params.wall_thickness, height=self.session.params.wall_height,
        ))
        self.reset()
        self.run(CompositeCommand(service, steps, name="Draw wall"))

    def _finish_drag(self, event: CanvasEvent) -> None:
        node_id = self.drag_node_id
        origin = self.drag_origin
        target, snapped = self._drag_target(event)
        service = self.session.commands
        self.clear_preview()

        if event.position.distance_to(self.press_point) < CLICK_TOLERANCE:
            self.reset()
            self.mode = WallMode.DRAWING
            self.start_node_id = node_id
            self.start_point = origin
            return

        self.reset()
        if snapped is not None:
            # Merge wins over move
            self.run(MergeNodesCommand(service, node_id, snapped.id))
            return
        if not self.session.validation.is_valid_node_move(node_id, target):
            return
        self.run(MoveNodeCommand(service, node_id, target))
