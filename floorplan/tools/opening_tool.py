"""Shared state machine for the door and window tools."""

from __future__ import annotations
import logging
from enum import Enum

from floorplan.models import CanvasEvent, KeyEvent, Opening, OpeningType, Point2D, PreviewData, Wall
from floorplan.core.stores import OpeningStore
from floorplan.commands.opening_commands import (
    FlipOpeningCommand, MoveOpeningCommand, PlaceOpeningCommand,
)
from floorplan.tools.base import Tool

logger = logging.getLogger(__name__)


class OpeningMode(str, Enum):
    IDLE = "idle"
    SELECTING_WALL = "selecting_wall"
    DRAGGING_OPENING = "dragging_opening"
    DRAGGING_NODE = "dragging_node"


class OpeningTool(Tool):
    """
    Places and drags openings of one kind.

    A press on an existing opening's connector drags that endpoint, a press
    on its body drags the whole opening keeping the pointer offset; any
    other press starts wall selection. Placement and drags are validated on
    release; a rejected release leaves the plan unchanged.
    """

    kind: OpeningType

    def __init__(self, session) -> None:
        super().__init__(session)
        self.mode = OpeningMode.IDLE
        self.opening_id: str | None = None
        self.connector_id: str | None = None
        self.offset: Point2D | None = None

    @property
    def store(self) -> OpeningStore:
        return self.session.commands.store_for(self.kind)

    @property
    def default_width(self) -> float:
        params = self.session.params
        return params.door_width if self.kind is OpeningType.DOOR else params.window_width

    def reset(self) -> None:
        self.mode = OpeningMode.IDLE
        self.opening_id = None
        self.connector_id = None
        self.offset = None

    def on_canvas_event(self, event: CanvasEvent) -> None:
        if event.type == "mousedown":
            self._on_mouse_down(event)
        elif event.type == "mousemove":
            self._on_mouse_move(event)
        elif event.type == "mouseup":
            self._on_mouse_up(event)

    def on_key_down(self, event: KeyEvent) -> bool:
        if event.key.lower() == "f" and not event.modifiers.ctrl:
            return self.flip_selected()
        return super().on_key_down(event)

    def flip_selected(self) -> bool:
        selected = self.session.selection.door_ids if self.kind is OpeningType.DOOR \
            else self.session.selection.window_ids
        flipped = False
        for opening_id in list(selected):
            if opening_id not in self.store:
                continue
            if self.run(FlipOpeningCommand(self.session.commands, opening_id)) is not None:
                flipped = True
        return flipped

    # -- hit testing --------------------------------------------------------

    def _hit(self, point: Point2D) -> tuple[Opening | None, str | None]:
        params = self.session.params
        for opening in self.store.all():
            connector = opening.connector_at(point, params.connector_hit_radius)
            if connector is not None:
                return opening, connector.id
        for opening in self.store.all():
            if opening.contains_point(point, params.opening_hit_padding):
                return opening, None
        return None, None

    def _select(self, opening: Opening) -> None:
        if self.kind is OpeningType.DOOR:
            self.session.selection.select(door_ids=[opening.id])
        else:
            self.session.selection.select(window_ids=[opening.id])

    # -- transitions --------------------------------------------------------

    def _on_mouse_down(self, event: CanvasEvent) -> None:
        if event.button != 0 or self.mode is not OpeningMode.IDLE:
            return
        opening, connector_id = self._hit(event.position)
        if opening is not None:
            self._select(opening)
            self.opening_id = opening.id
            if connector_id is not None:
                self.mode = OpeningMode.DRAGGING_NODE
                self.connector_id = connector_id
            else:
                self.mode = OpeningMode.DRAGGING_OPENING
                self.offset = opening.position - event.position
            return
        self.mode = OpeningMode.SELECTING_WALL
        self._on_mouse_move(event)

    def _candidate(self, event: CanvasEvent) -> tuple[Wall | None, Point2D | None, float]:
        """Host wall and centre the current interaction would commit."""
        graph = self.session.graph
        snap = self.session.params.opening_snap_distance
        if self.mode is OpeningMode.SELECTING_WALL:
            wall = graph.find_wall_at(event.position)
            if wall is None:
                return None, None, self.default_width
            return wall, wall.closest_point(event.position), self.default_width

        opening = self.store.get(self.opening_id)
        if opening is None:
            return None, None, self.default_width
        if self.mode is OpeningMode.DRAGGING_OPENING:
            target = event.position + self.offset
            wall = graph.find_nearest_wall(target, snap)
            if wall is None:
                return None, None, opening.width
            return wall, wall.closest_point(target), opening.width

        wall = graph.find_nearest_wall(event.position, snap)
        if wall is None:
            return None, None, opening.width
        aligned = opening.model_copy(deep=True)
        if aligned.wall_id != wall.id:
            aligned.update_wall_reference(wall)
        centre = aligned.centre_for_connector(self.connector_id, event.position, wall)
        return wall, wall.closest_point(centre), opening.width

    def _is_valid(self, wall: Wall, centre: Point2D, width: float) -> bool:
        return self.session.validation.validate_opening_position(
            self.kind, wall, centre, width, exclude_id=self.opening_id,
        )

    def _on_mouse_move(self, event: CanvasEvent) -> None:
        if self.mode is OpeningMode.IDLE:
            return
        wall, centre, width = self._candidate(event)
        if wall is None:
            self.clear_preview()
            return
        self.preview(PreviewData(
            kind=self.kind.value, position=centre, angle=wall.angle, width=width,
            wall_id=wall.id, valid=self._is_valid(wall, centre, width),
        ))

    def _on_mouse_up(self, event: CanvasEvent) -> None:
        if self.mode is OpeningMode.IDLE:
            return
        wall, centre, width = self._candidate(event)
        mode, opening_id = self.mode, self.opening_id
        self.clear_preview()
        self.reset()
        if wall is None:
            logger.warning(f"{self.kind.value} released away from any wall")
            return
        if mode is OpeningMode.SELECTING_WALL:
            if not self.session.validation.validate_opening_position(self.kind, wall, centre, width):
                return
            opening = self.run(PlaceOpeningCommand(
                self.session.commands, self.kind, wall.id, centre, width=width,
            ))
            if opening is not None:
                self._select(opening)
            return
        if not self.session.validation.validate_opening_position(
                self.kind, wall, centre, width, exclude_id=opening_id):
            return
        self.run(MoveOpeningCommand(self.session.commands, opening_id, wall.id, centre))
