"""Keeps doors and windows attached to their walls through edits."""

from __future__ import annotations
import logging
import math

from floorplan.models import Opening, Point2D, Wall
from floorplan.models.geometry import perpendicular_distance, projection_parameter
from floorplan.core.graph import WallGraph
from floorplan.core.stores import OpeningStore

logger = logging.getLogger(__name__)

# Projection slack when deciding which split segment holds an opening
SPLIT_SLACK = 0.01


def relative_fraction(position: Point2D, wall: Wall) -> float:
    """Distance from the wall start as a fraction of the wall length."""
    length = wall.length
    if length == 0:
        return 0.0
    return position.distance_to(wall.start_point) / length


def position_at_fraction(wall: Wall, fraction: float) -> Point2D:
    d = wall.direction.normalized()
    distance = fraction * wall.length
    return Point2D(x=wall.start_point.x + d.x * distance, y=wall.start_point.y + d.y * distance)


def choose_segment(position: Point2D, segments: list[Wall]) -> tuple[Wall, float]:
    """
    Segment an opening belongs to after a split, with its clamped parameter.

    Prefers segments whose projection parameter is within the slack-widened
    [0, 1]; otherwise falls back to the smallest perpendicular distance.
    """
    if not segments:
        raise ValueError("choose_segment needs at least one segment")
    best: Wall | None = None
    best_t = 0.0
    best_dist = math.inf
    for wall in segments:
        t = projection_parameter(position, wall.start_point, wall.end_point)
        if -SPLIT_SLACK <= t <= 1 + SPLIT_SLACK:
            d = perpendicular_distance(position, wall.start_point, wall.end_point)
            if d < best_dist:
                best, best_t, best_dist = wall, t, d
    if best is None:
        for wall in segments:
            d = perpendicular_distance(position, wall.start_point, wall.end_point)
            if d < best_dist:
                best_dist = d
                best = wall
                best_t = projection_parameter(position, wall.start_point, wall.end_point)
    return best, max(0.0, min(1.0, best_t))


class OpeningReconciler:
    """Repositions or re-hosts openings after their wall changes."""

    def __init__(self, graph: WallGraph, stores: list[OpeningStore]) -> None:
        self.graph = graph
        self.stores = stores

    def _store_for(self, opening: Opening) -> OpeningStore:
        for store in self.stores:
            if store.kind == opening.kind.value:
                return store
        raise KeyError(opening.kind)

    def openings_on(self, wall_id: str) -> list[Opening]:
        found: list[Opening] = []
        for store in self.stores:
            found.extend(store.by_wall(wall_id))
        return found

    def _commit(self, opening: Opening) -> None:
        self._store_for(opening).replace(opening)

    def follow_wall(self, before: Wall, after: Wall) -> list[str]:
        """Relative-position preservation for openings on a wall whose ends moved."""
        moved: list[str] = []
        for opening in self.openings_on(before.id):
            updated = opening.model_copy(deep=True)
            fraction = relative_fraction(opening.position, before)
            updated.update_wall_reference(after)
            updated.update_position(position_at_fraction(after, fraction))
            self._commit(updated)
            moved.append(opening.id)
        return moved

    def reassign_split(self, openings: list[Opening], segments: list[Wall]) -> list[str]:
        """Re-host each opening on the segment it projects onto."""
        moved: list[str] = []
        for opening in openings:
            wall, t = choose_segment(opening.position, segments)
            updated = opening.model_copy(deep=True)
            updated.update_wall_reference(wall)
            updated.update_position(wall.start_point.lerp(wall.end_point, t))
            self._commit(updated)
            moved.append(opening.id)
            logger.debug(f"Opening {opening.id} re-hosted on {wall.id} at t={t:.3f}")
        return moved

    def transfer(self, opening: Opening, old: Wall, new: Wall, node_map: dict[str, str]) -> None:
        """
        Move an opening from `old` to its replacement `new`.

        `node_map` maps old endpoint ids to the ids they became. When the
        replacement runs the other way the fraction is mirrored and the
        opening flipped so it keeps facing the same side.
        """
        fraction = relative_fraction(opening.position, old)
        mapped_start = node_map.get(old.start_node_id, old.start_node_id)
        reversed_ = mapped_start != new.start_node_id
        updated = opening.model_copy(deep=True)
        if reversed_:
            fraction = 1.0 - fraction
            updated.is_flipped = not updated.is_flipped
        updated.update_wall_reference(new)
        updated.update_position(position_at_fraction(new, fraction))
        self._commit(updated)

    def remove_on_wall(self, wall_id: str) -> list[Opening]:
        removed: list[Opening] = []
        for opening in self.openings_on(wall_id):
            self._store_for(opening).remove(opening.id)
            removed.append(opening)
        return removed
