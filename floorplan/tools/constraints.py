"""Modifier-key constraints and node snapping for pointer targets."""

from __future__ import annotations

from floorplan.models import EditorParams, Modifiers, Node, Point2D
from floorplan.models.geometry import angle_of, point_at, snap_angle, snap_to_grid
from floorplan.core.graph import WallGraph


def constrain_point(
    anchor: Point2D | None, target: Point2D, modifiers: Modifiers, params: EditorParams,
) -> Point2D:
    """
    Apply modifier constraints to `target`.

    CTRL snaps the direction from `anchor` to 90 degrees, otherwise SHIFT to
    15 degrees; distance is kept. ALT rounds that distance to the grid pitch
    when an angle snap is active, and snaps the point itself to the grid
    when it is not.
    """
    pitch = params.grid_pitch
    angle_step = params.angle_snap_ctrl if modifiers.ctrl else \
        params.angle_snap_shift if modifiers.shift else None

    if anchor is None or angle_step is None:
        return snap_to_grid(target, pitch) if modifiers.alt else target

    distance = anchor.distance_to(target)
    if distance == 0:
        return anchor.model_copy()
    angle = snap_angle(angle_of(anchor, target), angle_step)
    if modifiers.alt:
        distance = round(distance / pitch) * pitch
    point = point_at(anchor, angle, distance)
    # Trim float noise so axis-aligned results compare exactly
    return Point2D(x=round(point.x, 9) + 0.0, y=round(point.y, 9) + 0.0)


def resolve_target(
    graph: WallGraph,
    params: EditorParams,
    anchor: Point2D | None,
    raw: Point2D,
    modifiers: Modifiers,
    exclude_id: str | None = None,
) -> tuple[Point2D, Node | None]:
    """Snap to a nearby node when there is one, otherwise apply modifier constraints."""
    node = graph.find_closest_node(raw, params.snap_threshold, exclude_id)
    if node is not None:
        return node.position.model_copy(), node
    return constrain_point(anchor, raw, modifiers, params), None
