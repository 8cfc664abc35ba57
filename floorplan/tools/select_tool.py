"""Selection tool."""

from __future__ import annotations

from floorplan.models import CanvasEvent, Point2D
from floorplan.tools.base import Tool, ToolManifest


class SelectTool(Tool):
    """Click to select; SHIFT-click toggles; clicking empty space clears."""

    manifest = ToolManifest(
        id="select", name="Select", icon="pointer", tooltip="Select elements (V)",
        section="edit", order=0, shortcut="v",
    )

    def on_canvas_event(self, event: CanvasEvent) -> None:
        if event.type != "mousedown" or event.button != 0:
            return
        selection = self.session.selection
        hit = hit_test(self.session, event.position)
        if hit is None:
            if not event.modifiers.shift:
                selection.clear_selection()
            return
        kind, entity_id = hit
        if event.modifiers.shift:
            selection.toggle(kind, entity_id)
        else:
            selection.select(**{f"{kind}_ids": [entity_id]})


def hit_test(session, point: Point2D) -> tuple[str, str] | None:
    """Topmost entity under `point`: node, then door, then window, then wall."""
    params = session.params
    node = session.graph.find_closest_node(point, params.snap_threshold)
    if node is not None:
        return "node", node.id
    for door in session.doors.all():
        if door.contains_point(point, params.opening_hit_padding / 2):
            return "door", door.id
    for window in session.windows.all():
        if window.contains_point(point, params.opening_hit_padding / 2):
            return "window", window.id
    wall = session.graph.find_wall_at(point)
    if wall is not None:
        return "wall", wall.id
    return None
