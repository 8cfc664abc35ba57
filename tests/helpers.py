"""Shared builders for the test suite."""

from __future__ import annotations

from floorplan.models import CanvasEvent, KeyEvent, Modifiers, OpeningType, Point2D
from floorplan.commands.base import CompositeCommand
from floorplan.commands.graph_commands import CreateNodeCommand, CreateWallCommand
from floorplan.commands.opening_commands import PlaceOpeningCommand


def pt(x: float, y: float) -> Point2D:
    return Point2D(x=x, y=y)


def pointer(session, kind: str, x: float, y: float, **mods) -> None:
    session.tools.emit_canvas(CanvasEvent(type=kind, position=pt(x, y), modifiers=Modifiers(**mods)))


def drag(session, start: tuple[float, float], end: tuple[float, float], **mods) -> None:
    pointer(session, "mousedown", *start, **mods)
    pointer(session, "mousemove", *end, **mods)
    pointer(session, "mouseup", *end, **mods)


def click(session, x: float, y: float, **mods) -> None:
    pointer(session, "mousedown", x, y, **mods)
    pointer(session, "mouseup", x, y, **mods)


def press(session, key: str, **mods) -> None:
    session.tools.emit_key(KeyEvent(key=key, modifiers=Modifiers(**mods)))


def build_polyline(session, *points: tuple[float, float]):
    """Nodes at `points` joined by consecutive walls, as one history entry."""
    service = session.commands
    nodes = [CreateNodeCommand(service, pt(x, y)) for x, y in points]
    walls = [
        CreateWallCommand(service, a.node_id, b.node_id)
        for a, b in zip(nodes, nodes[1:])
    ]
    session.execute(CompositeCommand(service, nodes + walls, name="Polyline"))
    return (
        [session.graph.get_node(n.node_id) for n in nodes],
        [session.graph.get_wall(w.wall_id) for w in walls],
    )


def place(session, kind: OpeningType, wall_id: str, x: float, y: float, **properties):
    return session.execute(PlaceOpeningCommand(session.commands, kind, wall_id, pt(x, y), **properties))


def graph_state(graph) -> tuple:
    """Structural fingerprint: ids, positions and connectivity."""
    nodes = sorted(
        (n.id, round(n.position.x, 6), round(n.position.y, 6), tuple(sorted(n.connected_wall_ids)))
        for n in graph.get_all_nodes()
    )
    walls = sorted(
        (w.id, w.start_node_id, w.end_node_id,
         round(w.start_point.x, 6), round(w.start_point.y, 6),
         round(w.end_point.x, 6), round(w.end_point.y, 6), w.thickness, w.height)
        for w in graph.get_all_walls()
    )
    return nodes, walls
