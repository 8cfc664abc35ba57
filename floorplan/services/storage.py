"""Project snapshot export/import."""

from __future__ import annotations
import logging
from datetime import datetime, timezone
from pathlib import Path

from floorplan.models import (
    CanvasData, Door, Node, ProjectData, ProjectMetadata, ProjectSettings, Room, Window,
)
from floorplan.core.errors import EditorError, InvalidTopology
from floorplan.services.session import EditorSession

logger = logging.getLogger(__name__)


def settings_from_params(session: EditorSession) -> ProjectSettings:
    params = session.params
    return ProjectSettings(
        grid_size=params.grid_pitch,
        default_wall_height=params.wall_height,
        default_wall_thickness=params.wall_thickness,
        default_door_width=params.door_width,
        default_door_height=params.door_height,
        default_window_width=params.window_width,
        default_window_height=params.window_height,
        default_window_sill_height=params.window_sill_height,
    )


def export_project(session: EditorSession, metadata: ProjectMetadata | None = None) -> ProjectData:
    """Flat snapshot of the session; openings keep positions relative to their wall."""
    graph = session.graph
    doors = []
    for door in session.doors.all():
        doors.append(door.to_storage_data(graph.require_wall(door.wall_id)))
    windows = []
    for window in session.windows.all():
        windows.append(window.to_storage_data(graph.require_wall(window.wall_id)))
    session.rooms.closed_rooms(graph)

    metadata = metadata.model_copy() if metadata is not None else ProjectMetadata()
    metadata.last_modified = datetime.now(timezone.utc).isoformat()
    return ProjectData(
        metadata=metadata,
        settings=settings_from_params(session),
        canvas=CanvasData(
            nodes=[n.to_storage_data() for n in graph.get_all_nodes()],
            walls=[w.to_storage_data() for w in graph.get_all_walls()],
            doors=doors,
            windows=windows,
            rooms=[r.to_storage_data() for r in session.rooms.all()],
        ),
    )


def import_project(session: EditorSession, data: ProjectData) -> None:
    """
    Replace the session's plan with `data`.

    Ids are kept. Wall connectivity is rebuilt from the walls, so a node's
    stored `connected_wall_ids` only has to agree with them. History is
    cleared. A snapshot that fails to load leaves the session empty.
    """
    session.reset()
    try:
        _load_canvas(session, data.canvas)
    except (EditorError, ValueError):
        logger.warning(f"Import of project '{data.metadata.name}' failed, session left empty")
        session.reset()
        raise

    session.history.clear()
    session.graph.notify_changed()
    canvas = data.canvas
    logger.info(
        f"Imported project '{data.metadata.name}': {len(canvas.nodes)} nodes, "
        f"{len(canvas.walls)} walls, {len(canvas.doors)} doors, {len(canvas.windows)} windows"
    )


def _load_canvas(session: EditorSession, canvas: CanvasData) -> None:
    graph = session.graph
    for node_data in canvas.nodes:
        node = Node.from_storage_data(node_data)
        graph.create_node(node.position, node.id)
    for wall_data in canvas.walls:
        graph.create_wall(
            wall_data.start_node_id, wall_data.end_node_id,
            wall_data.thickness, wall_data.height, wall_data.id,
        )
    for node_data in canvas.nodes:
        rebuilt = set(graph.require_node(node_data.id).connected_wall_ids)
        if set(node_data.connected_wall_ids) - rebuilt:
            raise InvalidTopology(f"Node '{node_data.id}' lists walls that do not reference it")

    for door_data in canvas.doors:
        session.doors.restore(Door.from_storage_data(door_data, graph.require_wall(door_data.wall_id)))
    for window_data in canvas.windows:
        session.windows.restore(Window.from_storage_data(window_data, graph.require_wall(window_data.wall_id)))
    for room_data in canvas.rooms:
        session.rooms.add(Room.from_storage_data(room_data))
    session.rooms.closed_rooms(graph)


def to_json(data: ProjectData) -> str:
    return data.model_dump_json(indent=2)


def from_json(text: str) -> ProjectData:
    return ProjectData.model_validate_json(text)


def save_project(session: EditorSession, path: str | Path, metadata: ProjectMetadata | None = None) -> Path:
    path = Path(path)
    path.write_text(to_json(export_project(session, metadata)), encoding="utf-8")
    logger.info(f"Saved project to {path}")
    return path


def load_project(session: EditorSession, path: str | Path) -> ProjectData:
    data = from_json(Path(path).read_text(encoding="utf-8"))
    import_project(session, data)
    return data
