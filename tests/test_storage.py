import json

import pytest

from floorplan.models import OpeningType, ProjectMetadata
from floorplan.core.errors import InvalidTopology
from floorplan.commands.graph_commands import CreateWallCommand
from floorplan.commands.opening_commands import CreateRoomCommand
from floorplan.services.session import EditorSession
from floorplan.services.storage import (
    export_project, from_json, import_project, load_project, save_project, to_json,
)
from helpers import build_polyline, place, pt


@pytest.fixture
def furnished(session):
    """Closed 300 x 200 room with a door and a window"""
    nodes, walls = build_polyline(session, (0, 0), (300, 0), (300, 200), (0, 200))
    walls.append(session.execute(CreateWallCommand(session.commands, nodes[3].id, nodes[0].id)))
    session.execute(CreateRoomCommand(session.commands, [w.id for w in walls], "Living"))
    place(session, OpeningType.DOOR, walls[0].id, 150, 0)
    place(session, OpeningType.WINDOW, walls[1].id, 300, 100)
    return session


@pytest.fixture
def other():
    """Second, empty session to import into"""
    s = EditorSession()
    yield s
    s.dispose()


class TestExport:
    """Snapshot contents"""

    def test_export_counts_and_relative_positions(self, furnished):
        data = export_project(furnished)
        canvas = data.canvas
        assert (len(canvas.nodes), len(canvas.walls), len(canvas.doors), len(canvas.windows)) == (4, 4, 1, 1)
        assert canvas.doors[0].position == pytest.approx(0.5)
        assert canvas.windows[0].position == pytest.approx(0.5)
        assert canvas.rooms[0].area == pytest.approx(6.0)
        assert data.settings.default_wall_thickness == 10

    def test_metadata_is_kept(self, furnished):
        data = export_project(furnished, ProjectMetadata(name="Flat", author="me"))
        assert data.metadata.name == "Flat"
        assert data.metadata.author == "me"


class TestImport:
    """Restoring a snapshot into a session"""

    def test_round_trip(self, furnished, other):
        data = export_project(furnished)

        import_project(other, data)
        again = export_project(other).canvas

        assert again.nodes == data.canvas.nodes
        assert again.walls == data.canvas.walls
        assert again.rooms == data.canvas.rooms
        door, original = again.doors[0], data.canvas.doors[0]
        assert (door.id, door.wall_id, door.number) == (original.id, original.wall_id, original.number)
        assert door.position == pytest.approx(original.position)
        assert other.graph.integrity_errors() == []

    def test_json_round_trip(self, furnished, other):
        text = to_json(export_project(furnished))
        assert json.loads(text)["canvas"]["doors"][0]["color"] == "#8B4513"

        import_project(other, from_json(text))

        assert len(other.doors) == 1
        assert len(other.windows) == 1
        assert other.windows.all()[0].sill_height == 90

    def test_import_clears_history(self, furnished, other):
        build_polyline(other, (0, 0), (50, 0))
        import_project(other, export_project(furnished))
        assert not other.history.can_undo()
        assert other.undo() is False

    def test_ordinals_continue_after_import(self, furnished, other):
        import_project(other, export_project(furnished))
        top = other.graph.find_nearest_wall(pt(150, 200), 1)
        door = place(other, OpeningType.DOOR, top.id, 150, 200)
        assert door.number == 2

    def test_inconsistent_node_lists_are_rejected(self, furnished, other):
        data = export_project(furnished)
        data.canvas.nodes[0].connected_wall_ids.append("ghost")

        with pytest.raises(InvalidTopology):
            import_project(other, data)

        assert other.graph.get_all_nodes() == []
        assert len(other.doors) == 0

    def test_wall_with_missing_node_is_rejected(self, furnished, other):
        data = export_project(furnished)
        data.canvas.walls[0].start_node_id = "missing"
        with pytest.raises(InvalidTopology):
            import_project(other, data)


class TestFiles:
    def test_save_and_load(self, furnished, other, tmp_path):
        path = save_project(furnished, tmp_path / "plan.json", ProjectMetadata(name="Flat"))
        assert path.exists()

        data = load_project(other, path)

        assert data.metadata.name == "Flat"
        assert len(other.graph.get_all_walls()) == 4
        assert other.rooms.all()[0].name == "Living"
