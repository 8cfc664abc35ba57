import pytest

from floorplan.tools.room_tool import rectangle_corners
from helpers import build_polyline, drag, pointer, press, pt


@pytest.fixture
def room_tool(session):
    press(session, "r")
    assert session.tools.active_tool_id == "room"
    return session.tools.active_tool


class TestRectangleCorners:
    def test_corners_are_sorted_and_rounded(self):
        corners = rectangle_corners(pt(300.4, 199.6), pt(0.2, -0.3))
        assert [(c.x, c.y) for c in corners] == [(0, 0), (300, 0), (300, 200), (0, 200)]


class TestRoomTool:
    """Dragging out rectangular rooms"""

    def test_drag_creates_closed_room(self, session, room_tool):
        drag(session, (0, 0), (300, 200))

        assert len(session.graph.get_all_nodes()) == 4
        assert len(session.graph.get_all_walls()) == 4
        rooms = session.rooms.all()
        assert len(rooms) == 1
        assert rooms[0].name == "Room 1"
        assert rooms[0].area == pytest.approx(6.0)
        assert session.graph.integrity_errors() == []

    def test_single_undo_removes_everything(self, session, room_tool):
        drag(session, (0, 0), (300, 200))
        assert len(session.history.history) == 1

        session.undo()

        assert session.graph.get_all_nodes() == []
        assert session.graph.get_all_walls() == []
        assert len(session.rooms) == 0

    def test_too_small_rectangle_is_rejected(self, session, room_tool):
        drag(session, (0, 0), (5, 100))
        assert session.graph.get_all_nodes() == []
        assert session.history.history == []

    def test_existing_nodes_and_walls_are_reused(self, session):
        nodes, walls = build_polyline(session, (0, 0), (300, 0))
        press(session, "r")

        drag(session, (2, 1), (300, 200))

        assert len(session.graph.get_all_nodes()) == 4
        assert len(session.graph.get_all_walls()) == 4
        room = session.rooms.all()[0]
        assert walls[0].id in room.wall_ids
        assert session.graph.get_node(nodes[0].id).degree == 2

    def test_rooms_are_numbered(self, session, room_tool):
        drag(session, (0, 0), (300, 200))
        drag(session, (500, 0), (700, 200))
        assert [r.name for r in session.rooms.all()] == ["Room 1", "Room 2"]

    def test_drag_previews_rectangle(self, session, room_tool, events):
        pointer(session, "mousedown", 0, 0)
        pointer(session, "mousemove", 100, 50)
        previews = [e.preview for e in events if e.type == "canvas:preview" and e.preview is not None]
        assert previews[-1].kind == "room"
        assert len(previews[-1].points) == 4
