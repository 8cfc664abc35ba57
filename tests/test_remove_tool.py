from floorplan.models import OpeningType
from helpers import build_polyline, click, graph_state, place, press, pt


class TestDeleteKey:
    """Delete runs the remove tool once and returns to the previous tool"""

    def test_delete_node_fuses_walls(self, session):
        nodes, _ = build_polyline(session, (0, 0), (100, 0), (200, 0))
        before = graph_state(session.graph)
        click(session, 100, 0)
        assert session.selection.node_ids == [nodes[1].id]

        press(session, "Delete")

        walls = session.graph.get_all_walls()
        assert len(walls) == 1
        assert {walls[0].start_node_id, walls[0].end_node_id} == {nodes[0].id, nodes[2].id}
        assert session.tools.active_tool_id == "select"
        assert session.selection.is_empty

        session.undo()
        assert graph_state(session.graph) == before

    def test_backspace_works_too(self, session):
        build_polyline(session, (0, 0), (100, 0), (200, 0))
        click(session, 100, 0)
        press(session, "Backspace")
        assert len(session.graph.get_all_walls()) == 1

    def test_node_with_single_wall(self, session):
        nodes, _ = build_polyline(session, (0, 0), (100, 0))
        click(session, 100, 0)

        press(session, "Delete")

        assert session.graph.get_all_walls() == []
        assert [n.id for n in session.graph.get_all_nodes()] == [nodes[0].id]

    def test_wall_removal_prunes_orphan_nodes(self, session):
        nodes, walls = build_polyline(session, (0, 0), (100, 0), (200, 0))
        click(session, 50, 0)
        assert session.selection.wall_ids == [walls[0].id]

        press(session, "Delete")

        assert [w.id for w in session.graph.get_all_walls()] == [walls[1].id]
        assert session.graph.get_node(nodes[0].id) is None
        assert session.graph.get_node(nodes[1].id) is not None
        assert session.graph.integrity_errors() == []

    def test_openings_go_before_their_wall(self, session):
        _, walls = build_polyline(session, (0, 0), (400, 0))
        door = place(session, OpeningType.DOOR, walls[0].id, 150, 0)
        session.selection.select(wall_ids=[walls[0].id], door_ids=[door.id])

        press(session, "Delete")

        assert len(session.doors) == 0
        assert session.graph.get_all_walls() == []
        assert session.graph.get_all_nodes() == []
        session.undo()
        assert session.doors.get(door.id).wall_id == walls[0].id

    def test_empty_selection_does_nothing(self, session):
        build_polyline(session, (0, 0), (100, 0))
        size = len(session.history.history)

        press(session, "Delete")

        assert len(session.history.history) == size
        assert session.tools.active_tool_id == "select"

    def test_whole_removal_is_one_undo_step(self, session):
        nodes, walls = build_polyline(session, (0, 0), (100, 0), (200, 0), (200, 100))
        size = len(session.history.history)
        session.selection.select(node_ids=[nodes[1].id], wall_ids=[walls[2].id])

        press(session, "Delete")

        assert len(session.history.history) == size + 1


class TestRemoveToolActive:
    """Activating the remove tool from the toolbar"""

    def test_activation_removes_selection_and_tool_stays(self, session):
        _, walls = build_polyline(session, (0, 0), (100, 0), (100, 100))
        session.selection.select(wall_ids=[walls[0].id])

        session.tools.activate("remove")

        assert session.graph.get_wall(walls[0].id) is None
        assert session.tools.active_tool_id == "remove"

    def test_click_removes_hit(self, session):
        _, walls = build_polyline(session, (0, 0), (100, 0), (100, 100))
        session.tools.activate("remove")

        click(session, 100, 50)

        assert session.graph.get_wall(walls[1].id) is None
        assert session.graph.find_closest_node(pt(100, 100), 1) is None

    def test_click_on_nothing(self, session):
        build_polyline(session, (0, 0), (100, 0))
        session.tools.activate("remove")
        size = len(session.history.history)
        click(session, 50, 80)
        assert len(session.history.history) == size
