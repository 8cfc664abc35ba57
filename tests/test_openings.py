import math

import pytest

from floorplan.models import OpeningType, Wall
from floorplan.core.errors import InvalidPlacement
from floorplan.core.reconciliation import choose_segment
from floorplan.commands.graph_commands import (
    CreateNodeCommand, DeleteWallCommand, MergeNodesCommand, MoveNodeCommand, SplitWallCommand,
)
from floorplan.commands.opening_commands import (
    FlipOpeningCommand, MoveOpeningCommand, RemoveOpeningCommand,
)
from helpers import build_polyline, place, pt

DOOR = OpeningType.DOOR
WINDOW = OpeningType.WINDOW


@pytest.fixture
def long_wall(session):
    """Single 400 long wall along the x axis"""
    nodes, walls = build_polyline(session, (0, 0), (400, 0))
    return walls[0]


class TestOpeningModel:
    """Connectors, flipping and storage records"""

    def test_connectors_sit_half_width_from_centre(self, session, long_wall):
        door = place(session, DOOR, long_wall.id, 150, 0)
        a, b = door.endpoints()
        assert (a.x, a.y) == (pytest.approx(100), pytest.approx(0))
        assert (b.x, b.y) == (pytest.approx(200), pytest.approx(0))
        assert door.node_a.wall_node_id == long_wall.start_node_id
        assert door.node_b.wall_node_id == long_wall.end_node_id

    def test_placement_projects_onto_wall(self, session, long_wall):
        door = place(session, DOOR, long_wall.id, 150, 12)
        assert (door.position.x, door.position.y) == (150, 0)
        assert door.wall_id == long_wall.id

    def test_flip_swaps_connectors_and_turns_around(self, session, long_wall):
        door = place(session, DOOR, long_wall.id, 150, 0)
        door.flip()
        assert door.is_flipped
        assert door.angle == pytest.approx(math.pi)
        assert door.open_direction.value == "right"
        assert door.node_a.wall_node_id == long_wall.end_node_id
        assert door.node_a.position.x == pytest.approx(200)

    def test_storage_uses_relative_position(self, session, long_wall):
        window = place(session, WINDOW, long_wall.id, 100, 0)
        data = window.to_storage_data(long_wall)
        assert data.position == pytest.approx(0.25)
        assert data.sill_height == 90
        assert data.color == "#FF69B4"

    def test_labels_use_ordinals(self, session, long_wall):
        door = place(session, DOOR, long_wall.id, 100, 0)
        window = place(session, WINDOW, long_wall.id, 300, 0)
        assert door.label == "Door_1"
        assert window.label == "Window_1"


class TestOpeningValidation:
    """Margins, overlap and wall length"""

    def test_end_margin(self, session, long_wall):
        check = session.validation.validate_door_position
        assert check(long_wall, pt(60, 0), 100)
        assert not check(long_wall, pt(59, 0), 100)
        assert check(long_wall, pt(340, 0), 100)
        assert not check(long_wall, pt(341, 0), 100)

    def test_wall_shorter_than_width(self, session):
        _, walls = build_polyline(session, (0, 0), (80, 0))
        assert not session.validation.validate_door_position(walls[0], pt(40, 0), 100)

    def test_doors_and_windows_cannot_overlap(self, session, long_wall):
        place(session, DOOR, long_wall.id, 100, 0)
        check = session.validation.validate_window_position
        assert not check(long_wall, pt(200, 0), 100)
        assert check(long_wall, pt(210, 0), 100)

    def test_opening_may_ignore_itself(self, session, long_wall):
        door = place(session, DOOR, long_wall.id, 100, 0)
        assert session.validation.validate_door_position(long_wall, pt(120, 0), 100, exclude_id=door.id)

    def test_invalid_placement_leaves_history(self, session, long_wall):
        size = len(session.history.history)
        with pytest.raises(InvalidPlacement):
            place(session, DOOR, long_wall.id, 20, 0)
        assert len(session.doors) == 0
        assert len(session.history.history) == size


class TestOrdinals:
    """Store ordinals are never reused"""

    def test_ordinals_increase_after_removal(self, session, long_wall):
        first = place(session, DOOR, long_wall.id, 100, 0)
        second = place(session, DOOR, long_wall.id, 300, 0)
        session.execute(RemoveOpeningCommand(session.commands, second.id))
        third = place(session, DOOR, long_wall.id, 300, 0)
        assert (first.number, second.number, third.number) == (1, 2, 3)

    def test_ordinals_increase_after_undo(self, session, long_wall):
        place(session, DOOR, long_wall.id, 100, 0)
        session.undo()
        again = place(session, DOOR, long_wall.id, 100, 0)
        assert again.number == 2

    def test_redo_keeps_ordinal(self, session, long_wall):
        door = place(session, DOOR, long_wall.id, 100, 0)
        session.undo()
        session.redo()
        assert session.doors.get(door.id).number == 1


class TestReconciliation:
    """Openings follow their walls through graph edits"""

    def test_door_follows_stretched_wall(self, session):
        nodes, walls = build_polyline(session, (0, 0), (200, 0))
        door = place(session, DOOR, walls[0].id, 100, 0)

        session.execute(MoveNodeCommand(session.commands, nodes[1].id, pt(400, 0)))

        moved = session.doors.get(door.id)
        assert moved.position.x == pytest.approx(200)
        assert moved.node_a.position.x == pytest.approx(150)
        session.undo()
        assert session.doors.get(door.id).position.x == pytest.approx(100)

    def test_door_follows_rotated_wall(self, session):
        nodes, walls = build_polyline(session, (0, 0), (200, 0))
        door = place(session, DOOR, walls[0].id, 100, 0)

        session.execute(MoveNodeCommand(session.commands, nodes[1].id, pt(0, 200)))

        moved = session.doors.get(door.id)
        assert (moved.position.x, moved.position.y) == (pytest.approx(0), pytest.approx(100))
        assert moved.angle == pytest.approx(math.pi / 2)

    def test_split_rehosts_on_containing_segment(self, session, long_wall):
        door = place(session, DOOR, long_wall.id, 300, 0)
        command = SplitWallCommand(session.commands, long_wall.id, pt(150, 0))

        _, first, second = session.execute(command)

        moved = session.doors.get(door.id)
        assert moved.wall_id == second.id
        assert moved.position.x == pytest.approx(300)
        session.undo()
        assert session.doors.get(door.id).wall_id == long_wall.id

    def test_choose_segment_falls_back_to_nearest_line(self):
        near = Wall(start_node_id="a", end_node_id="b", start_point=pt(0, 0), end_point=pt(100, 0))
        far = Wall(start_node_id="c", end_node_id="d", start_point=pt(0, 50), end_point=pt(100, 50))
        wall, t = choose_segment(pt(500, 10), [far, near])
        assert wall is near
        assert t == 1.0

    def test_deleting_wall_removes_its_openings(self, session, long_wall, events):
        door = place(session, DOOR, long_wall.id, 100, 0)
        window = place(session, WINDOW, long_wall.id, 300, 0)

        session.execute(DeleteWallCommand(session.commands, long_wall.id))

        assert len(session.doors) == 0 and len(session.windows) == 0
        deleted = {(e.kind, e.object_id) for e in events if e.type == "object:deleted"}
        assert {("door", door.id), ("window", window.id), ("wall", long_wall.id)} <= deleted

        session.undo()
        assert session.doors.get(door.id).number == 1
        assert session.windows.get(window.id).wall_id == long_wall.id

    def test_merge_transfers_onto_reversed_wall(self, session):
        nodes, walls = build_polyline(session, (0, 0), (300, 0), (0, 5))
        a, b, c = nodes
        door = place(session, DOOR, walls[0].id, 100, 0)

        session.execute(MergeNodesCommand(session.commands, a.id, c.id))

        moved = session.doors.get(door.id)
        assert moved.wall_id == walls[1].id
        assert moved.is_flipped
        assert moved.position.x == pytest.approx(100, abs=0.1)
        assert session.graph.integrity_errors() == []

    def test_merge_transfers_onto_created_wall(self, session):
        nodes, walls = build_polyline(session, (0, 0), (300, 0))
        target = session.execute(CreateNodeCommand(session.commands, pt(300, 40)))
        door = place(session, DOOR, walls[0].id, 150, 0)

        result = session.execute(MergeNodesCommand(session.commands, nodes[1].id, target.id))

        moved = session.doors.get(door.id)
        assert moved.wall_id == result.created_wall_ids[0]
        assert not moved.is_flipped


class TestOpeningCommands:
    """Move, flip and remove through history"""

    def test_move_to_another_wall(self, session):
        _, walls = build_polyline(session, (0, 0), (300, 0), (300, 300))
        door = place(session, DOOR, walls[0].id, 150, 0)
        command = MoveOpeningCommand(session.commands, door.id, walls[1].id, pt(310, 150))

        session.execute(command)

        moved = session.doors.get(door.id)
        assert moved.wall_id == walls[1].id
        assert (moved.position.x, moved.position.y) == (300, 150)
        assert command.previous_wall_id == walls[0].id
        session.undo()
        assert session.doors.get(door.id).wall_id == walls[0].id

    def test_flip_undo(self, session, long_wall):
        door = place(session, DOOR, long_wall.id, 150, 0)
        session.execute(FlipOpeningCommand(session.commands, door.id))
        assert session.doors.get(door.id).is_flipped
        session.undo()
        restored = session.doors.get(door.id)
        assert not restored.is_flipped
        assert restored.node_a.position.x == pytest.approx(100)
