import pytest

from floorplan.models import Door, OpeningType, Room
from floorplan.core.events import EventBus
from floorplan.core.stores import DoorStore, OpeningStore, SelectionStore
from floorplan.commands.graph_commands import (
    CreateNodeCommand, CreateWallCommand, MergeNodesCommand, SplitWallCommand,
)
from floorplan.commands.opening_commands import CreateRoomCommand
from helpers import build_polyline, place, pt


def door_on(wall, x):
    return Door.on_wall(wall, pt(x, 0))


@pytest.fixture
def rectangle(session):
    """Closed 300 x 200 loop of four walls"""
    nodes, walls = build_polyline(session, (0, 0), (300, 0), (300, 200), (0, 200))
    closing = session.execute(CreateWallCommand(session.commands, nodes[3].id, nodes[0].id))
    return nodes, walls + [closing]


class TestDoorStore:
    """Door registry events and ordinals"""

    def test_base_store_is_abstract(self):
        with pytest.raises(TypeError):
            OpeningStore(EventBus())

    def test_add_emits_added_then_changed(self, session):
        _, walls = build_polyline(session, (0, 0), (400, 0))
        bus = EventBus()
        store = DoorStore(bus)
        seen = []
        bus.on("*", seen.append)

        door = store.add(door_on(walls[0], 100))

        assert [e.type for e in seen] == ["door:added", "door:changed"]
        assert seen[0].number == 1
        assert store.number_of(door.id) == 1
        assert door.id in store

    def test_remove_emits_removed(self, session):
        _, walls = build_polyline(session, (0, 0), (400, 0))
        bus = EventBus()
        store = DoorStore(bus)
        door = store.add(door_on(walls[0], 100))
        seen = []
        bus.on("door:removed", seen.append)

        assert store.remove(door.id) is door
        assert store.remove(door.id) is None
        assert len(seen) == 1

    def test_clear_resets_counter(self, session):
        _, walls = build_polyline(session, (0, 0), (400, 0))
        bus = EventBus()
        store = DoorStore(bus)
        seen = []
        bus.on("door:cleared", seen.append)
        store.add(door_on(walls[0], 100))

        store.clear()

        assert len(store) == 0
        assert len(seen) == 1
        assert store.add(door_on(walls[0], 100)).number == 1

    def test_restore_keeps_number(self, session):
        _, walls = build_polyline(session, (0, 0), (400, 0))
        store = DoorStore()
        restored = door_on(walls[0], 100)
        restored.number = 7
        store.restore(restored)
        assert store.add(door_on(walls[0], 300)).number == 8

    def test_by_wall(self, session):
        _, walls = build_polyline(session, (0, 0), (400, 0), (400, 400))
        door = place(session, OpeningType.DOOR, walls[0].id, 100, 0)
        assert session.doors.by_wall(walls[0].id) == [door]
        assert session.doors.by_wall(walls[1].id) == []


class TestSelectionStore:
    """Selection follows selection:changed events"""

    def test_select_round_trips_through_bus(self):
        bus = EventBus()
        store = SelectionStore(bus)
        seen = []
        bus.on("selection:changed", seen.append)

        store.select(node_ids=["n1"], wall_ids=["w1"])

        assert store.node_ids == ["n1"]
        assert store.contains("wall", "w1")
        assert len(seen) == 1

    def test_toggle(self):
        store = SelectionStore(EventBus())
        store.toggle("door", "d1")
        assert store.door_ids == ["d1"]
        store.toggle("door", "d1")
        assert store.is_empty

    def test_clear_only_emits_when_needed(self):
        bus = EventBus()
        store = SelectionStore(bus)
        seen = []
        bus.on("selection:changed", seen.append)

        store.clear_selection()
        assert seen == []

        store.select(window_ids=["x"])
        store.clear_selection()
        assert len(seen) == 2
        assert store.is_empty

    def test_dispose_stops_tracking(self):
        bus = EventBus()
        store = SelectionStore(bus)
        store.select(node_ids=["a"])
        store.dispose()
        store.select(node_ids=["b"])
        assert store.node_ids == ["a"]

    def test_session_mirrors_selection_onto_entities(self, session):
        nodes, walls = build_polyline(session, (0, 0), (100, 0))
        session.selection.select(wall_ids=[walls[0].id])
        assert walls[0].is_selected
        assert not nodes[0].is_selected
        session.selection.clear_selection()
        assert not walls[0].is_selected


class TestRoomStore:
    """Room outlines and areas"""

    def test_rectangle_area_in_square_metres(self, session, rectangle):
        _, walls = rectangle
        room = session.execute(CreateRoomCommand(session.commands, [w.id for w in walls], "Room 1"))

        closed = session.rooms.closed_rooms(session.graph)

        assert [r.id for r in closed] == [room.id]
        assert closed[0].area == pytest.approx(6.0)

    def test_open_loop_is_not_a_room(self, session, rectangle):
        _, walls = rectangle
        room = Room(wall_ids=[w.id for w in walls[:3]])
        assert session.rooms.outline(room, session.graph) is None
        session.rooms.add(room)
        assert session.rooms.closed_rooms(session.graph) == []

    def test_room_survives_split(self, session, rectangle):
        _, walls = rectangle
        room = session.execute(CreateRoomCommand(session.commands, [w.id for w in walls]))

        _, first, second = session.execute(SplitWallCommand(session.commands, walls[0].id, pt(150, 0)))

        stored = session.rooms.get(room.id)
        assert walls[0].id not in stored.wall_ids
        assert {first.id, second.id} <= set(stored.wall_ids)
        assert session.rooms.closed_rooms(session.graph)[0].area == pytest.approx(6.0)

        session.undo()
        assert walls[0].id in session.rooms.get(room.id).wall_ids

    def test_room_is_undoable(self, session, rectangle):
        _, walls = rectangle
        room = session.execute(CreateRoomCommand(session.commands, [w.id for w in walls]))
        session.undo()
        assert session.rooms.get(room.id) is None
        session.redo()
        assert session.rooms.get(room.id) is not None

    def test_l_shaped_area(self, session):
        nodes, walls = build_polyline(
            session, (0, 0), (300, 0), (300, 100), (100, 100), (100, 200), (0, 200),
        )
        walls.append(session.execute(CreateWallCommand(session.commands, nodes[5].id, nodes[0].id)))
        session.execute(CreateRoomCommand(session.commands, [w.id for w in walls], "Hall"))

        assert session.rooms.closed_rooms(session.graph)[0].area == pytest.approx(4.0)

    def test_room_keeps_wall_collapsed_by_merge(self, session, rectangle):
        nodes, walls = rectangle
        corner = session.execute(CreateNodeCommand(session.commands, pt(0, 250)))
        outside = session.execute(CreateWallCommand(session.commands, nodes[2].id, corner.id))
        room = session.execute(CreateRoomCommand(session.commands, [w.id for w in walls]))

        result = session.execute(MergeNodesCommand(session.commands, nodes[3].id, corner.id))

        assert result.replacements[walls[2].id] == outside.id
        stored = session.rooms.get(room.id)
        assert outside.id in stored.wall_ids
        assert walls[2].id not in stored.wall_ids
        closed = session.rooms.closed_rooms(session.graph)
        assert [r.id for r in closed] == [room.id]
        assert closed[0].area == pytest.approx(6.75)
