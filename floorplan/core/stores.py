"""Opening, room and selection stores."""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, TypeVar
from pydantic import BaseModel
from shapely.geometry import Polygon

from floorplan.models import Door, EditorParams, Opening, Room, Window
from floorplan.models.events import (
    DoorAdded, DoorChanged, DoorCleared, DoorRemoved,
    RoomChanged, SelectionChanged,
    WindowAdded, WindowChanged, WindowCleared, WindowRemoved,
)
from floorplan.models.geometry import Point2D
from floorplan.core.errors import EntityNotFound, InvalidTopology
from floorplan.core.events import EventBus
from floorplan.core.graph import WallGraph
from floorplan.core.journal import JournalRecorder

logger = logging.getLogger(__name__)

O = TypeVar("O", bound=Opening)


class OpeningStore(ABC, Generic[O]):
    """
    Registry of one opening kind.

    Each added opening receives the next ordinal; ordinals are never reused
    within a session, even after removal or undo.
    """

    kind: str = "opening"

    def __init__(self, bus: EventBus | None = None, recorder: JournalRecorder | None = None) -> None:
        self.bus = bus or EventBus()
        self.recorder = recorder or JournalRecorder()
        self.recorder.register(self.kind, self)
        self._items: dict[str, O] = {}
        self._count = 0

    # Event factories, provided per kind
    @abstractmethod
    def _added(self, opening: O) -> BaseModel:
        ...

    @abstractmethod
    def _changed(self, ids: list[str]) -> BaseModel:
        ...

    @abstractmethod
    def _removed(self, opening_id: str) -> BaseModel:
        ...

    @abstractmethod
    def _cleared(self) -> BaseModel:
        ...

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, opening_id: object) -> bool:
        return opening_id in self._items

    def get(self, opening_id: str) -> O | None:
        return self._items.get(opening_id)

    def require(self, opening_id: str) -> O:
        opening = self._items.get(opening_id)
        if opening is None:
            raise EntityNotFound(self.kind.capitalize(), opening_id)
        return opening

    def all(self) -> list[O]:
        return list(self._items.values())

    def by_wall(self, wall_id: str) -> list[O]:
        return [o for o in self._items.values() if o.wall_id == wall_id]

    def number_of(self, opening_id: str) -> int | None:
        opening = self._items.get(opening_id)
        return opening.number if opening is not None else None

    def add(self, opening: O) -> O:
        if opening.id in self._items:
            raise InvalidTopology(f"{self.kind} id '{opening.id}' already exists")
        self.recorder.touch(self.kind, opening.id, None)
        self._count += 1
        opening.number = self._count
        self._items[opening.id] = opening
        logger.info(f"Added {self.kind} {opening.label} on wall {opening.wall_id}")
        self.bus.emit(self._added(opening))
        self.bus.emit(self._changed([opening.id]))
        return opening

    def restore(self, opening: O) -> O:
        """Re-add a previously exported opening, keeping its ordinal."""
        if opening.id in self._items:
            raise InvalidTopology(f"{self.kind} id '{opening.id}' already exists")
        self.recorder.touch(self.kind, opening.id, None)
        if opening.number is None:
            self._count += 1
            opening.number = self._count
        else:
            self._count = max(self._count, opening.number)
        self._items[opening.id] = opening
        self.bus.emit(self._changed([opening.id]))
        return opening

    def replace(self, opening: O) -> O:
        """Store an updated copy of an existing opening."""
        if opening.id not in self._items:
            raise EntityNotFound(self.kind.capitalize(), opening.id)
        self.recorder.touch(self.kind, opening.id, self._items[opening.id])
        self._items[opening.id] = opening
        self.bus.emit(self._changed([opening.id]))
        return opening

    def remove(self, opening_id: str) -> O | None:
        opening = self._items.get(opening_id)
        if opening is None:
            return None
        self.recorder.touch(self.kind, opening_id, opening)
        del self._items[opening_id]
        logger.info(f"Removed {self.kind} {opening.label}")
        self.bus.emit(self._removed(opening_id))
        self.bus.emit(self._changed([opening_id]))
        return opening

    def clear(self) -> None:
        self._items.clear()
        self._count = 0
        self.bus.emit(self._cleared())

    def notify_changed(self, ids: Iterable[str]) -> None:
        ids = list(ids)
        if ids:
            self.bus.emit(self._changed(ids))

    # -- journal repository -------------------------------------------------

    def journal_get(self, kind: str, entity_id: str) -> BaseModel | None:
        return self._items.get(entity_id)

    def journal_put(self, kind: str, entity: BaseModel) -> None:
        self._items[entity.id] = entity
        if entity.number is not None:
            self._count = max(self._count, entity.number)

    def journal_drop(self, kind: str, entity_id: str) -> None:
        self._items.pop(entity_id, None)


class DoorStore(OpeningStore[Door]):
    kind = "door"

    def _added(self, opening: Door) -> BaseModel:
        return DoorAdded(door_id=opening.id, number=opening.number)

    def _changed(self, ids: list[str]) -> BaseModel:
        return DoorChanged(door_ids=ids)

    def _removed(self, opening_id: str) -> BaseModel:
        return DoorRemoved(door_id=opening_id)

    def _cleared(self) -> BaseModel:
        return DoorCleared()


class WindowStore(OpeningStore[Window]):
    kind = "window"

    def _added(self, opening: Window) -> BaseModel:
        return WindowAdded(window_id=opening.id, number=opening.number)

    def _changed(self, ids: list[str]) -> BaseModel:
        return WindowChanged(window_ids=ids)

    def _removed(self, opening_id: str) -> BaseModel:
        return WindowRemoved(window_id=opening_id)

    def _cleared(self) -> BaseModel:
        return WindowCleared()


class RoomStore:
    """Room definitions; geometry and area are derived from the graph on demand."""

    def __init__(
        self,
        bus: EventBus | None = None,
        recorder: JournalRecorder | None = None,
        params: EditorParams | None = None,
    ) -> None:
        self.bus = bus or EventBus()
        self.recorder = recorder or JournalRecorder()
        self.recorder.register("room", self)
        self.params = params or EditorParams()
        self._rooms: dict[str, Room] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def get(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    def all(self) -> list[Room]:
        return list(self._rooms.values())

    def add(self, room: Room) -> Room:
        if room.id in self._rooms:
            raise InvalidTopology(f"Room id '{room.id}' already exists")
        self.recorder.touch("room", room.id, None)
        self._rooms[room.id] = room
        logger.info(f"Added room {room.id} ({len(room.wall_ids)} walls)")
        self.bus.emit(RoomChanged(room_ids=[room.id]))
        return room

    def remove(self, room_id: str) -> Room | None:
        room = self._rooms.get(room_id)
        if room is None:
            return None
        self.recorder.touch("room", room_id, room)
        del self._rooms[room_id]
        self.bus.emit(RoomChanged(room_ids=[room_id]))
        return room

    def replace_wall(self, old_wall_id: str, new_wall_ids: list[str]) -> None:
        """Substitute a wall id in every definition (empty list drops it)."""
        changed: list[str] = []
        for room in self._rooms.values():
            if old_wall_id not in room.wall_ids:
                continue
            self.recorder.touch("room", room.id, room)
            idx = room.wall_ids.index(old_wall_id)
            fresh = [w for w in new_wall_ids if w not in room.wall_ids]
            room.wall_ids[idx:idx + 1] = fresh
            changed.append(room.id)
        if changed:
            self.bus.emit(RoomChanged(room_ids=changed))

    def outline(self, room: Room, graph: WallGraph) -> list[Point2D] | None:
        """Trace the room's walls as one closed loop; None when they do not form one."""
        walls = [graph.get_wall(wid) for wid in room.wall_ids]
        if len(walls) < 3 or any(w is None for w in walls):
            return None
        adjacency: dict[str, list[str]] = {}
        for wall in walls:
            for node_id in wall.node_ids:
                adjacency.setdefault(node_id, []).append(wall.id)
        if any(len(ids) != 2 for ids in adjacency.values()):
            return None

        by_id = {w.id: w for w in walls}
        first = walls[0]
        points: list[Point2D] = [first.start_point]
        node_id = first.end_node_id
        came_from = first.id
        visited = {first.id}
        while node_id != first.start_node_id:
            graph_node = graph.get_node(node_id)
            points.append(graph_node.position)
            next_id = next(w for w in adjacency[node_id] if w != came_from)
            if next_id in visited:
                return None
            visited.add(next_id)
            node_id = by_id[next_id].other_node_id(node_id)
            came_from = next_id
        if len(visited) != len(walls):
            return None
        return points

    def closed_rooms(self, graph: WallGraph) -> list[Room]:
        """Rooms whose walls still close, with area refreshed in square metres."""
        result: list[Room] = []
        scale = self.params.units_per_metre ** 2
        for room in self._rooms.values():
            points = self.outline(room, graph)
            if points is None:
                continue
            polygon = Polygon([(p.x, p.y) for p in points])
            if not polygon.is_valid:
                # self-crossing outline
                polygon = polygon.buffer(0)
            room.area = polygon.area / scale
            result.append(room)
        return result

    def clear(self) -> None:
        ids = list(self._rooms)
        self._rooms.clear()
        if ids:
            self.bus.emit(RoomChanged(room_ids=ids))

    def notify_changed(self, ids: Iterable[str]) -> None:
        ids = list(ids)
        if ids:
            self.bus.emit(RoomChanged(room_ids=ids))

    # -- journal repository -------------------------------------------------

    def journal_get(self, kind: str, entity_id: str) -> BaseModel | None:
        return self._rooms.get(entity_id)

    def journal_put(self, kind: str, entity: BaseModel) -> None:
        self._rooms[entity.id] = entity

    def journal_drop(self, kind: str, entity_id: str) -> None:
        self._rooms.pop(entity_id, None)


class SelectionStore:
    """
    Cross-tool selection, rebuilt from `selection:changed` events.

    `select()` publishes; state only changes when the event comes back
    through the bus, so every subscriber sees the same sequence.
    """

    def __init__(self, bus: EventBus) -> None:
        self.bus = bus
        self.node_ids: list[str] = []
        self.wall_ids: list[str] = []
        self.door_ids: list[str] = []
        self.window_ids: list[str] = []
        self._unsubscribe: Callable[[], None] | None = bus.on("selection:changed", self._on_changed)

    def _on_changed(self, event: SelectionChanged) -> None:
        self.node_ids = list(event.node_ids)
        self.wall_ids = list(event.wall_ids)
        self.door_ids = list(event.door_ids)
        self.window_ids = list(event.window_ids)

    @property
    def is_empty(self) -> bool:
        return not (self.node_ids or self.wall_ids or self.door_ids or self.window_ids)

    def snapshot(self) -> SelectionChanged:
        return SelectionChanged(
            node_ids=list(self.node_ids), wall_ids=list(self.wall_ids),
            door_ids=list(self.door_ids), window_ids=list(self.window_ids),
        )

    def select(
        self,
        node_ids: Iterable[str] = (),
        wall_ids: Iterable[str] = (),
        door_ids: Iterable[str] = (),
        window_ids: Iterable[str] = (),
    ) -> None:
        self.bus.emit(SelectionChanged(
            node_ids=list(node_ids), wall_ids=list(wall_ids),
            door_ids=list(door_ids), window_ids=list(window_ids),
        ))

    def toggle(self, kind: str, entity_id: str) -> None:
        current = self.snapshot()
        ids: list[str] = getattr(current, f"{kind}_ids")
        if entity_id in ids:
            ids.remove(entity_id)
        else:
            ids.append(entity_id)
        self.bus.emit(current)

    def contains(self, kind: str, entity_id: str) -> bool:
        return entity_id in getattr(self, f"{kind}_ids")

    def clear_selection(self) -> None:
        if self.is_empty:
            return
        self.select()

    def dispose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
