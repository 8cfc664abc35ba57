"""Commands for doors, windows and rooms."""

from __future__ import annotations

from floorplan.models import Opening, OpeningType, Point2D, Room, new_id
from floorplan.commands.base import Command
from floorplan.services.command_service import CommandService


class PlaceOpeningCommand(Command):
    def __init__(
        self,
        service: CommandService,
        kind: OpeningType,
        wall_id: str,
        position: Point2D,
        opening_id: str | None = None,
        **properties,
    ) -> None:
        super().__init__(service)
        self.kind = kind
        self.wall_id = wall_id
        self.position = position
        self.opening_id = opening_id or new_id()
        self.properties = properties

    def get_name(self) -> str:
        return f"Place {self.kind.value}"

    def apply(self) -> Opening:
        return self.service.place_opening(
            self.kind, self.wall_id, self.position, self.opening_id, **self.properties,
        )


class MoveOpeningCommand(Command):
    """Move an opening along its wall or onto another wall."""

    def __init__(self, service: CommandService, opening_id: str, wall_id: str, position: Point2D) -> None:
        super().__init__(service)
        self.opening_id = opening_id
        self.wall_id = wall_id
        self.position = position
        self.previous_position: Point2D | None = None
        self.previous_wall_id: str | None = None

    def get_name(self) -> str:
        return "Move opening"

    def apply(self) -> Opening:
        current = self.service.require_opening(self.opening_id)
        self.previous_position = current.position.model_copy()
        self.previous_wall_id = current.wall_id
        return self.service.move_opening(self.opening_id, self.wall_id, self.position)


class FlipOpeningCommand(Command):
    def __init__(self, service: CommandService, opening_id: str) -> None:
        super().__init__(service)
        self.opening_id = opening_id

    def get_name(self) -> str:
        return "Flip opening"

    def apply(self) -> Opening:
        return self.service.flip_opening(self.opening_id)


class RemoveOpeningCommand(Command):
    def __init__(self, service: CommandService, opening_id: str) -> None:
        super().__init__(service)
        self.opening_id = opening_id

    def get_name(self) -> str:
        return "Remove opening"

    def apply(self) -> Opening | None:
        return self.service.remove_opening(self.opening_id)


class CreateRoomCommand(Command):
    def __init__(
        self, service: CommandService, wall_ids: list[str], name: str = "", room_id: str | None = None,
    ) -> None:
        super().__init__(service)
        self.wall_ids = list(wall_ids)
        self.name = name
        self.room_id = room_id or new_id()

    def get_name(self) -> str:
        return "Create room"

    def apply(self) -> Room:
        return self.service.create_room(self.wall_ids, self.name, self.room_id)
