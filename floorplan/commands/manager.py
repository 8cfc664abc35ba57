"""Undo/redo history."""

from __future__ import annotations
import logging
from typing import Any

from floorplan.models.events import HistoryChanged
from floorplan.core.events import EventBus
from floorplan.commands.base import Command

logger = logging.getLogger(__name__)


class CommandManager:
    """
    Ordered history with a cursor.

    `history[:cursor]` have been applied; `history[cursor:]` can be redone.
    Failures propagate to the caller and leave the history untouched.
    """

    def __init__(self, bus: EventBus | None = None, max_history: int = 50) -> None:
        self.bus = bus
        self.max_history = max_history
        self.history: list[Command] = []
        self.cursor = 0

    def _notify(self) -> None:
        if self.bus is not None:
            self.bus.emit(HistoryChanged(
                can_undo=self.can_undo(), can_redo=self.can_redo(),
                size=len(self.history), cursor=self.cursor,
            ))

    def execute(self, command: Command) -> Any:
        result = command.execute()
        del self.history[self.cursor:]
        self.history.append(command)
        self.cursor += 1
        if len(self.history) > self.max_history:
            overflow = len(self.history) - self.max_history
            del self.history[:overflow]
            self.cursor -= overflow
        logger.info(f"Executed '{command.get_name()}' ({self.cursor}/{len(self.history)})")
        self._notify()
        return result

    def undo(self) -> bool:
        if self.cursor == 0:
            return False
        command = self.history[self.cursor - 1]
        command.undo()
        self.cursor -= 1
        logger.info(f"Undid '{command.get_name()}'")
        self._notify()
        return True

    def redo(self) -> bool:
        if self.cursor >= len(self.history):
            return False
        command = self.history[self.cursor]
        command.redo()
        self.cursor += 1
        logger.info(f"Redid '{command.get_name()}'")
        self._notify()
        return True

    def can_undo(self) -> bool:
        return self.cursor > 0

    def can_redo(self) -> bool:
        return self.cursor < len(self.history)

    def clear(self) -> None:
        self.history.clear()
        self.cursor = 0
        self._notify()
