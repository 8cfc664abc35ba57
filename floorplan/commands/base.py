"""Abstract base class for all editor commands.

Every mutation of the plan is a command. Commands are:
- Self-contained: each performs one logical edit through the CommandService
- Invertible: `undo` restores the state from before `execute`, `redo` the one after
- Lazy: whatever prior state they need is captured when `execute` runs
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Any

from floorplan.core.journal import ChangeJournal
from floorplan.services.command_service import CommandService

logger = logging.getLogger(__name__)


class Command(ABC):
    """
    Base class for journalled commands.

    Subclasses implement `apply()`. `execute()` runs it inside a change
    journal; undo and redo write the journal's before/after states back, so
    every id created by `apply()` is the same after a redo.
    """

    def __init__(self, service: CommandService) -> None:
        self.service = service
        self.journal: ChangeJournal | None = None
        self.result: Any = None

    @abstractmethod
    def get_name(self) -> str:
        """Human-readable label (e.g., 'Create wall')."""
        ...

    @abstractmethod
    def apply(self) -> Any:
        """Perform the edit against the service and return its primary result."""
        ...

    def execute(self) -> Any:
        with self.service.journal() as journal:
            self.result = self.apply()
        self.journal = journal
        logger.debug(f"Executed '{self.get_name()}'")
        return self.result

    def undo(self) -> None:
        if self.journal is None:
            raise RuntimeError(f"'{self.get_name()}' has not been executed")
        self.journal.revert()
        self.service.refresh(self.journal)

    def redo(self) -> None:
        if self.journal is None:
            raise RuntimeError(f"'{self.get_name()}' has not been executed")
        self.journal.replay()
        self.service.refresh(self.journal)


class CompositeCommand(Command):
    """
    Runs child commands as one undoable unit.

    The composite's journal is open while the children run, so it records
    all of their changes; a failing child rolls the whole batch back.
    """

    def __init__(self, service: CommandService, commands: list[Command], name: str = "Batch") -> None:
        super().__init__(service)
        self.commands = list(commands)
        self.name = name

    def get_name(self) -> str:
        return self.name

    def apply(self) -> list[Any]:
        results: list[Any] = []
        for command in self.commands:
            try:
                results.append(command.execute())
            except Exception:
                logger.warning(f"'{self.name}' failed at '{command.get_name()}', rolling back")
                raise
        return results
