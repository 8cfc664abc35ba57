"""Editor session — wires one independent editor instance together."""

from __future__ import annotations
import logging
from typing import Any

from floorplan.models import EditorConfig, EditorParams
from floorplan.models.events import SelectionChanged
from floorplan.core.events import EventBus
from floorplan.core.graph import WallGraph
from floorplan.core.journal import JournalRecorder
from floorplan.core.reconciliation import OpeningReconciler
from floorplan.core.registry import ToolRegistry, create_default_registry
from floorplan.core.stores import DoorStore, RoomStore, SelectionStore, WindowStore
from floorplan.core.validation import ValidationService
from floorplan.commands.base import Command
from floorplan.commands.manager import CommandManager
from floorplan.services.command_service import CommandService
from floorplan.services.tool_service import ToolService

logger = logging.getLogger(__name__)


class EditorSession:
    """
    Owns the bus, graph, stores, history and tools of one editor.

    Nothing is global: tests and the HTTP shell build as many sessions as
    they need.
    """

    def __init__(
        self,
        params: EditorParams | None = None,
        config: EditorConfig | None = None,
        registry: ToolRegistry | None = None,
    ) -> None:
        self.params = params or EditorParams()
        self.config = config or EditorConfig()
        self.bus = EventBus()
        self.recorder = JournalRecorder()

        self.graph = WallGraph(self.params, self.bus, self.recorder)
        self.doors = DoorStore(self.bus, self.recorder)
        self.windows = WindowStore(self.bus, self.recorder)
        self.rooms = RoomStore(self.bus, self.recorder, self.params)
        self.selection = SelectionStore(self.bus)
        self.graph.count_provider = lambda: {
            "doors": len(self.doors), "windows": len(self.windows), "rooms": len(self.rooms),
        }

        self.validation = ValidationService(self.graph, self.params, self.doors, self.windows)
        self.reconciler = OpeningReconciler(self.graph, [self.doors, self.windows])
        self.commands = CommandService(
            self.graph, self.doors, self.windows, self.rooms,
            self.validation, self.reconciler, self.bus, self.recorder, self.params,
        )
        self.history = CommandManager(self.bus, self.params.max_history)
        self._unsubscribe_flags = self.bus.on("selection:changed", self._sync_selection_flags)

        self.tools = ToolService(self, registry or create_default_registry(), self.config)
        if self.config.initial_tool:
            self.tools.activate(self.config.initial_tool)

    # -- history ------------------------------------------------------------

    def execute(self, command: Command) -> Any:
        return self.history.execute(command)

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    # -- state --------------------------------------------------------------

    def counts(self) -> dict[str, int]:
        return self.graph.counts()

    def _sync_selection_flags(self, event: SelectionChanged) -> None:
        """Mirror the selection onto the entities' render flags."""
        groups = (
            (self.graph.get_all_nodes(), event.node_ids),
            (self.graph.get_all_walls(), event.wall_ids),
            (self.doors.all(), event.door_ids),
            (self.windows.all(), event.window_ids),
        )
        for entities, ids in groups:
            chosen = set(ids)
            for entity in entities:
                entity.set_selected(entity.id in chosen)

    def reset(self) -> None:
        """Empty the plan and the history; tools go back to idle."""
        if self.tools.active_tool is not None:
            self.tools.active_tool.reset()
        self.selection.clear_selection()
        self.doors.clear()
        self.windows.clear()
        self.rooms.clear()
        self.graph.clear()
        self.history.clear()
        logger.info("Session reset")

    def dispose(self) -> None:
        self.tools.dispose()
        self.selection.dispose()
        self._unsubscribe_flags()
        self.bus.clear()
