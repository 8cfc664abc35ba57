"""Active-tool management, input dispatch and keyboard shortcuts."""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Callable

from floorplan.models import CanvasEvent, EditorConfig, KeyEvent
from floorplan.models.events import CanvasInput, KeyboardKeydown, ToolChanged
from floorplan.core.registry import ToolRegistry
from floorplan.tools.base import Tool, ToolManifest

if TYPE_CHECKING:
    from floorplan.services.session import EditorSession

logger = logging.getLogger(__name__)

DELETE_KEYS = ("Delete", "Backspace")


class ToolService:
    """Owns the active tool and routes canvas and keyboard input to it."""

    def __init__(self, session: EditorSession, registry: ToolRegistry, config: EditorConfig) -> None:
        self.session = session
        self.registry = registry
        self.config = config
        self._tools: dict[str, Tool] = {}
        self.active_tool: Tool | None = None
        self.previous_tool_id: str | None = None
        self._subscriptions: list[Callable[[], None]] = [
            session.bus.on("canvas:input", lambda e: self.dispatch(e.event)),
            session.bus.on("keyboard:keydown", lambda e: self.handle_key(KeyEvent(key=e.key, modifiers=e.modifiers))),
        ]

    @property
    def active_tool_id(self) -> str | None:
        return self.active_tool.get_id() if self.active_tool is not None else None

    def available(self) -> list[ToolManifest]:
        return self.registry.get_available(self.config)

    def get_tool(self, tool_id: str) -> Tool | None:
        if tool_id not in {m.id for m in self.available()}:
            return None
        if tool_id not in self._tools:
            self._tools[tool_id] = self.registry.create(tool_id, self.session)
        return self._tools[tool_id]

    def activate(self, tool_id: str) -> bool:
        tool = self.get_tool(tool_id)
        if tool is None:
            logger.warning(f"Tool '{tool_id}' is not available")
            return False
        if tool is self.active_tool:
            return True
        previous = self.active_tool
        if previous is not None:
            previous.deactivate()
        self.previous_tool_id = previous.get_id() if previous is not None else None
        self.active_tool = tool
        logger.info(f"Activated tool '{tool_id}'")
        self.session.bus.emit(ToolChanged(tool_id=tool_id, previous_tool_id=self.previous_tool_id))
        tool.activate()
        return True

    def restore_previous(self) -> bool:
        if self.previous_tool_id is None:
            return False
        return self.activate(self.previous_tool_id)

    def deactivate(self) -> None:
        if self.active_tool is not None:
            self.active_tool.deactivate()
            self.previous_tool_id = self.active_tool.get_id()
            self.active_tool = None
            self.session.bus.emit(ToolChanged(tool_id=None, previous_tool_id=self.previous_tool_id))

    def dispatch(self, event: CanvasEvent) -> None:
        if self.active_tool is not None:
            self.active_tool.on_canvas_event(event)

    def emit_canvas(self, event: CanvasEvent) -> None:
        """Publish pointer input on the bus; the subscription routes it to the active tool."""
        self.session.bus.emit(CanvasInput(event=event))

    def emit_key(self, event: KeyEvent) -> None:
        self.session.bus.emit(KeyboardKeydown(key=event.key, modifiers=event.modifiers))

    def handle_key(self, event: KeyEvent) -> bool:
        """Undo/redo chords, then the active tool, then delete and tool letters."""
        key = event.key.lower()
        mods = event.modifiers
        if mods.ctrl and key == "z" and not mods.shift:
            return self.session.undo()
        if mods.ctrl and (key == "y" or (key == "z" and mods.shift)):
            return self.session.redo()

        if self.active_tool is not None and self.active_tool.on_key_down(event):
            return True

        if event.key in DELETE_KEYS:
            return self._delete_selection()

        if mods.ctrl or mods.alt:
            return False
        for manifest in self.available():
            if manifest.shortcut and manifest.shortcut == key:
                return self.activate(manifest.id)
        return False

    def _delete_selection(self) -> bool:
        """Run the remove tool once, then go back to the tool that was active."""
        if self.session.selection.is_empty:
            return False
        if self.active_tool_id == "remove":
            return self.active_tool.remove_selection()
        if not self.activate("remove"):
            return False
        self.restore_previous()
        return True

    def dispose(self) -> None:
        self.deactivate()
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions = []
        self._tools.clear()
