"""Abstract base class for interactive tools.

Each tool is a small state machine:
- Driven by normalized canvas and keyboard events from the ToolService
- Validates candidate edits before issuing commands
- Publishes live previews as `canvas:preview` events
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any
from pydantic import BaseModel

from floorplan.models import CanvasEvent, KeyEvent, PreviewData
from floorplan.models.events import CanvasPreview
from floorplan.core.errors import EditorError
from floorplan.commands.base import Command

if TYPE_CHECKING:
    from floorplan.services.session import EditorSession

logger = logging.getLogger(__name__)


class ToolManifest(BaseModel):
    """Static description of a tool, registered alongside its factory."""
    id: str
    name: str
    version: str = "1.0.0"
    icon: str = ""
    tooltip: str = ""
    section: str = "draw"      # Toolbar group
    order: int = 100           # Lower = earlier within the section
    shortcut: str | None = None


class Tool(ABC):
    """
    Base class for all tools.

    Subclasses set `manifest` and implement `on_canvas_event()`.
    """

    manifest: ToolManifest

    def __init__(self, session: EditorSession) -> None:
        self.session = session
        self.active = False

    def get_id(self) -> str:
        return self.manifest.id

    def get_name(self) -> str:
        return self.manifest.name

    def activate(self) -> None:
        self.active = True
        self.on_activate()

    def deactivate(self) -> None:
        self.reset()
        self.clear_preview()
        self.active = False

    def on_activate(self) -> None:
        """Hook run after the tool becomes active."""

    def reset(self) -> None:
        """Return to the idle state, dropping any interaction in progress."""

    @abstractmethod
    def on_canvas_event(self, event: CanvasEvent) -> None:
        ...

    def on_key_down(self, event: KeyEvent) -> bool:
        """Handle a key; return True when consumed."""
        if event.key == "Escape":
            self.reset()
            self.clear_preview()
            return True
        return False

    # -- helpers ------------------------------------------------------------

    def preview(self, data: PreviewData | None) -> None:
        self.session.bus.emit(CanvasPreview(tool_id=self.get_id(), preview=data))

    def clear_preview(self) -> None:
        self.preview(None)

    def run(self, command: Command) -> Any | None:
        """Execute through the history; editor errors are logged and swallowed here."""
        try:
            return self.session.history.execute(command)
        except EditorError as exc:
            logger.warning(f"{self.get_name()}: '{command.get_name()}' failed: {exc}")
            self.clear_preview()
            self.reset()
            return None
