"""Tool registry — stores tool manifests and the factories that build them."""

from __future__ import annotations
from typing import TYPE_CHECKING, Callable

from floorplan.models import EditorConfig

if TYPE_CHECKING:
    from floorplan.services.session import EditorSession
    from floorplan.tools.base import Tool, ToolManifest

ToolFactory = Callable[["EditorSession"], "Tool"]


class ToolRegistry:
    """
    Central registry for all editing tools.

    Tools are registered at startup as a manifest plus a factory. A session
    asks the registry which tools its config allows and builds them on
    first use.
    """

    def __init__(self) -> None:
        self._entries: dict[str, tuple[ToolManifest, ToolFactory]] = {}

    def register(self, manifest: ToolManifest, factory: ToolFactory) -> None:
        """Register a tool under its manifest id (replaces an earlier entry)."""
        self._entries[manifest.id] = (manifest, factory)

    def unregister(self, tool_id: str) -> None:
        """Remove a tool from the registry."""
        self._entries.pop(tool_id, None)

    def get_manifest(self, tool_id: str) -> ToolManifest | None:
        entry = self._entries.get(tool_id)
        return entry[0] if entry is not None else None

    def list_manifests(self) -> list[ToolManifest]:
        """Return all registered manifests, ordered by section then order."""
        manifests = [m for m, _ in self._entries.values()]
        manifests.sort(key=lambda m: (m.section, m.order))
        return manifests

    def get_available(self, config: EditorConfig) -> list[ToolManifest]:
        """
        Manifests usable under the given config.

        Respects EditorConfig.enabled_tools and disabled_tools.
        """
        candidates = self.list_manifests()

        # If enabled_tools is specified, only use those
        if config.enabled_tools:
            candidates = [m for m in candidates if m.id in config.enabled_tools]

        # Remove explicitly disabled tools
        if config.disabled_tools:
            candidates = [m for m in candidates if m.id not in config.disabled_tools]

        return candidates

    def create(self, tool_id: str, session: EditorSession) -> Tool:
        entry = self._entries.get(tool_id)
        if entry is None:
            raise KeyError(f"Unknown tool '{tool_id}'")
        return entry[1](session)


def create_default_registry() -> ToolRegistry:
    """Create a registry with all standard editing tools."""
    from floorplan.tools.select_tool import SelectTool
    from floorplan.tools.wall_tool import WallTool
    from floorplan.tools.room_tool import RoomTool
    from floorplan.tools.door_tool import DoorTool
    from floorplan.tools.window_tool import WindowTool
    from floorplan.tools.remove_tool import RemoveTool
    from floorplan.tools.move_tool import MoveTool

    registry = ToolRegistry()
    for tool_cls in (SelectTool, WallTool, RoomTool, DoorTool, WindowTool, MoveTool, RemoveTool):
        registry.register(tool_cls.manifest, tool_cls)
    return registry
