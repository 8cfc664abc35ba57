"""Door placement tool."""

from __future__ import annotations

from floorplan.models import OpeningType
from floorplan.tools.base import ToolManifest
from floorplan.tools.opening_tool import OpeningTool


class DoorTool(OpeningTool):
    manifest = ToolManifest(
        id="door", name="Door", icon="door", tooltip="Place doors (D)",
        section="openings", order=10, shortcut="d",
    )
    kind = OpeningType.DOOR
