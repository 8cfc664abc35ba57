"""Window placement tool."""

from __future__ import annotations

from floorplan.models import OpeningType
from floorplan.tools.base import ToolManifest
from floorplan.tools.opening_tool import OpeningTool


class WindowTool(OpeningTool):
    manifest = ToolManifest(
        id="window", name="Window", icon="window", tooltip="Place windows (N)",
        section="openings", order=20, shortcut="n",
    )
    kind = OpeningType.WINDOW
