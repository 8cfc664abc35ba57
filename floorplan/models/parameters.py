"""Editor tuning parameters and tool configuration."""

from __future__ import annotations
import math
from pydantic import BaseModel


class EditorParams(BaseModel):
    """Tunable constants for drawing, snapping and validation (1 unit = 1 cm)."""
    min_wall_length: float = 10.0
    snap_threshold: float = 10.0        # Node snapping and split margin
    grid_pitch: float = 10.0            # ALT grid / distance pitch
    wall_thickness: float = 10.0
    wall_height: float = 280.0
    opening_margin: float = 10.0        # Clearance to wall ends and neighbours
    door_width: float = 100.0
    door_height: float = 210.0
    window_width: float = 100.0
    window_height: float = 150.0
    window_sill_height: float = 90.0
    opening_snap_distance: float = 20.0 # Max pointer distance to re-host an opening
    connector_hit_radius: float = 10.0
    opening_hit_padding: float = 20.0
    split_tolerance: float = 10.0       # Point-on-wall tolerance for splitting
    max_history: int = 50
    angle_snap_ctrl: float = math.pi / 2
    angle_snap_shift: float = math.pi / 12
    units_per_metre: float = 100.0


class EditorConfig(BaseModel):
    """Controls which tools are available in a session."""
    enabled_tools: list[str] = []        # Empty = every registered tool
    disabled_tools: list[str] = []       # Explicitly disable specific tools
    initial_tool: str | None = "select"
