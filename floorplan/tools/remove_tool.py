"""Remove tool — deletes the current selection."""

from __future__ import annotations
import logging

from floorplan.models import CanvasEvent
from floorplan.commands.base import Command, CompositeCommand
from floorplan.commands.graph_commands import DeleteWallCommand, DissolveNodeCommand, PruneNodeCommand
from floorplan.commands.opening_commands import RemoveOpeningCommand
from floorplan.tools.base import Tool, ToolManifest
from floorplan.tools.select_tool import hit_test

logger = logging.getLogger(__name__)


class RemoveTool(Tool):
    """
    Removes everything selected, on activation and on each click.

    Order: openings, then walls (their endpoint nodes are pruned once no
    wall is left on them), then nodes. A selected node joining exactly two
    walls is dissolved so the walls fuse into one; with one wall the wall
    goes too; otherwise its walls cascade.
    """

    manifest = ToolManifest(
        id="remove", name="Remove", icon="trash", tooltip="Remove selection (Delete)",
        section="edit", order=90, shortcut=None,
    )

    def on_activate(self) -> None:
        self.remove_selection()

    def on_canvas_event(self, event: CanvasEvent) -> None:
        if event.type != "mousedown" or event.button != 0:
            return
        hit = hit_test(self.session, event.position)
        if hit is None:
            return
        kind, entity_id = hit
        self.session.selection.select(**{f"{kind}_ids": [entity_id]})
        self.remove_selection()

    def remove_selection(self) -> bool:
        session = self.session
        selection = session.selection
        if selection.is_empty:
            return False
        service = session.commands
        steps: list[Command] = []

        for opening_id in selection.door_ids + selection.window_ids:
            steps.append(RemoveOpeningCommand(service, opening_id))

        endpoints: list[str] = []
        for wall_id in selection.wall_ids:
            wall = session.graph.get_wall(wall_id)
            if wall is None:
                continue
            for node_id in wall.node_ids:
                if node_id not in endpoints:
                    endpoints.append(node_id)
            steps.append(DeleteWallCommand(service, wall_id))
        for node_id in endpoints:
            if node_id not in selection.node_ids:
                steps.append(PruneNodeCommand(service, node_id))

        for node_id in selection.node_ids:
            steps.append(DissolveNodeCommand(service, node_id))

        result = self.run(CompositeCommand(service, steps, name="Remove selection"))
        selection.clear_selection()
        session.graph.notify_changed()
        if result is not None:
            logger.info(f"Removed selection ({len(steps)} steps)")
        return result is not None
