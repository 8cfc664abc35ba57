"""Commands that edit nodes and walls."""

from __future__ import annotations

from floorplan.models import Node, Point2D, Wall, new_id
from floorplan.core.graph import MergeResult
from floorplan.commands.base import Command
from floorplan.services.command_service import CommandService


class CreateNodeCommand(Command):
    """Create a node. The id is fixed at construction so later commands can refer to it."""

    def __init__(self, service: CommandService, position: Point2D, node_id: str | None = None) -> None:
        super().__init__(service)
        self.position = position
        self.node_id = node_id or new_id()

    def get_name(self) -> str:
        return "Create node"

    def apply(self) -> Node:
        return self.service.create_node(self.position, self.node_id)


class MoveNodeCommand(Command):
    def __init__(self, service: CommandService, node_id: str, position: Point2D) -> None:
        super().__init__(service)
        self.node_id = node_id
        self.position = position
        self.previous_position: Point2D | None = None

    def get_name(self) -> str:
        return "Move node"

    def apply(self) -> Node:
        node = self.service.graph.require_node(self.node_id)
        self.previous_position = node.position.model_copy()
        return self.service.move_node(self.node_id, self.position)


class CreateWallCommand(Command):
    def __init__(
        self,
        service: CommandService,
        start_node_id: str,
        end_node_id: str,
        thickness: float | None = None,
        height: float | None = None,
        wall_id: str | None = None,
    ) -> None:
        super().__init__(service)
        self.start_node_id = start_node_id
        self.end_node_id = end_node_id
        self.thickness = thickness
        self.height = height
        self.wall_id = wall_id or new_id()

    def get_name(self) -> str:
        return "Create wall"

    def apply(self) -> Wall:
        return self.service.create_wall(
            self.start_node_id, self.end_node_id, self.thickness, self.height, self.wall_id,
        )


class UpdateWallCommand(Command):
    def __init__(
        self, service: CommandService, wall_id: str,
        thickness: float | None = None, height: float | None = None,
    ) -> None:
        super().__init__(service)
        self.wall_id = wall_id
        self.thickness = thickness
        self.height = height

    def get_name(self) -> str:
        return "Update wall"

    def apply(self) -> Wall:
        return self.service.update_wall(self.wall_id, self.thickness, self.height)


class DeleteWallCommand(Command):
    def __init__(self, service: CommandService, wall_id: str) -> None:
        super().__init__(service)
        self.wall_id = wall_id

    def get_name(self) -> str:
        return "Delete wall"

    def apply(self) -> Wall | None:
        return self.service.delete_wall(self.wall_id)


class DeleteNodeCommand(Command):
    """Delete a node and cascade to its walls."""

    def __init__(self, service: CommandService, node_id: str) -> None:
        super().__init__(service)
        self.node_id = node_id

    def get_name(self) -> str:
        return "Delete node"

    def apply(self) -> Node | None:
        return self.service.delete_node(self.node_id)


class SplitWallCommand(Command):
    def __init__(
        self, service: CommandService, wall_id: str, point: Point2D, node_id: str | None = None,
    ) -> None:
        super().__init__(service)
        self.wall_id = wall_id
        self.point = point
        self.node_id = node_id or new_id()

    def get_name(self) -> str:
        return "Split wall"

    def apply(self) -> tuple[Node, Wall, Wall]:
        return self.service.split_wall(self.wall_id, self.point, self.node_id)


class MergeNodesCommand(Command):
    def __init__(self, service: CommandService, source_id: str, target_id: str) -> None:
        super().__init__(service)
        self.source_id = source_id
        self.target_id = target_id

    def get_name(self) -> str:
        return "Merge nodes"

    def apply(self) -> MergeResult:
        return self.service.merge_nodes(self.source_id, self.target_id)


class DissolveNodeCommand(Command):
    """Remove a node, fusing a pair of walls through it into one."""

    def __init__(self, service: CommandService, node_id: str) -> None:
        super().__init__(service)
        self.node_id = node_id

    def get_name(self) -> str:
        return "Remove node"

    def apply(self) -> Wall | None:
        return self.service.dissolve_node(self.node_id)


class PruneNodeCommand(Command):
    """Remove a node if it has been left without walls."""

    def __init__(self, service: CommandService, node_id: str) -> None:
        super().__init__(service)
        self.node_id = node_id

    def get_name(self) -> str:
        return "Prune node"

    def apply(self) -> Node | None:
        return self.service.prune_node(self.node_id)
