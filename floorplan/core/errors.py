"""Editor exception hierarchy."""

from __future__ import annotations


class EditorError(Exception):
    """Base class for failures raised by the editing core."""


class InvalidTopology(EditorError):
    """A mutation would break the node/wall graph (missing node, self-loop, short or duplicate wall)."""


class EntityNotFound(EditorError):
    """An id passed to a mutating call does not resolve."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} '{entity_id}' not found")
        self.kind = kind
        self.entity_id = entity_id


class InvalidPlacement(EditorError):
    """An opening would sit outside its wall margins or overlap a neighbour."""
