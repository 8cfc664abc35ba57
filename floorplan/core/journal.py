"""Change journal — before/after snapshots of every entity a mutation touches.

The graph and the stores report each entity *before* changing it. A journal
keeps the first such report per entity (its state when the journal opened)
and, when closed, reads back the current state. Reverting or replaying
writes one side back through the owning repositories without going through
the validating mutation paths, so ids, ordinals and ordering survive
undo/redo exactly.
"""

from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Iterator, Protocol
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Removal runs through this order, insertion through its reverse.
KIND_ORDER = ("room", "door", "window", "wall", "node")


class JournalRepository(Protocol):
    """Raw storage access used when a journal writes state back."""

    def journal_get(self, kind: str, entity_id: str) -> BaseModel | None:
        ...

    def journal_put(self, kind: str, entity: BaseModel) -> None:
        ...

    def journal_drop(self, kind: str, entity_id: str) -> None:
        ...


def _copy(entity: BaseModel | None) -> BaseModel | None:
    return entity.model_copy(deep=True) if entity is not None else None


class ChangeJournal:
    """Snapshot pair for one unit of work."""

    def __init__(self, repositories: dict[str, JournalRepository]) -> None:
        self._repositories = repositories
        self._before: dict[tuple[str, str], BaseModel | None] = {}
        self._after: dict[tuple[str, str], BaseModel | None] = {}
        self.closed = False

    def record(self, kind: str, entity_id: str, current: BaseModel | None) -> None:
        key = (kind, entity_id)
        if key not in self._before:
            self._before[key] = _copy(current)

    def close(self) -> None:
        for kind, entity_id in self._before:
            repo = self._repositories[kind]
            self._after[(kind, entity_id)] = _copy(repo.journal_get(kind, entity_id))
        self.closed = True

    @property
    def is_empty(self) -> bool:
        return not self._before

    def touched(self, kind: str) -> list[str]:
        return [entity_id for k, entity_id in self._before if k == kind]

    def created(self, kind: str) -> list[str]:
        """Ids of `kind` that did not exist before and exist after."""
        return [
            entity_id for (k, entity_id), state in self._before.items()
            if k == kind and state is None and self._after.get((k, entity_id)) is not None
        ]

    def removed(self, kind: str) -> list[str]:
        return [
            entity_id for (k, entity_id), state in self._before.items()
            if k == kind and state is not None and self._after.get((k, entity_id)) is None
        ]

    def revert(self) -> None:
        self._apply(self._before)

    def replay(self) -> None:
        if not self.closed:
            raise RuntimeError("Cannot replay an open journal")
        self._apply(self._after)

    def _apply(self, side: dict[tuple[str, str], BaseModel | None]) -> None:
        for kind in KIND_ORDER:
            repo = self._repositories[kind]
            for (k, entity_id), state in side.items():
                if k == kind and state is None:
                    repo.journal_drop(kind, entity_id)
        for kind in reversed(KIND_ORDER):
            repo = self._repositories[kind]
            for (k, entity_id), state in side.items():
                if k == kind and state is not None:
                    repo.journal_put(kind, state.model_copy(deep=True))


class JournalRecorder:
    """
    Fan-out point between the repositories and the open journals.

    Journals nest: a touch is recorded by every journal currently open, so a
    composite's journal sees the same changes as its children's.
    """

    def __init__(self) -> None:
        self._repositories: dict[str, JournalRepository] = {}
        self._open: list[ChangeJournal] = []

    def register(self, kind: str, repository: JournalRepository) -> None:
        self._repositories[kind] = repository

    @property
    def active(self) -> bool:
        return bool(self._open)

    def touch(self, kind: str, entity_id: str, current: BaseModel | None) -> None:
        for journal in self._open:
            journal.record(kind, entity_id, current)

    @contextmanager
    def journal(self) -> Iterator[ChangeJournal]:
        """Open a journal; on error the partial changes are reverted and the error re-raised."""
        journal = ChangeJournal(self._repositories)
        self._open.append(journal)
        try:
            yield journal
        except Exception:
            self._open.remove(journal)
            journal.close()
            journal.revert()
            logger.warning("Rolled back partial change after failure")
            raise
        self._open.remove(journal)
        journal.close()
