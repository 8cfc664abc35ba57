"""Synchronous publish/subscribe bus."""

from __future__ import annotations
import logging
from typing import Any, Callable

from floorplan.models.events import EditorEvent

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]

WILDCARD = "*"


class EventBus:
    """
    Channel-keyed observer lists.

    Handlers run in subscription order on the caller's stack. A failing
    handler is logged and skipped; the others still run.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}

    def on(self, name: str, handler: Handler) -> Callable[[], None]:
        """Subscribe; returns a callable that removes the subscription."""
        self._handlers.setdefault(name, []).append(handler)
        return lambda: self.off(name, handler)

    def once(self, name: str, handler: Handler) -> Callable[[], None]:
        def wrapper(event: Any) -> Any:
            self.off(name, wrapper)
            return handler(event)

        return self.on(name, wrapper)

    def off(self, name: str, handler: Handler | None = None) -> None:
        """Remove one handler, or every handler of the channel."""
        if handler is None:
            self._handlers.pop(name, None)
            return
        handlers = self._handlers.get(name)
        if not handlers:
            return
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            del self._handlers[name]

    def emit(self, event: EditorEvent) -> list[Any]:
        """Deliver to the event's channel, then to wildcard subscribers."""
        results: list[Any] = []
        targets = list(self._handlers.get(event.type, ())) + list(self._handlers.get(WILDCARD, ()))
        for handler in targets:
            try:
                results.append(handler(event))
            except Exception:
                logger.exception(f"Handler for '{event.type}' failed")
        return results

    def has_listeners(self, name: str) -> bool:
        return bool(self._handlers.get(name))

    def clear(self) -> None:
        self._handlers.clear()
