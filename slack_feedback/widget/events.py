"""Click delivery between the embedding environment and the widget."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

ClickHandler = Callable[["ClickEvent"], None]


@dataclass(slots=True)
class ClickEvent:
    """A click somewhere in the embedding environment."""

    target: Any
    default_prevented: bool = False

    def prevent_default(self) -> None:
        """Mark the event as handled so later listeners can ignore it."""
        self.default_prevented = True


class RootNode(Protocol):
    def contains(self, target: Any) -> bool: ...  # noqa: ANN401


class ClickSource(Protocol):
    def add_listener(self, handler: ClickHandler, *, capture: bool = False) -> None: ...

    def remove_listener(self, handler: ClickHandler, *, capture: bool = False) -> None: ...


class ClickDispatcher:
    """Document-like click source.

    Capture listeners run before bubble listeners. Registering the same handler
    twice for the same phase is a no-op, and removal only matches the exact
    handler object that was registered.
    """

    def __init__(self) -> None:
        self._capture: list[ClickHandler] = []
        self._bubble: list[ClickHandler] = []
        self.log = logging.getLogger(__name__)

    def _listeners(self, capture: bool) -> list[ClickHandler]:
        return self._capture if capture else self._bubble

    def add_listener(self, handler: ClickHandler, *, capture: bool = False) -> None:
        listeners = self._listeners(capture)
        if handler not in listeners:
            listeners.append(handler)

    def remove_listener(self, handler: ClickHandler, *, capture: bool = False) -> None:
        listeners = self._listeners(capture)
        if handler in listeners:
            listeners.remove(handler)

    def listener_count(self) -> int:
        return len(self._capture) + len(self._bubble)

    def dispatch(self, event: ClickEvent) -> ClickEvent:
        # Copy: handlers may unregister themselves while running
        for handler in [*self._capture, *self._bubble]:
            try:
                handler(event)
            except Exception:
                self.log.exception("Click handler %r failed for target %r", handler, event.target)
        return event


class PrefixRoot:
    """Root node owning every target whose identifier starts with ``prefix``."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def contains(self, target: Any) -> bool:  # noqa: ANN401
        return isinstance(target, str) and target.startswith(self.prefix)
