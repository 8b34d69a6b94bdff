"""
Text Surface — Abstract Interface

Everything the screening controller needs from the editor that hosts
it. Implement TextSurface to plug screening into a real editor;
BufferSurface is an in-memory implementation for tests and headless
hosts.

Positions are 1-based line/column pairs, the addressing most editor
widgets use natively. Offsets are 0-based character indices into
get_text().
"""

from __future__ import annotations

import bisect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

ChangeListener = Callable[[], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True, order=True)
class Position:
    line: int
    column: int


@dataclass(frozen=True)
class Decoration:
    """One highlight span on the surface."""
    start: Position
    end: Position
    severity: str
    class_name: str


class TextSurface(ABC):
    """Abstract base for editor integrations."""

    @abstractmethod
    def get_text(self) -> str:
        """Current full text."""
        ...

    @abstractmethod
    def on_change(self, listener: ChangeListener) -> Unsubscribe:
        """Call listener after every content change. Returns an unsubscribe callable."""
        ...

    @abstractmethod
    def set_decorations(self, decorations: list[Decoration]) -> None:
        """Replace every screening decoration with this set."""
        ...

    def position_at(self, offset: int) -> Position:
        """Convert a character offset to a native position."""
        raise NotImplementedError(f"{type(self).__name__} cannot convert offsets")

    def offset_at(self, position: Position) -> int:
        """Convert a native position to a character offset."""
        raise NotImplementedError(f"{type(self).__name__} cannot convert positions")

    def register_hover(self, provider: Callable[[Position], Optional[object]]) -> Unsubscribe:
        """Register a hover provider. Returns an unsubscribe callable."""
        raise NotImplementedError(f"{type(self).__name__} does not support hover")


class BufferSurface(TextSurface):
    """
    In-memory text surface.

    Keeps a table of line start offsets so offset/position conversion
    is a bisect, not a rescan.
    """

    def __init__(self, text: str = ""):
        self._text = ""
        self._line_starts: list[int] = [0]
        self._listeners: list[ChangeListener] = []
        self._hover_providers: list[Callable[[Position], Optional[object]]] = []
        self.decorations: list[Decoration] = []
        self.decoration_updates = 0
        self._set(text)

    def get_text(self) -> str:
        return self._text

    def set_text(self, text: str) -> None:
        self._set(text)
        self._notify()

    def insert(self, offset: int, fragment: str) -> None:
        offset = max(0, min(offset, len(self._text)))
        self.set_text(self._text[:offset] + fragment + self._text[offset:])

    def delete(self, start: int, end: int) -> None:
        self.set_text(self._text[:start] + self._text[end:])

    def on_change(self, listener: ChangeListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_decorations(self, decorations: list[Decoration]) -> None:
        self.decorations = list(decorations)
        self.decoration_updates += 1

    def position_at(self, offset: int) -> Position:
        offset = max(0, min(offset, len(self._text)))
        line = bisect.bisect_right(self._line_starts, offset) - 1
        return Position(line + 1, offset - self._line_starts[line] + 1)

    def offset_at(self, position: Position) -> int:
        line = max(1, min(position.line, len(self._line_starts))) - 1
        start = self._line_starts[line]
        if line + 1 < len(self._line_starts):
            end = self._line_starts[line + 1] - 1
        else:
            end = len(self._text)
        return max(start, min(start + position.column - 1, end))

    def register_hover(self, provider: Callable[[Position], Optional[object]]) -> Unsubscribe:
        self._hover_providers.append(provider)

        def unsubscribe() -> None:
            if provider in self._hover_providers:
                self._hover_providers.remove(provider)

        return unsubscribe

    def hover(self, position: Position) -> Optional[object]:
        """Ask registered providers, newest first, as an editor would on mouse-over."""
        for provider in reversed(self._hover_providers):
            result = provider(position)
            if result is not None:
                return result
        return None

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _set(self, text: str) -> None:
        self._text = text
        starts = [0]
        for index, char in enumerate(text):
            if char == "\n":
                starts.append(index + 1)
        self._line_starts = starts

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
