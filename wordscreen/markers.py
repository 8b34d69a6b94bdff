"""
Markers — Highlights and Hover Explanations

Turns the controller's current match list into what the text
surface shows: one decoration per match, and a hover card for the
match under the pointer.

Overlapping matches at a hover offset resolve deterministically:
the longest match wins, then the lowest start offset, then the word
itself. "暴力内容" beats "暴力" when both cover the pointer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from wordscreen.dictionary import Match
from wordscreen.surface import Decoration, Position, TextSurface

logger = logging.getLogger(__name__)

SEVERITY_LABELS: dict[str, str] = {
    "low": "低 (Low)",
    "medium": "中 (Medium)",
    "high": "高 (High)",
}

SEVERITY_ICONS: dict[str, str] = {
    "low": "⚠️",
    "medium": "⚠️",
    "high": "🚫",
}

HOVER_TITLE = "敏感词检测"
ADVISORY_MESSAGE = "💡 建议: 请检查此内容是否符合发布平台的要求"


def decoration_class(severity: str) -> str:
    return f"sensitive-word-decoration-{severity}"


def severity_label(severity: str) -> str:
    return SEVERITY_LABELS.get(severity, severity)


# ============================================================
# RENDERER
# ============================================================

class MarkerRenderer:
    """Converts matches into surface decorations."""

    def build(self, matches: Sequence[Match], surface: TextSurface) -> Optional[list[Decoration]]:
        """
        Decorations for matches, or None if the surface cannot convert
        offsets to positions.
        """
        decorations: list[Decoration] = []
        try:
            for match in matches:
                decorations.append(Decoration(
                    start=surface.position_at(match.start_index),
                    end=surface.position_at(match.end_index),
                    severity=match.severity,
                    class_name=decoration_class(match.severity),
                ))
        except NotImplementedError as e:
            logger.warning("Skipping decorations: %s", e)
            return None
        return decorations

    def render(self, matches: Sequence[Match], surface: TextSurface) -> bool:
        """Replace the surface's decorations. Returns False if skipped."""
        decorations = self.build(matches, surface)
        if decorations is None:
            return False
        surface.set_decorations(decorations)
        return True

    def clear(self, surface: TextSurface) -> None:
        surface.set_decorations([])


# ============================================================
# HOVER
# ============================================================

@dataclass(frozen=True)
class HoverContent:
    """What a hover over a screened word shows."""
    word: str
    severity: str
    severity_label: str
    icon: str
    message: str
    start_index: int
    end_index: int
    start: Optional[Position] = None
    end: Optional[Position] = None

    @property
    def contents(self) -> list[str]:
        """Markdown lines, in display order."""
        return [
            f"**{self.icon} {HOVER_TITLE}**",
            f"词语: `{self.word}`",
            f"严重程度: {self.severity_label}",
            "---",
            self.message,
        ]


def _hover_rank(match: Match) -> tuple[int, int, str]:
    return (-match.length, match.start_index, match.word)


class HoverResolver:
    """
    Answers hover queries from whatever match list get_matches returns.

    get_matches is read on every query, so the resolver always sees
    the controller's latest accepted result.
    """

    def __init__(
        self,
        get_matches: Callable[[], Sequence[Match]],
        surface: Optional[TextSurface] = None,
    ):
        self._get_matches = get_matches
        self._surface = surface

    def match_at(self, offset: int) -> Optional[Match]:
        candidates = [m for m in self._get_matches() if m.contains(offset)]
        if not candidates:
            return None
        return min(candidates, key=_hover_rank)

    def resolve(self, offset: int) -> Optional[HoverContent]:
        """Hover content for the match covering offset, or None."""
        match = self.match_at(offset)
        if match is None:
            return None

        start = end = None
        if self._surface is not None:
            try:
                start = self._surface.position_at(match.start_index)
                end = self._surface.position_at(match.end_index)
            except NotImplementedError as e:
                logger.warning("Hover range unavailable: %s", e)

        return HoverContent(
            word=match.word,
            severity=match.severity,
            severity_label=severity_label(match.severity),
            icon=SEVERITY_ICONS.get(match.severity, "⚠️"),
            message=ADVISORY_MESSAGE,
            start_index=match.start_index,
            end_index=match.end_index,
            start=start,
            end=end,
        )

    def provide_hover(self, position: Position) -> Optional[HoverContent]:
        """Surface-facing entry point: resolve a native position."""
        if self._surface is None:
            return None
        try:
            offset = self._surface.offset_at(position)
        except NotImplementedError as e:
            logger.warning("Hover skipped: %s", e)
            return None
        return self.resolve(offset)
