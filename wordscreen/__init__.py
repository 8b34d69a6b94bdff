"""
WordScreen — Sensitive Word Screening for Text Editors

Finds every dictionary word in a document in one linear pass and keeps
an editor's highlights in sync while the user types.

Public API:
  - PatternAutomaton:    Aho-Corasick multi-word search (build + search)
  - DictionaryStore:     Active word set, severity rules, atomic rebuilds
  - ScreeningExecutor:   Background worker reached only by messages
  - ScreeningController: Debounced, stale-safe foreground coordinator
  - MarkerRenderer:      Matches → surface decorations
  - HoverResolver:       Offset → hover explanation
  - TextSurface:         Abstract editor interface (BufferSurface in memory)

Usage:
    from wordscreen import ScreeningController, ScreeningConfig, BufferSurface
    surface = BufferSurface("这是暴力内容")
    controller = ScreeningController(ScreeningConfig(dictionary=("暴力",)))
    controller.attach(surface)   # inside a running event loop
"""

__version__ = "1.0.0"

from wordscreen.automaton import PatternAutomaton, Occurrence
from wordscreen.dictionary import (
    DictionaryStore,
    Match,
    SEVERITIES,
    severity_for_length,
)
from wordscreen.config import ScreeningConfig, Settings, settings
from wordscreen.logging import get_logger, setup_logging
from wordscreen.executor import ScreeningExecutor
from wordscreen.controller import ScreeningController, ScreeningError
from wordscreen.markers import HoverContent, HoverResolver, MarkerRenderer
from wordscreen.surface import BufferSurface, Decoration, Position, TextSurface

__all__ = [
    "PatternAutomaton",
    "Occurrence",
    "DictionaryStore",
    "Match",
    "SEVERITIES",
    "severity_for_length",
    "ScreeningConfig",
    "Settings",
    "settings",
    "get_logger",
    "setup_logging",
    "ScreeningExecutor",
    "ScreeningController",
    "ScreeningError",
    "HoverContent",
    "HoverResolver",
    "MarkerRenderer",
    "BufferSurface",
    "Decoration",
    "Position",
    "TextSurface",
]
