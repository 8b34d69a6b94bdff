"""
Dictionary Store — Active Word Set and Severity

Owns the words being screened for, the severity of each, and the
automaton built from them. Every edit that changes the word set
builds a fresh PatternAutomaton and swaps it in with one reference
assignment, so a detect sees either the old automaton or the new
one, never a half-built one.

Severity is derived from word length unless explicitly overridden:
  - 1-2 characters: low
  - 3-4 characters: medium
  - 5+ characters:  high
Overrides survive edits for as long as the word stays in the set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Literal, Optional

from wordscreen.automaton import PatternAutomaton

logger = logging.getLogger(__name__)

Severity = Literal["low", "medium", "high"]
SEVERITIES: tuple[str, ...] = ("low", "medium", "high")
DEFAULT_SEVERITY: Severity = "medium"


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class Match:
    """One screened word found in text. end_index is exclusive."""
    word: str
    start_index: int
    end_index: int
    severity: str

    @property
    def length(self) -> int:
        return self.end_index - self.start_index

    def contains(self, offset: int) -> bool:
        return self.start_index <= offset < self.end_index


def severity_for_length(word: str) -> Severity:
    """Default severity for a word with no explicit override."""
    if len(word) <= 2:
        return "low"
    if len(word) <= 4:
        return "medium"
    return "high"


def normalize_words(words: Iterable[str]) -> list[str]:
    """Trim, drop blanks and duplicates. First occurrence order is kept."""
    seen: set[str] = set()
    result: list[str] = []
    for word in words:
        if not isinstance(word, str):
            continue
        trimmed = word.strip()
        if trimmed and trimmed not in seen:
            seen.add(trimmed)
            result.append(trimmed)
    return result


# ============================================================
# STORE
# ============================================================

class DictionaryStore:
    """
    The active dictionary plus its automaton.

    Not thread-safe. Inside the executor it is touched only by the
    worker thread.
    """

    def __init__(self, words: Iterable[str] = ()):
        self._words: frozenset[str] = frozenset()
        self._overrides: dict[str, str] = {}
        self._automaton = PatternAutomaton()
        self.load(words)

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word: object) -> bool:
        return word in self._words

    @property
    def automaton(self) -> PatternAutomaton:
        return self._automaton

    def words(self) -> list[str]:
        """Current dictionary, sorted."""
        return sorted(self._words)

    def load(self, words: Iterable[str]) -> None:
        """Replace the whole dictionary."""
        new_words = frozenset(normalize_words(words))
        self._publish(new_words)
        logger.debug("Dictionary loaded", extra={"word_count": len(new_words)})

    def add_words(self, words: Iterable[str]) -> bool:
        """Add words. Returns False (and skips the rebuild) if nothing was new."""
        additions = [w for w in normalize_words(words) if w not in self._words]
        if not additions:
            return False
        self._publish(self._words.union(additions))
        return True

    def remove_words(self, words: Iterable[str]) -> bool:
        """Remove words. Returns False (and skips the rebuild) if none were present."""
        removals = [w for w in normalize_words(words) if w in self._words]
        if not removals:
            return False
        self._publish(self._words.difference(removals))
        return True

    def set_severity(self, word: str, level: str) -> bool:
        """
        Override the severity of a word in the dictionary.

        Returns False if the word is not in the dictionary.
        Raises ValueError for an unknown level.
        """
        if level not in SEVERITIES:
            raise ValueError(f"Invalid severity: {level}")
        word = word.strip()
        if word not in self._words:
            return False
        self._overrides[word] = level
        return True

    def get_severity(self, word: str) -> Optional[str]:
        """Effective severity, or None if the word is not in the dictionary."""
        word = word.strip()
        if word not in self._words:
            return None
        return self._overrides.get(word) or severity_for_length(word)

    def detect(self, text: str) -> list[Match]:
        """Screen text against the current dictionary."""
        automaton = self._automaton
        if not text or not len(automaton):
            return []
        return [
            Match(
                word=hit.word,
                start_index=hit.index,
                end_index=hit.index + len(hit.word),
                severity=self.get_severity(hit.word) or DEFAULT_SEVERITY,
            )
            for hit in automaton.search(text)
        ]

    def _publish(self, new_words: frozenset[str]) -> None:
        """Build the automaton for new_words, then swap everything in."""
        automaton = PatternAutomaton(new_words)
        overrides = {w: s for w, s in self._overrides.items() if w in new_words}
        self._automaton = automaton
        self._words = new_words
        self._overrides = overrides
