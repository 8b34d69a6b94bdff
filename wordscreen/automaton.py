"""
Pattern Automaton — Single-Pass Multi-Word Search

An Aho-Corasick automaton over characters. Build once from the
active dictionary, then scan any amount of text in one linear pass,
reporting every occurrence of every word, overlaps included.

Build has two phases:
  1. Goto trie: insert each word one character at a time.
  2. Failure links (BFS from root): a state's failure target is the
     longest proper suffix of its path that is also a path in the
     trie. Each state's output absorbs its failure target's output,
     so shorter words ending inside a longer one are still reported.

States live in an arena. Children and failure links are integer
state ids, never object references, so the failure graph carries
no ownership cycles. State 0 is the root.

Cost: O(total word length) to build, O(|text| + matches) to search.
Detection reruns on every debounced keystroke burst, so the scan
must stay linear.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable

ROOT = 0


@dataclass(frozen=True)
class Occurrence:
    """One raw automaton hit: word and the character index where it starts."""
    word: str
    index: int


class PatternAutomaton:
    """
    Usage:
        automaton = PatternAutomaton()
        automaton.build(["ab", "b"])
        automaton.search("xaby")
        # [Occurrence("ab", 1), Occurrence("b", 2)]

    build() replaces every table wholesale. A search already in progress
    keeps the tables it started with.
    """

    def __init__(self, patterns: Iterable[str] = ()):
        self._goto: list[dict[str, int]] = [{}]
        self._fail: list[int] = [ROOT]
        self._output: list[tuple[str, ...]] = [()]
        self._patterns: frozenset[str] = frozenset()
        self.build(patterns)

    @property
    def pattern_count(self) -> int:
        return len(self._patterns)

    @property
    def state_count(self) -> int:
        return len(self._goto)

    @property
    def patterns(self) -> frozenset[str]:
        return self._patterns

    def __len__(self) -> int:
        return len(self._patterns)

    def build(self, patterns: Iterable[str]) -> None:
        """Rebuild the automaton from scratch.

        Empty patterns are skipped and duplicates collapse. The new tables
        are assembled in locals and published at the end.
        """
        goto: list[dict[str, int]] = [{}]
        output: list[list[str]] = [[]]
        unique: set[str] = set()

        # --- Phase 1: goto trie ---
        for pattern in patterns:
            if not pattern or pattern in unique:
                continue
            unique.add(pattern)
            state = ROOT
            for char in pattern:
                nxt = goto[state].get(char)
                if nxt is None:
                    nxt = len(goto)
                    goto[state][char] = nxt
                    goto.append({})
                    output.append([])
                state = nxt
            output[state].append(pattern)

        # --- Phase 2: failure links + output inheritance ---
        fail = [ROOT] * len(goto)
        queue: deque[int] = deque()
        for child in goto[ROOT].values():
            fail[child] = ROOT
            queue.append(child)

        while queue:
            state = queue.popleft()
            for char, child in goto[state].items():
                queue.append(child)
                fallback = fail[state]
                while fallback != ROOT and char not in goto[fallback]:
                    fallback = fail[fallback]
                target = goto[fallback].get(char, ROOT)
                fail[child] = target
                # BFS order guarantees target's output is already complete
                if output[target]:
                    output[child].extend(output[target])

        self._goto = goto
        self._fail = fail
        self._output = [tuple(words) for words in output]
        self._patterns = frozenset(unique)

    def search(self, text: str) -> list[Occurrence]:
        """Return every occurrence of every pattern in text, ordered by end position."""
        if not self._patterns or not text:
            return []

        # Cache attribute lookups in local variables
        goto = self._goto
        fail = self._fail
        output = self._output
        matches: list[Occurrence] = []
        state = ROOT

        for position, char in enumerate(text):
            while state != ROOT and char not in goto[state]:
                state = fail[state]
            state = goto[state].get(char, ROOT)
            for word in output[state]:
                matches.append(Occurrence(word, position - len(word) + 1))

        return matches
