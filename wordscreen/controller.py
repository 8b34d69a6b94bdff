"""
Screening Controller — Foreground Coordinator

Connects a TextSurface to a ScreeningExecutor:
  - debounces text changes into detect requests
  - honors only the reply to the most recently issued request
  - owns the visible state: matches, count, decorations, detecting flag

There is no real cancellation. A superseded scan still runs on the
executor; its reply is dropped on arrival because its request id is
no longer the pending one. That single comparison is what keeps a
slow reply to an old edit from overwriting a newer result.

All public methods must be called from the event loop thread that
called attach(). Replies cross back from the worker thread through
loop.call_soon_threadsafe.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Callable, Iterable, Optional

from pydantic import ValidationError

from wordscreen.config import ScreeningConfig
from wordscreen.dictionary import Match
from wordscreen.executor import ReplyCallback, ScreeningExecutor
from wordscreen.markers import HoverResolver, MarkerRenderer
from wordscreen.schemas.messages import (
    AddWordsRequest,
    DetectRequest,
    DetectResult,
    DictionaryReply,
    ErrorReply,
    GetDictionaryRequest,
    LoadDictionaryRequest,
    RemoveWordsRequest,
    SetSeverityRequest,
    parse_reply,
)
from wordscreen.surface import TextSurface, Unsubscribe

logger = logging.getLogger(__name__)

ExecutorFactory = Callable[[ReplyCallback], ScreeningExecutor]


class ScreeningError(RuntimeError):
    """An executor query failed. Raised only from awaited queries."""


class ScreeningController:
    """
    Usage:
        controller = ScreeningController(ScreeningConfig(dictionary=("暴力",)))
        controller.attach(surface)      # inside a running event loop
        ...
        controller.sensitive_word_count
        controller.detach()
    """

    def __init__(
        self,
        config: Optional[ScreeningConfig] = None,
        executor_factory: ExecutorFactory = ScreeningExecutor,
        renderer: Optional[MarkerRenderer] = None,
    ):
        self._config = config or ScreeningConfig.from_settings()
        self._executor_factory = executor_factory
        self._renderer = renderer or MarkerRenderer()
        self._enabled = self._config.enabled
        self._words: list[str] = list(self._config.dictionary)
        self._overrides: dict[str, str] = {}

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._surface: Optional[TextSurface] = None
        self._executor: Optional[ScreeningExecutor] = None
        self._generation = 0
        self._unsubscribers: list[Unsubscribe] = []

        self._request_ids = itertools.count(1)
        self._pending_request_id: Optional[int] = None
        self._debounce: Optional[asyncio.TimerHandle] = None
        self._detecting = False
        self._idle: Optional[asyncio.Event] = None
        self._queries: dict[int, asyncio.Future] = {}

        self._matches: list[Match] = []
        self.hover = HoverResolver(lambda: self._matches)

    # --- Exposed state ---

    @property
    def sensitive_word_count(self) -> int:
        return len(self._matches)

    @property
    def is_detecting(self) -> bool:
        return self._detecting

    @property
    def matches(self) -> tuple[Match, ...]:
        return tuple(self._matches)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def attached(self) -> bool:
        return self._surface is not None

    # --- Lifecycle ---

    def attach(self, surface: TextSurface) -> None:
        """Start screening surface. Must run inside the event loop."""
        if self._surface is not None:
            raise RuntimeError("ScreeningController is already attached")

        loop = asyncio.get_running_loop()
        seed = []
        if self._words:
            seed.append(LoadDictionaryRequest(words=self._words))
            seed.extend(
                SetSeverityRequest(word=word, severity=severity)
                for word, severity in self._overrides.items()
            )

        self._loop = loop
        self._idle = asyncio.Event()
        self._idle.set()
        self._generation += 1
        self._surface = surface

        generation = self._generation
        self._executor = self._executor_factory(
            lambda raw: self._post_reply(raw, generation)
        )
        self._executor.start()
        for message in seed:
            self._executor.post(message)

        self._unsubscribers.append(surface.on_change(self._on_text_changed))
        self.hover = HoverResolver(lambda: self._matches, surface)
        try:
            self._unsubscribers.append(surface.register_hover(self.hover.provide_hover))
        except NotImplementedError as e:
            logger.warning("Hover disabled: %s", e)

        logger.info("ScreeningController attached", extra={"word_count": len(self._words)})
        if self._enabled:
            self.detect_now()

    def detach(self) -> None:
        """Stop screening. Replies that arrive afterwards are ignored."""
        if self._surface is None:
            return

        self._reset_visible_state()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

        for future in self._queries.values():
            if not future.done():
                future.cancel()
        self._queries.clear()

        if self._executor is not None:
            self._executor.stop(wait=False)
        self._executor = None
        self._surface = None
        self._generation += 1
        self.hover = HoverResolver(lambda: self._matches)
        logger.info("ScreeningController detached")

    def set_enabled(self, enabled: bool) -> None:
        if enabled == self._enabled:
            return
        self._enabled = enabled
        if not enabled:
            self._reset_visible_state()
        elif self._surface is not None:
            self.detect_now()

    # --- Detection ---

    def detect_now(self) -> Optional[int]:
        """Issue a detect for the current text. Returns its request id."""
        if self._surface is None or self._executor is None or not self._enabled:
            self._reset_visible_state()
            return None

        self._cancel_debounce()
        request_id = next(self._request_ids)
        self._pending_request_id = request_id
        self._set_detecting(True)
        self._executor.post(DetectRequest(text=self._surface.get_text(), request_id=request_id))
        return request_id

    async def wait_until_idle(self, timeout: Optional[float] = None) -> None:
        """Wait until no detect is outstanding."""
        if self._idle is None:
            return
        await asyncio.wait_for(self._idle.wait(), timeout)

    # --- Dictionary ---

    # Requests are built before any local state changes, so a rejected
    # edit leaves the word list and overrides as they were.

    def load_dictionary(self, words: Iterable[str]) -> None:
        """Hot-reload the dictionary, then rescreen."""
        words = list(words)
        request = LoadDictionaryRequest(words=words)
        self._words = words
        self._retain_overrides()
        self._edit(request)

    def add_words(self, words: Iterable[str]) -> None:
        words = list(words)
        request = AddWordsRequest(words=words)
        self._words.extend(words)
        self._edit(request)

    def remove_words(self, words: Iterable[str]) -> None:
        words = list(words)
        request = RemoveWordsRequest(words=words)
        removed = {w.strip() for w in request.words}
        self._words = [w for w in self._words if w.strip() not in removed]
        self._retain_overrides()
        self._edit(request)

    def set_severity(self, word: str, severity: str) -> None:
        """Override a word's severity. Kept across detach and reattach."""
        request = SetSeverityRequest(word=word, severity=severity)
        word = request.word.strip()
        if word in self._word_set():
            self._overrides[word] = request.severity
        self._edit(request)

    async def fetch_dictionary(self) -> list[str]:
        """The executor's current word list."""
        if self._executor is None or self._loop is None:
            raise ScreeningError("ScreeningController is not attached")
        request_id = next(self._request_ids)
        future = self._loop.create_future()
        self._queries[request_id] = future
        self._executor.post(GetDictionaryRequest(request_id=request_id))
        return await future

    def _edit(self, message) -> None:
        if self._executor is None:
            return
        self._executor.post(message)
        if self._enabled:
            self.detect_now()

    def _word_set(self) -> set[str]:
        return {w.strip() for w in self._words}

    def _retain_overrides(self) -> None:
        present = self._word_set()
        self._overrides = {w: s for w, s in self._overrides.items() if w in present}

    # --- Internals ---

    def _on_text_changed(self) -> None:
        if self._surface is None or not self._enabled or self._loop is None:
            return
        self._cancel_debounce()
        self._debounce = self._loop.call_later(self._config.debounce_seconds, self._fire_debounce)

    def _fire_debounce(self) -> None:
        self._debounce = None
        self.detect_now()

    def _cancel_debounce(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None

    def _set_detecting(self, detecting: bool) -> None:
        self._detecting = detecting
        if self._idle is not None:
            if detecting:
                self._idle.clear()
            else:
                self._idle.set()

    def _reset_visible_state(self) -> None:
        self._cancel_debounce()
        self._pending_request_id = None
        self._matches = []
        self._set_detecting(False)
        if self._surface is not None:
            self._renderer.clear(self._surface)

    def _post_reply(self, raw: dict, generation: int) -> None:
        """Runs on the worker thread."""
        loop = self._loop
        if loop is None:
            return
        try:
            loop.call_soon_threadsafe(self._handle_reply, raw, generation)
        except RuntimeError:
            logger.debug("Reply dropped: event loop closed",
                         extra={"request_id": raw.get("request_id")})

    def _handle_reply(self, raw: dict, generation: int) -> None:
        if generation != self._generation or self._surface is None:
            return

        try:
            reply = parse_reply(raw)
        except ValidationError as e:
            logger.warning("Malformed executor reply", extra={"error": str(e)})
            return

        if isinstance(reply, DetectResult):
            self._apply_result(reply)
        elif isinstance(reply, DictionaryReply):
            future = self._queries.pop(reply.request_id, None)
            if future is not None and not future.done():
                future.set_result(reply.words)
        elif isinstance(reply, ErrorReply):
            self._apply_error(reply)

    def _apply_result(self, reply: DetectResult) -> None:
        if not self._enabled or reply.request_id != self._pending_request_id:
            logger.debug("Discarded stale detect result", extra={"request_id": reply.request_id})
            return

        self._matches = [payload.to_match() for payload in reply.matches]
        self._renderer.render(self._matches, self._surface)
        self._pending_request_id = None
        self._set_detecting(False)
        logger.debug(
            "Detect result applied",
            extra={"request_id": reply.request_id, "match_count": len(self._matches)},
        )

    def _apply_error(self, reply: ErrorReply) -> None:
        logger.warning(
            "Screening executor error: %s", reply.message,
            extra={"request_id": reply.request_id, "error_type": reply.error_type},
        )
        if reply.request_id is None:
            return
        future = self._queries.pop(reply.request_id, None)
        if future is not None and not future.done():
            future.set_exception(ScreeningError(reply.message))
        if reply.request_id == self._pending_request_id:
            self._pending_request_id = None
            self._set_detecting(False)
