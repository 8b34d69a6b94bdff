"""
Screening Executor — Background Worker

Owns one DictionaryStore and runs every screening request on a
dedicated thread. The only way in is post(); the only way out is
the on_reply callback. Both directions carry plain dicts.

Messages are handled strictly in arrival order from a single inbox,
so a detect never overlaps a dictionary edit. A detect sees the
dictionary as it is when the detect runs, not when it was posted.

Failures never escape the worker: each one becomes an ErrorReply
scoped to the request that caused it, and the loop keeps going.
"""

from __future__ import annotations

import copy
import logging
import queue
import threading
import time
from typing import Callable, Optional, Union

from pydantic import BaseModel, ValidationError

from wordscreen.dictionary import DictionaryStore
from wordscreen.schemas.messages import (
    AddWordsRequest,
    DetectRequest,
    DetectResult,
    DictionaryReply,
    ErrorReply,
    GetDictionaryRequest,
    LoadDictionaryRequest,
    MatchPayload,
    RemoveWordsRequest,
    SetSeverityRequest,
    parse_request,
)

logger = logging.getLogger(__name__)

ReplyCallback = Callable[[dict], None]

_STOP = object()


class ScreeningExecutor:
    """
    Usage:
        executor = ScreeningExecutor(on_reply=handle)
        executor.start()
        executor.post(LoadDictionaryRequest(words=["暴力"]))
        executor.post(DetectRequest(text="这是暴力内容", request_id=1))
        ...
        executor.stop()
    """

    def __init__(
        self,
        on_reply: ReplyCallback,
        store: Optional[DictionaryStore] = None,
        name: str = "wordscreen-executor",
    ):
        self._on_reply = on_reply
        # Touched only by the worker thread once started
        self._store = store if store is not None else DictionaryStore()
        self._inbox: queue.Queue = queue.Queue()
        self._name = name
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread. Idempotent."""
        if self.running:
            return
        self._thread = threading.Thread(target=self._process_loop, name=self._name, daemon=True)
        self._thread.start()
        logger.info("ScreeningExecutor started")

    def post(self, message: Union[BaseModel, dict]) -> None:
        """Queue a request. Models are dumped so nothing is shared with the worker."""
        if isinstance(message, BaseModel):
            message = message.model_dump()
        else:
            message = copy.deepcopy(message)
        self._inbox.put(message)

    def drain(self) -> None:
        """Block until every message posted so far has been handled."""
        self._inbox.join()

    def stop(self, timeout: Optional[float] = None, wait: bool = True) -> None:
        """
        Stop after the messages already queued. A scan in progress runs to
        completion; if it outlasts timeout the daemon thread is abandoned.
        With wait=False the worker is told to stop and left to finish alone.
        """
        if self._thread is None:
            return
        self._inbox.put(_STOP)
        if not wait:
            self._thread = None
            return
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("ScreeningExecutor did not stop within %ss", timeout)
        else:
            logger.info("ScreeningExecutor stopped")
        self._thread = None

    def handle(self, raw: dict) -> Optional[dict]:
        """
        Process one message synchronously and return the reply dict, if any.

        This is the whole protocol; the worker thread only feeds it.
        """
        request_id = raw.get("request_id") if isinstance(raw, dict) else None
        if not isinstance(request_id, int) or isinstance(request_id, bool):
            request_id = None

        try:
            message = parse_request(raw)
            reply = self._dispatch(message)
        except ValidationError as e:
            message_type = raw.get("type") if isinstance(raw, dict) else None
            logger.warning(
                "Rejected malformed message",
                extra={"message_type": message_type, "request_id": request_id,
                       "error": str(e)},
            )
            return ErrorReply(
                message=f"Unknown or malformed message: {message_type!r}",
                error_type="ValidationError",
                request_id=request_id,
            ).model_dump()
        except Exception as e:
            logger.error(
                "Screening request failed",
                extra={"request_id": request_id, "error": str(e),
                       "error_type": type(e).__name__},
                exc_info=True,
            )
            return ErrorReply(
                message=str(e),
                error_type=type(e).__name__,
                request_id=request_id,
            ).model_dump()

        return reply.model_dump() if reply is not None else None

    def _dispatch(self, message) -> Optional[BaseModel]:
        store = self._store

        if isinstance(message, DetectRequest):
            start = time.perf_counter()
            matches = store.detect(message.text)
            logger.debug(
                "Detect complete",
                extra={
                    "request_id": message.request_id,
                    "match_count": len(matches),
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
            return DetectResult(
                matches=[MatchPayload.from_match(m) for m in matches],
                request_id=message.request_id,
            )

        if isinstance(message, LoadDictionaryRequest):
            store.load(message.words)
            logger.info(
                "Dictionary loaded",
                extra={"word_count": len(store),
                       "state_count": store.automaton.state_count},
            )
            return None

        if isinstance(message, AddWordsRequest):
            if store.add_words(message.words):
                logger.info("Dictionary words added", extra={"word_count": len(store)})
            return None

        if isinstance(message, RemoveWordsRequest):
            if store.remove_words(message.words):
                logger.info("Dictionary words removed", extra={"word_count": len(store)})
            return None

        if isinstance(message, SetSeverityRequest):
            if not store.set_severity(message.word, message.severity):
                logger.debug("Severity override ignored for unknown word")
            return None

        if isinstance(message, GetDictionaryRequest):
            return DictionaryReply(words=store.words(), request_id=message.request_id)

        raise ValueError(f"Unknown message type: {type(message).__name__}")

    def _process_loop(self) -> None:
        """Continuously process messages from the inbox."""
        while True:
            raw = self._inbox.get()
            try:
                if raw is _STOP:
                    return
                reply = self.handle(raw)
                if reply is not None:
                    self._deliver(reply)
            finally:
                self._inbox.task_done()

    def _deliver(self, reply: dict) -> None:
        try:
            self._on_reply(reply)
        except Exception:
            logger.exception("Reply callback failed")
