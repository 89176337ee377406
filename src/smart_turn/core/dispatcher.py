"""Ordered, non-reentrant delivery of engine events to callbacks."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Callable, Deque, Optional

from .events import (
    Callbacks,
    EngineEvent,
    ErrorOccurred,
    ListeningStarted,
    ListeningStopped,
    SegmentReady,
    SpeechEnded,
    SpeechStarted,
    TurnPredicted,
)

logger = logging.getLogger(__name__)

_EVENT_TYPES = (
    ListeningStarted,
    ListeningStopped,
    SpeechStarted,
    SpeechEnded,
    TurnPredicted,
    SegmentReady,
    ErrorOccurred,
)


class EventDispatcher:
    """
    Maps each event to exactly one callback invocation.

    Events are delivered in the order they are emitted. An event emitted while
    a callback is running (from any thread, including the callback itself) is
    queued and delivered after that callback returns, so callbacks never nest.
    """

    def __init__(self, callbacks: Callbacks):
        self._callbacks = callbacks
        self._lock = threading.Lock()
        self._pending: Deque[EngineEvent] = deque()
        self._delivering = False

    def emit(self, event: EngineEvent) -> None:
        if not isinstance(event, _EVENT_TYPES):
            raise TypeError(f"unknown event type: {type(event).__name__}")
        with self._lock:
            self._pending.append(event)
            if self._delivering:
                return
            self._delivering = True

        while True:
            with self._lock:
                if not self._pending:
                    self._delivering = False
                    return
                event = self._pending.popleft()
            self._deliver(event)

    def _deliver(self, event: EngineEvent) -> None:
        handler = self._handler_for(event)
        if handler is None:
            return
        try:
            handler()
        except Exception:
            logger.exception("Callback for %s raised", type(event).__name__)

    def _handler_for(self, event: EngineEvent) -> Optional[Callable[[], None]]:
        cb = self._callbacks
        if isinstance(event, ListeningStarted):
            return cb.on_listening_started
        if isinstance(event, ListeningStopped):
            return cb.on_listening_stopped
        if isinstance(event, SpeechStarted):
            return cb.on_speech_start
        if isinstance(event, SpeechEnded):
            return cb.on_speech_end
        if isinstance(event, TurnPredicted):
            if cb.on_turn_prediction is None:
                return None
            return lambda: cb.on_turn_prediction(event.complete, event.probability)
        if isinstance(event, SegmentReady):
            if cb.on_segment_ready is None:
                return None
            return lambda: cb.on_segment_ready(event.samples)
        if cb.on_error is None:
            return None
        return lambda: cb.on_error(event.error)
