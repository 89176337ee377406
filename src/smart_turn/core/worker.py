"""Reusable worker thread utilities."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Generic, TypeVar

from .shutdown import StopSignal

T = TypeVar("T")

logger = logging.getLogger(__name__)


class QueueWorker(threading.Thread, Generic[T]):
    """
    Base class for a queue-consuming worker thread.

    Items are handled strictly in queue order on this one thread. The stop
    signal is checked between items, never in the middle of one.
    Subclasses only implement `handle(item)`.
    """

    def __init__(
        self,
        *,
        name: str,
        stop_signal: StopSignal,
        input_queue: "queue.Queue[T]",
        poll_interval_s: float = 0.1,
        daemon: bool = True,
    ):
        super().__init__(name=name, daemon=daemon)
        self._stop_signal = stop_signal
        self._input_queue = input_queue
        self._poll_interval_s = poll_interval_s

    def run(self) -> None:
        while not self._stop_signal.is_set():
            try:
                item = self._input_queue.get(timeout=self._poll_interval_s)
            except queue.Empty:
                continue

            try:
                if self._stop_signal.is_set():
                    break
                self.handle(item)
            finally:
                self._input_queue.task_done()
        logger.debug(f"{self.name}: stopped")

    def handle(self, item: T) -> None:
        raise NotImplementedError
