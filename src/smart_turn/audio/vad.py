"""Hysteresis-based voice activity state machine."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List

import numpy as np

logger = logging.getLogger(__name__)


class VADState(Enum):
    """Voice activity state."""
    IDLE = auto()       # Nothing buffered, no speech
    BUFFERING = auto()  # Filling the pre-speech lookback, no confirmed speech
    SPEAKING = auto()   # Confirmed speech, segment active
    ENDING = auto()     # Confirmed speech, counting silent chunks toward stop


class VADStatus(Enum):
    """What one chunk did to the state machine."""
    NO_SPEECH = auto()     # Chunk went to the pre-speech buffer
    SPEECH_START = auto()  # Speech confirmed; pre_speech + chunk open a segment
    IN_SPEECH = auto()     # Chunk belongs to the active segment
    END_SPEECH = auto()    # Chunk belongs to the segment, which is now closed


@dataclass(frozen=True)
class VADResult:
    """Result of processing one chunk."""
    status: VADStatus
    state: VADState
    probability: float
    pre_speech: List[np.ndarray] = field(default_factory=list)


class HysteresisVAD:
    """
    Debounced speech start/stop decisions from per-chunk speech probabilities.

    Speech starts on the first chunk at or above `threshold`. It stops only
    after `stop_chunks` consecutive chunks below it; a voiced chunk before
    that resets the count and the silent run stays part of the segment.
    Chunks outside a segment are kept in a bounded pre-speech buffer that is
    handed over once when speech starts.
    """

    def __init__(self, threshold: float, pre_speech_chunks: int, stop_chunks: int):
        if stop_chunks < 1:
            raise ValueError("stop_chunks must be >= 1")
        self._threshold = threshold
        self._stop_chunks = stop_chunks
        self._pre_speech: deque[np.ndarray] = deque(maxlen=max(0, pre_speech_chunks))
        self._state = VADState.IDLE
        self._silent_chunks = 0

    @property
    def state(self) -> VADState:
        return self._state

    @property
    def in_speech(self) -> bool:
        return self._state in (VADState.SPEAKING, VADState.ENDING)

    @property
    def silent_chunks(self) -> int:
        """Consecutive below-threshold chunks counted while ENDING."""
        return self._silent_chunks

    def process(self, pcm: np.ndarray, probability: float) -> VADResult:
        """Advance the state machine by one chunk."""
        voiced = probability >= self._threshold

        if not self.in_speech:
            if not voiced:
                self._pre_speech.append(pcm)
                self._state = VADState.BUFFERING
                return VADResult(VADStatus.NO_SPEECH, self._state, probability)

            pre_speech = list(self._pre_speech)
            self._pre_speech.clear()
            self._state = VADState.SPEAKING
            self._silent_chunks = 0
            logger.info("VAD speech start (p=%.3f, pre-speech chunks=%d)", probability, len(pre_speech))
            return VADResult(VADStatus.SPEECH_START, self._state, probability, pre_speech)

        if voiced:
            if self._state == VADState.ENDING:
                logger.debug("VAD speech resumed after %d silent chunks", self._silent_chunks)
            self._state = VADState.SPEAKING
            self._silent_chunks = 0
            return VADResult(VADStatus.IN_SPEECH, self._state, probability)

        self._state = VADState.ENDING
        self._silent_chunks += 1
        if self._silent_chunks >= self._stop_chunks:
            logger.info("VAD speech end after %d silent chunks", self._silent_chunks)
            self._state = VADState.IDLE
            self._silent_chunks = 0
            return VADResult(VADStatus.END_SPEECH, self._state, probability)
        return VADResult(VADStatus.IN_SPEECH, self._state, probability)

    def force_end(self) -> None:
        """Close the current segment without waiting for silence (hard cap)."""
        self._state = VADState.IDLE
        self._silent_chunks = 0

    def reset(self) -> None:
        """Drop all state, including the pre-speech buffer."""
        self._pre_speech.clear()
        self._state = VADState.IDLE
        self._silent_chunks = 0
