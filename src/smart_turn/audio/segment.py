"""Speech segment accumulation with periodic slice emission."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import numpy as np

logger = logging.getLogger(__name__)


class SpeechSegment:
    """
    Raw samples of one active speech segment.

    Slices handed out by `due_slice()` and `tail()` never overlap and together
    cover every accumulated sample. Duration for the hard cap counts from the
    chunk that started speech; pre-speech audio is kept but not counted.
    """

    def __init__(
        self,
        pre_speech: Iterable[np.ndarray],
        sample_rate: int,
        emit_samples: int,
        max_samples: int,
        started_at_s: float = 0.0,
    ):
        self._sample_rate = sample_rate
        self._emit_samples = emit_samples
        self._max_samples = max_samples
        self.started_at_s = started_at_s

        self._parts: List[np.ndarray] = [np.asarray(p, dtype=np.float32) for p in pre_speech]
        self._total = sum(len(p) for p in self._parts)
        self._pre_speech_samples = self._total
        self._emitted = 0
        self._cached: Optional[np.ndarray] = None

    def append(self, pcm: np.ndarray) -> None:
        pcm = np.asarray(pcm, dtype=np.float32)
        self._parts.append(pcm)
        self._total += len(pcm)
        self._cached = None

    @property
    def num_samples(self) -> int:
        return self._total

    @property
    def speech_samples(self) -> int:
        """Samples appended since speech started (excludes pre-speech)."""
        return self._total - self._pre_speech_samples

    @property
    def elapsed_s(self) -> float:
        return self.speech_samples / self._sample_rate

    @property
    def emitted_samples(self) -> int:
        return self._emitted

    @property
    def over_limit(self) -> bool:
        """True once speech duration reaches the hard turn-duration cap."""
        return self.speech_samples >= self._max_samples

    def audio(self) -> np.ndarray:
        """Whole segment so far."""
        if self._cached is None:
            if self._parts:
                self._cached = np.concatenate(self._parts)
                self._parts = [self._cached]
            else:
                self._cached = np.empty(0, dtype=np.float32)
        return self._cached

    def due_slice(self) -> Optional[np.ndarray]:
        """
        Return the next cadence-sized slice, or None while fewer than
        `emit_samples` unemitted samples are buffered. Call repeatedly until
        None when a single append can complete more than one slice.
        """
        if self._total - self._emitted < self._emit_samples:
            return None
        return self._take(self._emitted + self._emit_samples)

    def tail(self) -> Optional[np.ndarray]:
        """Return the residual unemitted samples (shorter than one slice)."""
        if self._total == self._emitted:
            return None
        return self._take(self._total)

    def _take(self, end: int) -> np.ndarray:
        piece = self.audio()[self._emitted:end].copy()
        self._emitted = end
        logger.debug("Segment slice of %d samples (total=%d)", len(piece), self._total)
        return piece
