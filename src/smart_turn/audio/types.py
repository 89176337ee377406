"""Audio data types and fixed stream parameters."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field

import numpy as np

SAMPLE_RATE = 16000
CHUNK_SIZE = 512  # 32 ms at 16 kHz
CHUNK_MS = CHUNK_SIZE * 1000 / SAMPLE_RATE


def ms_to_chunks(ms: float) -> int:
    """Number of whole chunks needed to cover `ms` milliseconds."""
    if ms <= 0:
        return 0
    return int(math.ceil(ms / CHUNK_MS - 1e-9))


@dataclass(frozen=True)
class AudioChunk:
    """One ChunkSize window of mono float32 samples."""
    pcm: np.ndarray
    index: int = 0

    @property
    def start_s(self) -> float:
        """Stream time at which this chunk begins."""
        return self.index * CHUNK_SIZE / SAMPLE_RATE


@dataclass(frozen=True)
class TurnDecision:
    """Result of one turn-completion evaluation. Never mutated after creation."""
    probability: float
    accepted: bool
    timestamp: float = field(default_factory=time.time)
