from dataclasses import dataclass, field
from typing import Callable, Optional, Union
import time

import numpy as np


@dataclass(frozen=True)
class ListeningStarted:
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ListeningStopped:
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class SpeechStarted:
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class SpeechEnded:
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class TurnPredicted:
    """Final turn decision for a segment."""
    complete: bool
    probability: float
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class SegmentReady:
    """Newly accumulated speech samples since the previous slice."""
    samples: np.ndarray = field(repr=False)
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ErrorOccurred:
    error: Exception
    timestamp: float = field(default_factory=time.time)


# Type alias for everything the dispatcher delivers
EngineEvent = Union[
    ListeningStarted,
    ListeningStopped,
    SpeechStarted,
    SpeechEnded,
    TurnPredicted,
    SegmentReady,
    ErrorOccurred,
]


@dataclass(frozen=True)
class Callbacks:
    """Optional event hooks. Unset hooks are no-ops."""
    on_listening_started: Optional[Callable[[], None]] = None
    on_listening_stopped: Optional[Callable[[], None]] = None
    on_speech_start: Optional[Callable[[], None]] = None
    on_speech_end: Optional[Callable[[], None]] = None
    on_turn_prediction: Optional[Callable[[bool, float], None]] = None
    on_segment_ready: Optional[Callable[[np.ndarray], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None
