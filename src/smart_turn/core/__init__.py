from .dispatcher import EventDispatcher
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
from .shutdown import GracefulShutdown, StopSignal
from .worker import QueueWorker
