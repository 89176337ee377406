"""Audio pipeline: feature extraction, VAD hysteresis, segments and turn decisions."""

from .features import compute_log_mel, mel_filterbank_cache
from .inference import SileroVADSession, SmartTurnSession, TurnCompletionModel, VoiceActivityModel
from .pipeline import TurnPipeline
from .segment import SpeechSegment
from .turn import TurnDecisionEngine
from .types import CHUNK_SIZE, SAMPLE_RATE, AudioChunk, TurnDecision
from .vad import HysteresisVAD, VADResult, VADState, VADStatus

__all__ = [
    "AudioChunk",
    "CHUNK_SIZE",
    "HysteresisVAD",
    "SAMPLE_RATE",
    "SileroVADSession",
    "SmartTurnSession",
    "SpeechSegment",
    "TurnCompletionModel",
    "TurnDecision",
    "TurnDecisionEngine",
    "TurnPipeline",
    "VADResult",
    "VADState",
    "VADStatus",
    "VoiceActivityModel",
    "compute_log_mel",
    "mel_filterbank_cache",
]
