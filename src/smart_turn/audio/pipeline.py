"""Per-chunk turn-taking pipeline: VAD -> segment -> turn decision -> events."""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from ..config.settings import SmartTurnConfig
from ..core.dispatcher import EventDispatcher
from ..core.events import ErrorOccurred, SegmentReady, SpeechEnded, SpeechStarted, TurnPredicted
from .inference import TurnCompletionModel, VoiceActivityModel, as_inference_error
from .segment import SpeechSegment
from .turn import TurnDecisionEngine
from .types import CHUNK_SIZE, SAMPLE_RATE, TurnDecision, ms_to_chunks
from .vad import HysteresisVAD, VADResult, VADState, VADStatus

logger = logging.getLogger(__name__)


class TurnPipeline:
    """
    Sequential state machine driven one chunk at a time.

    Not thread-safe: the owner must call `process()` from one context at a
    time and in stream order.
    """

    def __init__(
        self,
        cfg: SmartTurnConfig,
        vad_model: VoiceActivityModel,
        turn_model: TurnCompletionModel,
        dispatcher: EventDispatcher,
    ):
        self._vad_model = vad_model
        self._dispatcher = dispatcher
        self._vad = HysteresisVAD(
            threshold=cfg.vad_threshold,
            pre_speech_chunks=ms_to_chunks(cfg.vad_pre_speech_ms),
            stop_chunks=max(1, ms_to_chunks(cfg.vad_stop_ms)),
        )
        self._turn = TurnDecisionEngine(
            model=turn_model,
            threshold=cfg.turn_threshold,
            timeout_chunks=max(1, ms_to_chunks(cfg.turn_timeout_ms)),
            on_error=self._report_error,
        )
        self._emit_samples = max(1, int(round(cfg.turn_segment_emit_ms * SAMPLE_RATE / 1000)))
        self._max_samples = max(1, int(round(cfg.turn_max_duration_s * SAMPLE_RATE)))

        self._segment: Optional[SpeechSegment] = None
        # Chunks seen while a below-threshold decision waits for its timeout
        self._held: List[np.ndarray] = []
        self._chunk_index = 0
        self.last_decision: Optional[TurnDecision] = None

    @property
    def vad_state(self) -> VADState:
        return self._vad.state

    @property
    def segment(self) -> Optional[SpeechSegment]:
        return self._segment

    @property
    def awaiting_timeout(self) -> bool:
        return self._turn.pending is not None

    def process(self, pcm: np.ndarray) -> VADResult:
        """Run one chunk through the whole pipeline."""
        pcm = np.asarray(pcm, dtype=np.float32).reshape(-1)
        if len(pcm) != CHUNK_SIZE:
            raise ValueError(f"chunk must have exactly {CHUNK_SIZE} samples, got {len(pcm)}")

        prob = self._speech_probability(pcm)
        result = self._vad.process(pcm, prob)
        now_s = self._chunk_index * CHUNK_SIZE / SAMPLE_RATE
        self._chunk_index += 1

        if self._turn.pending is not None:
            self._handle_pending(pcm, result)
        elif result.status == VADStatus.SPEECH_START:
            self._segment = SpeechSegment(
                pre_speech=result.pre_speech,
                sample_rate=SAMPLE_RATE,
                emit_samples=self._emit_samples,
                max_samples=self._max_samples,
                started_at_s=now_s,
            )
            self._segment.append(pcm)
            self._dispatcher.emit(SpeechStarted())
            self._after_append()
        elif result.status == VADStatus.IN_SPEECH:
            self._segment.append(pcm)
            self._after_append()
        elif result.status == VADStatus.END_SPEECH:
            self._segment.append(pcm)
            if self._segment.over_limit:
                self._force_close()
            else:
                self._close_after_silence()
        return result

    def reset(self) -> None:
        """Drop all state without emitting events."""
        self._vad.reset()
        self._turn.cancel()
        self._segment = None
        self._held = []
        self._chunk_index = 0
        self.last_decision = None
        self._vad_model.reset()

    def _speech_probability(self, pcm: np.ndarray) -> float:
        try:
            return float(self._vad_model.infer(pcm))
        except Exception as e:
            logger.exception("Voice-activity inference failed; treating chunk as silence")
            self._report_error(as_inference_error(e, "voice-activity inference"))
            return 0.0

    def _after_append(self) -> None:
        seg = self._segment
        if seg.over_limit:
            self._force_close()
            return

        emitted = False
        for piece in iter(seg.due_slice, None):
            self._dispatcher.emit(SegmentReady(piece))
            emitted = True
        if not emitted:
            return
        decision = self._evaluate(seg)
        # A pause has to be underway before a cadence evaluation can end the turn.
        if decision.accepted and self._vad.state == VADState.ENDING:
            logger.info("Turn complete during pause (p=%.3f)", decision.probability)
            self._finish(decision, complete=True)

    def _close_after_silence(self) -> None:
        seg = self._segment
        self._emit_remaining(seg)
        decision = self._evaluate(seg)
        if decision.accepted:
            logger.info("Turn complete at speech end (p=%.3f)", decision.probability)
            self._finish(decision, complete=True)
            return
        logger.warning("Skipping speech end: turn incomplete (p=%.3f)", decision.probability)
        self._held = []
        self._turn.arm(decision)

    def _force_close(self) -> None:
        seg = self._segment
        logger.warning("Segment reached max duration (%.1fs); forcing end", seg.elapsed_s)
        self._emit_remaining(seg)
        # No genuine pause was observed, so the forced result is never accepted.
        decision = TurnDecision(probability=self._evaluate(seg).probability, accepted=False)
        self.last_decision = decision
        self._finish(decision, complete=False)

    def _emit_remaining(self, seg: SpeechSegment) -> None:
        """Emit any full cadence slices still due, then the residual tail."""
        for piece in iter(seg.due_slice, None):
            self._dispatcher.emit(SegmentReady(piece))
        piece = seg.tail()
        if piece is not None:
            self._dispatcher.emit(SegmentReady(piece))

    def _handle_pending(self, pcm: np.ndarray, result: VADResult) -> None:
        if result.status == VADStatus.SPEECH_START:
            # Speech resumed before the timeout: the held segment continues.
            self._turn.cancel()
            logger.info("Speech resumed; pending turn decision cancelled")
            for held in self._held:
                self._segment.append(held)
            self._held = []
            self._segment.append(pcm)
            self._after_append()
            return

        self._held.append(pcm)
        if self._turn.tick():
            decision = self._turn.pending
            logger.info("Turn timeout elapsed; forcing speech end (p=%.3f)", decision.probability)
            self._finish(decision, complete=False)

    def _evaluate(self, seg: SpeechSegment) -> TurnDecision:
        decision = self._turn.evaluate(seg.audio())
        self.last_decision = decision
        return decision

    def _finish(self, decision: TurnDecision, complete: bool) -> None:
        self._turn.cancel()
        self._segment = None
        self._held = []
        if self._vad.in_speech:
            self._vad.force_end()
        self._dispatcher.emit(SpeechEnded())
        self._dispatcher.emit(TurnPredicted(complete=complete, probability=decision.probability))

    def _report_error(self, error: Exception) -> None:
        self._dispatcher.emit(ErrorOccurred(error))
