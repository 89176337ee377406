"""Turn-completion decisions: threshold plus timeout fallback."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import numpy as np

from .features import compute_log_mel
from .inference import TurnCompletionModel, as_inference_error
from .types import SAMPLE_RATE, TurnDecision

logger = logging.getLogger(__name__)


class TurnDecisionEngine:
    """
    Scores accumulated segment audio with the turn-completion model.

    A below-threshold result at segment end is not final: `arm()` starts a
    countdown of `timeout_chunks` chunks. The owner calls `tick()` once per
    chunk while no speech is present; when it returns True the pending
    decision has timed out. `cancel()` drops it when speech resumes.
    """

    def __init__(
        self,
        model: TurnCompletionModel,
        threshold: float,
        timeout_chunks: int,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self._model = model
        self._threshold = threshold
        self._timeout_chunks = max(1, timeout_chunks)
        self._on_error = on_error
        self._pending: Optional[TurnDecision] = None
        self._remaining = 0

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def pending(self) -> Optional[TurnDecision]:
        """Below-threshold decision waiting for the timeout, if any."""
        return self._pending

    def evaluate(self, audio: np.ndarray) -> TurnDecision:
        """Run features + model on the whole segment so far."""
        features = compute_log_mel(audio)
        if features.size == 0:
            return TurnDecision(probability=0.0, accepted=False)
        try:
            prob = float(self._model.infer(features))
        except Exception as e:
            logger.exception("Turn-completion inference failed")
            if self._on_error:
                self._on_error(as_inference_error(e, "turn-completion inference"))
            return TurnDecision(probability=0.0, accepted=False)

        decision = TurnDecision(probability=prob, accepted=prob >= self._threshold)
        logger.debug(
            "Turn evaluation over %.2fs: p=%.3f accepted=%s",
            len(audio) / SAMPLE_RATE, prob, decision.accepted,
        )
        return decision

    def arm(self, decision: TurnDecision) -> None:
        self._pending = decision
        self._remaining = self._timeout_chunks
        logger.info(
            "Turn not complete (p=%.3f < %.3f); waiting %d chunks before forcing end",
            decision.probability, self._threshold, self._timeout_chunks,
        )

    def tick(self) -> bool:
        """Count one silent chunk against the pending timeout."""
        if self._pending is None:
            return False
        self._remaining -= 1
        return self._remaining <= 0

    def cancel(self) -> Optional[TurnDecision]:
        pending, self._pending = self._pending, None
        self._remaining = 0
        return pending
