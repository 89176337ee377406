"""Tests for the turn decision engine."""

from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from smart_turn.audio.turn import TurnDecisionEngine
from smart_turn.errors import InferenceError


@pytest.fixture
def errors():
    return []


@pytest.fixture
def engine(turn_model, errors):
    return TurnDecisionEngine(model=turn_model, threshold=0.9, timeout_chunks=3, on_error=errors.append)


class TestEvaluate:
    def test_feeds_whole_segment_features_to_model(self, engine, turn_model, mock_audio_data):
        decision = engine.evaluate(mock_audio_data)
        turn_model.infer.assert_called_once()
        features = turn_model.infer.call_args[0][0]
        assert features.shape == (80, 800)
        assert decision.probability == 0.95
        assert decision.accepted

    def test_below_threshold(self, engine, turn_model, mock_audio_data):
        turn_model.infer.return_value = 0.3
        decision = engine.evaluate(mock_audio_data)
        assert decision.probability == 0.3
        assert not decision.accepted

    def test_threshold_is_inclusive(self, engine, turn_model, mock_audio_data):
        turn_model.infer.return_value = 0.9
        assert engine.evaluate(mock_audio_data).accepted

    def test_empty_audio_skips_model(self, engine, turn_model):
        decision = engine.evaluate(np.array([], dtype=np.float32))
        turn_model.infer.assert_not_called()
        assert not decision.accepted

    def test_inference_failure_reported_and_below_threshold(self, engine, turn_model, errors, mock_audio_data):
        turn_model.infer.side_effect = RuntimeError("boom")
        decision = engine.evaluate(mock_audio_data)
        assert decision.probability == 0.0
        assert not decision.accepted
        assert len(errors) == 1
        assert isinstance(errors[0], InferenceError)
        assert isinstance(errors[0].__cause__, RuntimeError)

    def test_inference_error_passed_through(self, engine, turn_model, errors, mock_audio_data):
        closed_err = InferenceError("session closed")
        turn_model.infer.side_effect = closed_err
        engine.evaluate(mock_audio_data)
        assert errors == [closed_err]


class TestTimeout:
    def test_tick_counts_down_after_arm(self, engine, turn_model, mock_audio_data):
        turn_model.infer.return_value = 0.2
        decision = engine.evaluate(mock_audio_data)
        engine.arm(decision)
        assert engine.pending is decision
        assert engine.tick() is False
        assert engine.tick() is False
        assert engine.tick() is True

    def test_tick_without_pending_is_noop(self, engine):
        assert engine.tick() is False

    def test_cancel_clears_pending(self, engine, mock_audio_data):
        decision = engine.evaluate(mock_audio_data)
        engine.arm(decision)
        assert engine.cancel() is decision
        assert engine.pending is None
        assert engine.tick() is False

    def test_decisions_are_immutable(self, engine, mock_audio_data):
        decision = engine.evaluate(mock_audio_data)
        with pytest.raises(FrozenInstanceError):
            decision.probability = 0.1
