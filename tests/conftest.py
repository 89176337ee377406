import pytest
import numpy as np
from unittest.mock import MagicMock

from smart_turn.config.settings import SmartTurnConfig

from tests.helpers import EventRecorder, ScriptedVAD


@pytest.fixture
def model_files(tmp_path):
    vad_path = tmp_path / "silero_vad.onnx"
    turn_path = tmp_path / "smart-turn-v3.2-cpu.onnx"
    vad_path.write_bytes(b"vad")
    turn_path.write_bytes(b"turn")
    return str(vad_path), str(turn_path)


@pytest.fixture
def make_config(model_files):
    """Factory for a valid config; keyword overrides replace single fields."""
    vad_path, turn_path = model_files

    def _make(**overrides):
        values = dict(
            sample_rate=16000,
            chunk_size=512,
            vad_threshold=0.5,
            vad_pre_speech_ms=200,
            vad_stop_ms=800,
            turn_max_duration_s=600,
            turn_segment_emit_ms=10000,
            turn_threshold=0.9,
            turn_timeout_ms=1000,
            silero_vad_model_path=vad_path,
            smart_turn_model_path=turn_path,
        )
        values.update(overrides)
        return SmartTurnConfig(**values)

    return _make


@pytest.fixture
def vad_model():
    return ScriptedVAD()


@pytest.fixture
def turn_model():
    model = MagicMock()
    model.infer.return_value = 0.95
    return model


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def mock_audio_data():
    """1 second of mock audio at 16kHz"""
    rng = np.random.default_rng(1234)
    return rng.standard_normal(16000).astype(np.float32) * 0.1
