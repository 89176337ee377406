import os

import pytest
from pydantic import ValidationError

from smart_turn.config.settings import (
    ConfigInvalid,
    ConfigValid,
    SmartTurnConfig,
    create_example_env_file,
    load_config,
    require_valid,
    validate_config,
)
from smart_turn.errors import ConfigError


class TestValidateConfig:
    def test_valid_config_with_existing_model_files(self, make_config):
        cfg = make_config()
        result = validate_config(cfg)
        assert isinstance(result, ConfigValid)
        assert result.config is cfg

    @pytest.mark.parametrize("overrides, field", [
        ({"sample_rate": 44100}, "sample_rate"),
        ({"chunk_size": 256}, "chunk_size"),
        ({"vad_threshold": 1.5}, "vad_threshold"),
        ({"vad_threshold": -0.1}, "vad_threshold"),
        ({"vad_pre_speech_ms": -1}, "vad_pre_speech_ms"),
        ({"vad_stop_ms": 0}, "vad_stop_ms"),
        ({"turn_max_duration_s": 0}, "turn_max_duration_s"),
        ({"turn_segment_emit_ms": -5}, "turn_segment_emit_ms"),
        ({"turn_threshold": 2.0}, "turn_threshold"),
        ({"turn_timeout_ms": 0}, "turn_timeout_ms"),
        ({"silero_vad_model_path": ""}, "silero_vad_model_path"),
        ({"smart_turn_model_path": ""}, "smart_turn_model_path"),
    ])
    def test_rejects_first_violation(self, make_config, overrides, field):
        result = validate_config(make_config(**overrides))
        assert isinstance(result, ConfigInvalid)
        assert result.field == field
        assert field in result.message

    def test_sample_rate_error_message(self, make_config):
        result = validate_config(make_config(sample_rate=44100))
        assert result.message == "config: sample_rate must be 16000"

    def test_stops_at_first_failure_in_fixed_order(self, make_config):
        result = validate_config(make_config(
            chunk_size=256, vad_threshold=1.5, turn_timeout_ms=0, sample_rate=8000,
        ))
        assert result.field == "sample_rate"

        result = validate_config(make_config(turn_timeout_ms=0, vad_threshold=1.5))
        assert result.field == "vad_threshold"

    def test_boundary_thresholds_are_valid(self, make_config):
        assert isinstance(validate_config(make_config(vad_threshold=0.0, turn_threshold=1.0)), ConfigValid)
        assert isinstance(validate_config(make_config(vad_pre_speech_ms=0)), ConfigValid)

    def test_missing_model_file(self, make_config, tmp_path):
        missing = str(tmp_path / "nope.onnx")
        result = validate_config(make_config(silero_vad_model_path=missing))
        assert result.field == "silero_vad_model_path"
        assert "not found" in result.message

        result = validate_config(make_config(smart_turn_model_path=missing))
        assert result.field == "smart_turn_model_path"

    def test_empty_path_checked_before_existence(self, make_config, tmp_path):
        result = validate_config(make_config(
            silero_vad_model_path=str(tmp_path / "nope.onnx"),
            smart_turn_model_path="",
        ))
        assert result.field == "smart_turn_model_path"
        assert "required" in result.message

    def test_require_valid_raises_config_error(self, make_config):
        with pytest.raises(ConfigError, match="chunk_size"):
            require_valid(make_config(chunk_size=256))
        cfg = make_config()
        assert require_valid(cfg) is cfg


class TestSmartTurnConfig:
    def test_all_fields_required(self):
        with pytest.raises(ValidationError):
            SmartTurnConfig(sample_rate=16000, chunk_size=512)

    def test_frozen(self, make_config):
        cfg = make_config()
        with pytest.raises(ValidationError):
            cfg.vad_threshold = 0.1

    def test_runtime_lib_path_is_optional(self, make_config):
        assert make_config().onnxruntime_lib_path == ""


ENV = {
    "SMART_TURN_SAMPLE_RATE": "16000",
    "SMART_TURN_CHUNK_SIZE": "512",
    "SMART_TURN_VAD_THRESHOLD": "0.75",
    "SMART_TURN_VAD_PRE_SPEECH_MS": "200",
    "SMART_TURN_VAD_STOP_MS": "800",
    "SMART_TURN_MAX_DURATION_S": "600",
    "SMART_TURN_SEGMENT_EMIT_MS": "1000",
    "SMART_TURN_THRESHOLD": "0.9",
    "SMART_TURN_TIMEOUT_MS": "1000",
}


class TestLoadConfig:
    @pytest.fixture
    def env(self, monkeypatch, model_files):
        vad_path, turn_path = model_files
        for key, value in ENV.items():
            monkeypatch.setenv(key, value)
        monkeypatch.setenv("SMART_TURN_SILERO_VAD_MODEL_PATH", vad_path)
        monkeypatch.setenv("SMART_TURN_MODEL_PATH", turn_path)
        monkeypatch.delenv("ONNXRUNTIME_SHARED_LIBRARY_PATH", raising=False)

    def test_load_config_from_env(self, env, tmp_path):
        cfg = load_config(tmp_path / "missing.env")
        assert cfg.sample_rate == 16000
        assert cfg.vad_threshold == 0.75
        assert cfg.turn_segment_emit_ms == 1000
        assert cfg.onnxruntime_lib_path == ""
        assert isinstance(validate_config(cfg), ConfigValid)

    def test_missing_variable_has_no_default(self, env, monkeypatch, tmp_path):
        monkeypatch.delenv("SMART_TURN_TIMEOUT_MS")
        with pytest.raises(ConfigError, match="SMART_TURN_TIMEOUT_MS"):
            load_config(tmp_path / "missing.env")

    def test_unparseable_value(self, env, monkeypatch, tmp_path):
        monkeypatch.setenv("SMART_TURN_VAD_STOP_MS", "soon")
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.env")

    def test_config_from_env_file(self, env, monkeypatch, tmp_path):
        monkeypatch.delenv("SMART_TURN_THRESHOLD")
        env_file = tmp_path / "test.env"
        env_file.write_text("SMART_TURN_THRESHOLD=0.6\n")
        try:
            cfg = load_config(env_file)
            assert cfg.turn_threshold == 0.6
        finally:
            os.environ.pop("SMART_TURN_THRESHOLD", None)

    def test_example_env_file_lists_every_variable(self, tmp_path):
        path = tmp_path / ".env.example"
        create_example_env_file(path)
        content = path.read_text()
        for key in list(ENV) + ["SMART_TURN_SILERO_VAD_MODEL_PATH", "SMART_TURN_MODEL_PATH"]:
            assert f"{key}=" in content
