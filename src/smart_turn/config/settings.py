import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
from pydantic import BaseModel, Field, ConfigDict
from dotenv import load_dotenv
import logging

from ..errors import ConfigError

logger = logging.getLogger(__name__)

REQUIRED_SAMPLE_RATE = 16000
REQUIRED_CHUNK_SIZE = 512


class SmartTurnConfig(BaseModel):
    """Raw engine configuration. Every field is required; nothing is defaulted."""

    sample_rate: int = Field(..., description="Must be 16000")
    chunk_size: int = Field(..., description="Must be 512 (32 ms at 16 kHz)")
    vad_threshold: float = Field(..., description="Speech probability threshold, e.g. 0.5")
    vad_pre_speech_ms: int = Field(..., description="Audio kept before the speech trigger, e.g. 200")
    vad_stop_ms: int = Field(..., description="Trailing silence that ends VAD speech, e.g. 800")
    turn_max_duration_s: float = Field(..., description="Hard cap per turn in seconds, e.g. 600")
    turn_segment_emit_ms: int = Field(..., description="How often segment slices are emitted while speaking")
    turn_threshold: float = Field(..., description="Minimum Smart-Turn probability for a completed turn")
    turn_timeout_ms: int = Field(..., description="Silence after a skipped end before forcing speech end")
    silero_vad_model_path: str = Field(..., description="Path to silero_vad.onnx")
    smart_turn_model_path: str = Field(..., description="Path to smart-turn-v3.2-cpu.onnx")
    onnxruntime_lib_path: str = Field(default="", description="Optional ONNX Runtime shared library to preload")

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class ConfigValid:
    config: SmartTurnConfig


@dataclass(frozen=True)
class ConfigInvalid:
    field: str
    message: str


ConfigValidation = Union[ConfigValid, ConfigInvalid]


def _check_model_file(field: str, label: str, path: str) -> Optional[ConfigInvalid]:
    try:
        os.stat(path)
    except FileNotFoundError:
        return ConfigInvalid(field, f"config: {label} model file not found: {path}")
    except OSError as e:
        return ConfigInvalid(field, f"config: cannot access {label} model file {path}: {e}")
    return None


def validate_config(cfg: SmartTurnConfig) -> ConfigValidation:
    """Return ConfigValid, or ConfigInvalid for the first violated rule."""
    if cfg.sample_rate != REQUIRED_SAMPLE_RATE:
        return ConfigInvalid("sample_rate", f"config: sample_rate must be {REQUIRED_SAMPLE_RATE}")
    if cfg.chunk_size != REQUIRED_CHUNK_SIZE:
        return ConfigInvalid("chunk_size", f"config: chunk_size must be {REQUIRED_CHUNK_SIZE}")
    if not 0 <= cfg.vad_threshold <= 1:
        return ConfigInvalid("vad_threshold", "config: vad_threshold must be in [0, 1]")
    if cfg.vad_pre_speech_ms < 0:
        return ConfigInvalid("vad_pre_speech_ms", "config: vad_pre_speech_ms must be >= 0")
    if cfg.vad_stop_ms <= 0:
        return ConfigInvalid("vad_stop_ms", "config: vad_stop_ms must be > 0")
    if cfg.turn_max_duration_s <= 0:
        return ConfigInvalid("turn_max_duration_s", "config: turn_max_duration_s must be > 0")
    if cfg.turn_segment_emit_ms <= 0:
        return ConfigInvalid("turn_segment_emit_ms", "config: turn_segment_emit_ms must be > 0")
    if not 0 <= cfg.turn_threshold <= 1:
        return ConfigInvalid("turn_threshold", "config: turn_threshold must be in [0, 1]")
    if cfg.turn_timeout_ms <= 0:
        return ConfigInvalid("turn_timeout_ms", "config: turn_timeout_ms must be > 0")
    if not cfg.silero_vad_model_path:
        return ConfigInvalid("silero_vad_model_path", "config: silero_vad_model_path is required")
    if not cfg.smart_turn_model_path:
        return ConfigInvalid("smart_turn_model_path", "config: smart_turn_model_path is required")

    invalid = _check_model_file("silero_vad_model_path", "Silero VAD", cfg.silero_vad_model_path)
    if invalid is None:
        invalid = _check_model_file("smart_turn_model_path", "Smart-Turn", cfg.smart_turn_model_path)
    if invalid is not None:
        return invalid
    return ConfigValid(cfg)


def require_valid(cfg: SmartTurnConfig) -> SmartTurnConfig:
    result = validate_config(cfg)
    if isinstance(result, ConfigInvalid):
        raise ConfigError(result.message)
    return result.config


_ENV_FIELDS = {
    "sample_rate": "SMART_TURN_SAMPLE_RATE",
    "chunk_size": "SMART_TURN_CHUNK_SIZE",
    "vad_threshold": "SMART_TURN_VAD_THRESHOLD",
    "vad_pre_speech_ms": "SMART_TURN_VAD_PRE_SPEECH_MS",
    "vad_stop_ms": "SMART_TURN_VAD_STOP_MS",
    "turn_max_duration_s": "SMART_TURN_MAX_DURATION_S",
    "turn_segment_emit_ms": "SMART_TURN_SEGMENT_EMIT_MS",
    "turn_threshold": "SMART_TURN_THRESHOLD",
    "turn_timeout_ms": "SMART_TURN_TIMEOUT_MS",
    "silero_vad_model_path": "SMART_TURN_SILERO_VAD_MODEL_PATH",
    "smart_turn_model_path": "SMART_TURN_MODEL_PATH",
}


def load_config(config_path: Optional[Path] = None) -> SmartTurnConfig:
    if config_path is None:
        config_path = Path(".env")

    if config_path.exists():
        load_dotenv(config_path)
        logger.info(f"Loaded environment variables from {config_path}")
    else:
        logger.warning(f"Config file {config_path} not found, using environment variables only")

    values = {}
    for field_name, env_name in _ENV_FIELDS.items():
        value = os.getenv(env_name)
        if value is None or value == "":
            raise ConfigError(f"config: {env_name} is required but not set")
        values[field_name] = value
    values["onnxruntime_lib_path"] = os.getenv("ONNXRUNTIME_SHARED_LIBRARY_PATH", "")

    try:
        return SmartTurnConfig(**values)
    except ValueError as e:
        logger.error(f"Failed to load configuration: {e}")
        raise ConfigError(f"config: {e}") from e


def create_example_env_file(path: Path = Path(".env.example")):
    example_content = """# Stream format (fixed)
SMART_TURN_SAMPLE_RATE=16000
SMART_TURN_CHUNK_SIZE=512

# VAD: speech probability threshold, pre-speech lookback and stop debounce
SMART_TURN_VAD_THRESHOLD=0.75
SMART_TURN_VAD_PRE_SPEECH_MS=200
SMART_TURN_VAD_STOP_MS=800

# Turn: hard cap (seconds), slice cadence, completion threshold and timeout
SMART_TURN_MAX_DURATION_S=600
SMART_TURN_SEGMENT_EMIT_MS=1000
SMART_TURN_THRESHOLD=0.9
SMART_TURN_TIMEOUT_MS=1000

# Model files (see scripts/download_models.py)
SMART_TURN_SILERO_VAD_MODEL_PATH=models/silero_vad.onnx
SMART_TURN_MODEL_PATH=models/smart-turn-v3.2-cpu.onnx

# Optional: ONNX Runtime shared library to preload
ONNXRUNTIME_SHARED_LIBRARY_PATH=
"""

    with open(path, "w") as f:
        f.write(example_content)

    logger.info(f"Created example environment file at {path}")


def setup_logging(log_level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
