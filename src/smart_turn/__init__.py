"""Streaming speech segmentation and turn-completion detection for voice agents."""

from .config.settings import SmartTurnConfig, load_config, validate_config
from .core.events import Callbacks
from .engine import SmartTurnEngine
from .errors import (
    ChunkRejectedError,
    ConfigError,
    DownloadError,
    EngineClosedError,
    InferenceError,
    ResourceError,
    SmartTurnError,
)

__version__ = "0.1.0"

__all__ = [
    "Callbacks",
    "ChunkRejectedError",
    "ConfigError",
    "DownloadError",
    "EngineClosedError",
    "InferenceError",
    "ResourceError",
    "SmartTurnConfig",
    "SmartTurnEngine",
    "SmartTurnError",
    "load_config",
    "validate_config",
]
