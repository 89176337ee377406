"""Custom exceptions for the smart-turn engine."""


class SmartTurnError(Exception):
    """Base class for smart-turn errors."""


class ConfigError(SmartTurnError, ValueError):
    """Raised when configuration fails validation. Fatal at construction."""


class ResourceError(SmartTurnError):
    """Raised when a model file or the inference runtime cannot be loaded."""


class DownloadError(SmartTurnError):
    """Raised when a model or runtime download fails."""


class InferenceError(SmartTurnError):
    """Raised (and reported via on_error) when an inference call fails."""


class ChunkRejectedError(SmartTurnError):
    """Raised when a chunk cannot be queued because the engine is backed up."""


class EngineClosedError(SmartTurnError):
    """Raised when audio is submitted to a closed engine."""
