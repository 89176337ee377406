"""Resolve (and download when needed) model files and the ONNX Runtime library."""

from .download import (
    SILERO_VAD_NAME,
    SMART_TURN_NAME,
    download_file,
    resolve_onnxruntime_lib_with_download,
    resolve_silero_vad,
    resolve_smart_turn,
)
from .resolve import BUNDLED_LIB_DIR, DATA_DIR, MODELS_DIR, resolve_onnxruntime_lib

__all__ = [
    "BUNDLED_LIB_DIR",
    "DATA_DIR",
    "MODELS_DIR",
    "SILERO_VAD_NAME",
    "SMART_TURN_NAME",
    "download_file",
    "resolve_onnxruntime_lib",
    "resolve_onnxruntime_lib_with_download",
    "resolve_silero_vad",
    "resolve_smart_turn",
]
