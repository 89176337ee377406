"""ONNX inference sessions for voice activity and turn completion."""

from __future__ import annotations

import ctypes
import logging
import threading
from pathlib import Path
from typing import Optional, Protocol

import numpy as np
import onnxruntime as ort
import torch
from silero_vad.utils_vad import OnnxWrapper

from ..errors import InferenceError, ResourceError
from .types import CHUNK_SIZE, SAMPLE_RATE

logger = logging.getLogger(__name__)

_preloaded_libs: dict = {}
_preload_lock = threading.Lock()


def as_inference_error(e: Exception, what: str) -> InferenceError:
    if isinstance(e, InferenceError):
        return e
    err = InferenceError(f"{what} failed: {e}")
    err.__cause__ = e
    return err


class VoiceActivityModel(Protocol):
    def infer(self, chunk: np.ndarray) -> float: ...

    def reset(self) -> None: ...

    def close(self) -> None: ...


class TurnCompletionModel(Protocol):
    def infer(self, features: np.ndarray) -> float: ...

    def close(self) -> None: ...


def preload_runtime_library(lib_path: Optional[str]) -> None:
    """
    Load the ONNX Runtime shared library from an explicit path before any
    session is created. An empty path keeps the runtime bundled with the
    onnxruntime wheel.
    """
    if not lib_path:
        return
    resolved = str(Path(lib_path).resolve())
    with _preload_lock:
        if resolved in _preloaded_libs:
            return
        if not Path(resolved).exists():
            raise ResourceError(f"ONNX Runtime library not found: {lib_path}")
        try:
            _preloaded_libs[resolved] = ctypes.CDLL(resolved)
        except OSError as e:
            raise ResourceError(f"Failed to load ONNX Runtime library {lib_path}: {e}") from e
        logger.info("Preloaded ONNX Runtime library from %s", resolved)


class SileroVADSession:
    """
    Silero VAD (ONNX) speech probability for one 512-sample chunk at 16 kHz.

    The model is recurrent; state carries across calls until `reset()`.
    """

    def __init__(self, model_path: str):
        try:
            self._model = OnnxWrapper(str(model_path), force_onnx_cpu=True)
        except Exception as e:
            raise ResourceError(f"Failed to load Silero VAD model {model_path}: {e}") from e
        self._model_path = model_path
        logger.info("SileroVADSession loaded model from %s", model_path)

    def infer(self, chunk: np.ndarray) -> float:
        if self._model is None:
            raise InferenceError("Silero VAD session is closed")
        if len(chunk) != CHUNK_SIZE:
            raise InferenceError(f"Silero VAD expects {CHUNK_SIZE} samples, got {len(chunk)}")
        try:
            x = torch.from_numpy(np.ascontiguousarray(chunk, dtype=np.float32))
            prob = self._model(x, SAMPLE_RATE)
            return float(prob.item())
        except Exception as e:
            raise InferenceError(f"Silero VAD inference failed: {e}") from e

    def reset(self) -> None:
        if self._model is not None:
            self._model.reset_states()

    def close(self) -> None:
        self._model = None


class SmartTurnSession:
    """Smart-Turn v3 classifier: (80, 800) log-mel features -> completion probability."""

    def __init__(self, model_path: str, num_threads: int = 1):
        try:
            options = ort.SessionOptions()
            options.intra_op_num_threads = num_threads
            options.inter_op_num_threads = 1
            self._session = ort.InferenceSession(
                str(model_path),
                sess_options=options,
                providers=["CPUExecutionProvider"],
            )
        except Exception as e:
            raise ResourceError(f"Failed to load Smart-Turn model {model_path}: {e}") from e
        self._input_name = self._session.get_inputs()[0].name
        logger.info("SmartTurnSession loaded model from %s (input=%s)", model_path, self._input_name)

    def infer(self, features: np.ndarray) -> float:
        if self._session is None:
            raise InferenceError("Smart-Turn session is closed")
        tensor = np.asarray(features, dtype=np.float32).reshape(1, 80, 800)
        try:
            outputs = self._session.run(None, {self._input_name: tensor})
        except Exception as e:
            raise InferenceError(f"Smart-Turn inference failed: {e}") from e
        prob = float(np.asarray(outputs[0]).reshape(-1)[0])
        return min(1.0, max(0.0, prob))

    def close(self) -> None:
        self._session = None
