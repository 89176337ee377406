"""Microphone audio capture feeding the engine."""

from __future__ import annotations

import queue
import threading
import logging
from typing import TYPE_CHECKING, Optional

import numpy as np
import sounddevice as sd

from ..core.shutdown import StopSignal
from ..errors import ChunkRejectedError, EngineClosedError
from .types import CHUNK_SIZE, SAMPLE_RATE

if TYPE_CHECKING:
    from ..engine import SmartTurnEngine

logger = logging.getLogger(__name__)


class Mic(threading.Thread):
    """
    Captures 512-sample mono float32 blocks and hands them to the engine.

    The sounddevice callback only copies audio into a local queue; a blocking
    push into the engine happens on this thread, so engine backpressure slows
    capture down instead of dropping chunks silently.
    """

    def __init__(
        self,
        stop_signal: StopSignal,
        engine: "SmartTurnEngine",
        device: Optional[int] = None,
        push_timeout_s: float = 1.0,
    ):
        super().__init__(name="MicThread", daemon=True)
        self._stop_signal = stop_signal
        self._engine = engine
        self._device = device
        self._push_timeout_s = push_timeout_s
        self._blocks: queue.Queue[np.ndarray] = queue.Queue()

    def run(self) -> None:
        """Start microphone capture loop."""

        def audio_callback(indata, frames, time_info, status):
            if status:
                logger.warning(f"Audio callback status: {status}")
            # indata shape is (frames, channels), we take first channel
            self._blocks.put(indata[:, 0].astype(np.float32, copy=True))

        try:
            with sd.InputStream(
                callback=audio_callback,
                samplerate=SAMPLE_RATE,
                channels=1,
                blocksize=CHUNK_SIZE,
                dtype="float32",
                device=self._device,
            ):
                while not self._stop_signal.is_set():
                    try:
                        block = self._blocks.get(timeout=0.1)
                    except queue.Empty:
                        continue
                    if len(block) != CHUNK_SIZE:
                        logger.warning(f"Skipping short audio block of {len(block)} samples")
                        continue
                    try:
                        self._engine.push_chunk(block, timeout=self._push_timeout_s)
                    except ChunkRejectedError as e:
                        logger.error(f"Engine backed up, chunk rejected: {e}")
                    except EngineClosedError:
                        break
        except Exception as e:
            logger.error(f"Error in microphone capture: {e}", exc_info=True)
        finally:
            logger.info("Microphone capture stopped")
