"""Smart-turn engine facade: validated config, inference sessions, worker lifecycle."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

import numpy as np

from .audio.inference import (
    SileroVADSession,
    SmartTurnSession,
    TurnCompletionModel,
    VoiceActivityModel,
    preload_runtime_library,
)
from .audio.pipeline import TurnPipeline
from .audio.types import CHUNK_SIZE, AudioChunk
from .audio.vad import VADResult
from .config.settings import SmartTurnConfig, require_valid
from .core.dispatcher import EventDispatcher
from .core.events import Callbacks, ListeningStarted, ListeningStopped
from .core.shutdown import GracefulShutdown, StopSignal
from .core.worker import QueueWorker
from .errors import ChunkRejectedError, EngineClosedError

logger = logging.getLogger(__name__)


class ChunkWorker(QueueWorker[AudioChunk]):
    """Drains the engine's chunk queue into the pipeline, one chunk at a time."""

    def __init__(
        self,
        engine: "SmartTurnEngine",
        stop_signal: StopSignal,
        chunks_queue: "queue.Queue[AudioChunk]",
    ):
        super().__init__(
            name="SmartTurnChunkThread",
            stop_signal=stop_signal,
            input_queue=chunks_queue,
            poll_interval_s=0.05,
        )
        self._engine = engine

    def handle(self, item: AudioChunk) -> None:
        self._engine._process(item.pcm)


class SmartTurnEngine:
    """
    Streaming speech segmentation and turn-completion detection.

    Feed 512-sample float32 chunks either synchronously with `process_chunk()`
    or, after `start()`, through the bounded queue with `push_chunk()`.
    Events are delivered through `Callbacks` in the order they occur.
    """

    def __init__(
        self,
        cfg: SmartTurnConfig,
        callbacks: Optional[Callbacks] = None,
        vad_model: Optional[VoiceActivityModel] = None,
        turn_model: Optional[TurnCompletionModel] = None,
        max_queued_chunks: int = 256,
    ):
        self._cfg = require_valid(cfg)
        self._dispatcher = EventDispatcher(callbacks or Callbacks())

        if vad_model is None or turn_model is None:
            preload_runtime_library(self._cfg.onnxruntime_lib_path)
        self._vad_model = vad_model or SileroVADSession(self._cfg.silero_vad_model_path)
        try:
            self._turn_model = turn_model or SmartTurnSession(self._cfg.smart_turn_model_path)
        except Exception:
            if vad_model is None:
                self._vad_model.close()
            raise

        self._pipeline = TurnPipeline(
            cfg=self._cfg,
            vad_model=self._vad_model,
            turn_model=self._turn_model,
            dispatcher=self._dispatcher,
        )
        self._chunks_queue: queue.Queue[AudioChunk] = queue.Queue(maxsize=max_queued_chunks)
        self._lifecycle_lock = threading.RLock()
        # At most one chunk (and so one inference call) in flight at a time
        self._process_lock = threading.Lock()
        self._local = threading.local()
        self._shutdown: Optional[GracefulShutdown] = None
        self._worker: Optional[ChunkWorker] = None
        self._next_index = 0
        self._closed = False
        logger.info("SmartTurnEngine ready")

    @property
    def config(self) -> SmartTurnConfig:
        return self._cfg

    @property
    def pipeline(self) -> TurnPipeline:
        return self._pipeline

    @property
    def running(self) -> bool:
        return self._worker is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start the worker thread and fire ListeningStarted."""
        with self._lifecycle_lock:
            if self._closed:
                raise EngineClosedError("engine is closed")
            if self._worker is not None:
                return
            self._clear_queue()
            self._shutdown = GracefulShutdown()
            self._worker = ChunkWorker(self, self._shutdown, self._chunks_queue)
            self._worker.start()
            logger.info("Listening started")
            self._dispatcher.emit(ListeningStarted())

    def stop(self) -> None:
        """
        Stop processing. Queued chunks and any in-flight segment are discarded
        without segment events; ListeningStopped is fired.
        """
        self._check_not_in_callback("stop()")
        with self._lifecycle_lock:
            if self._worker is None:
                return
            self._shutdown.stop()
            self._worker.join()
            self._worker = None
            self._shutdown = None
            self._clear_queue()
            with self._process_lock:
                self._pipeline.reset()
            logger.info("Listening stopped")
            self._dispatcher.emit(ListeningStopped())

    def close(self) -> None:
        """Stop if running and release the inference sessions. Idempotent."""
        self._check_not_in_callback("close()")
        with self._lifecycle_lock:
            if self._closed:
                return
            self.stop()
            self._closed = True
            self._vad_model.close()
            self._turn_model.close()
            logger.info("SmartTurnEngine closed")

    def __enter__(self) -> "SmartTurnEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def push_chunk(self, samples: np.ndarray, timeout: Optional[float] = None) -> None:
        """
        Queue one chunk for the worker. Blocks while the queue is full; with a
        `timeout`, raises ChunkRejectedError instead of dropping audio.
        """
        self._check_not_in_callback("push_chunk()")
        if self._closed:
            raise EngineClosedError("engine is closed")
        if self._worker is None:
            raise RuntimeError("engine is not started; call start() first")
        pcm = _as_chunk(samples)
        chunk = AudioChunk(pcm=pcm, index=self._next_index)
        try:
            self._chunks_queue.put(chunk, block=True, timeout=timeout)
        except queue.Full:
            logger.warning("Chunk queue full; rejecting chunk %d", chunk.index)
            raise ChunkRejectedError(
                f"chunk queue full ({self._chunks_queue.maxsize} chunks pending)"
            ) from None
        self._next_index += 1

    def process_chunk(self, samples: np.ndarray) -> VADResult:
        """Synchronously run one chunk through the pipeline (engine not started)."""
        if self._closed:
            raise EngineClosedError("engine is closed")
        if self._worker is not None:
            raise RuntimeError("engine is running; submit audio with push_chunk()")
        return self._process(_as_chunk(samples))

    def wait_until_processed(self) -> None:
        """Block until every queued chunk has been handled."""
        self._check_not_in_callback("wait_until_processed()")
        self._chunks_queue.join()

    def reset(self) -> None:
        """Return the pipeline to Idle without firing events."""
        self._check_not_in_callback("reset()")
        with self._process_lock:
            self._pipeline.reset()

    def _process(self, pcm: np.ndarray) -> VADResult:
        self._check_not_in_callback("submitting audio")
        with self._process_lock:
            self._local.processing = True
            try:
                return self._pipeline.process(pcm)
            finally:
                self._local.processing = False

    def _check_not_in_callback(self, what: str) -> None:
        # Callbacks run while this thread holds the process lock
        if getattr(self._local, "processing", False):
            raise RuntimeError(f"{what} cannot be called from inside an engine callback")

    def _clear_queue(self) -> None:
        while True:
            try:
                self._chunks_queue.get_nowait()
            except queue.Empty:
                return
            self._chunks_queue.task_done()


def _as_chunk(samples: np.ndarray) -> np.ndarray:
    pcm = np.asarray(samples, dtype=np.float32).reshape(-1)
    if len(pcm) != CHUNK_SIZE:
        raise ValueError(f"chunk must have exactly {CHUNK_SIZE} samples, got {len(pcm)}")
    return pcm
