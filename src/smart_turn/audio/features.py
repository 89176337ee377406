"""Whisper-style log-mel features for the turn-completion classifier.

Produces an (80, 800) float32 log-mel spectrogram of the last 8 seconds of
audio, following the preprocessing the Smart-Turn model was trained with:

- 16 kHz, 8 s window (keep the last 8 s, or left-pad with zeros)
- zero-mean / unit-variance normalization of the unpadded samples
- 400-sample Hann frames, hop 160, power spectrum normalized by N^2
- 80 triangular mel bands over 0-8000 Hz
- log10, then global dynamic range compression:
  ``(max(x, x.max() - 8) + 4) / 4``
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Tuple

import numpy as np

from .types import SAMPLE_RATE

logger = logging.getLogger(__name__)

N_FFT = 400
HOP_LENGTH = 160
N_MELS = 80
N_BINS = N_FFT // 2 + 1
WINDOW_SAMPLES = 8 * SAMPLE_RATE  # 128000
N_FRAMES = 800

VARIANCE_FLOOR = 1e-7
MEL_FLOOR = 1e-10
DYNAMIC_RANGE = 8.0


def hz_to_mel(hz):
    return 2595.0 * np.log10(1.0 + np.asarray(hz, dtype=np.float64) / 700.0)


def mel_to_hz(mel):
    return 700.0 * (np.power(10.0, np.asarray(mel, dtype=np.float64) / 2595.0) - 1.0)


def _build_mel_filterbank(n_mels: int, n_bins: int) -> np.ndarray:
    low_mel = hz_to_mel(0.0)
    high_mel = hz_to_mel(SAMPLE_RATE / 2)
    mel_points = low_mel + (high_mel - low_mel) * np.arange(n_mels + 2, dtype=np.float64) / (n_mels + 1)
    hz_points = mel_to_hz(mel_points)
    bin_freq = np.arange(n_bins, dtype=np.float64) * SAMPLE_RATE / (2 * (n_bins - 1))

    filters = np.zeros((n_mels, n_bins), dtype=np.float64)
    for m in range(n_mels):
        left, center, right = hz_points[m], hz_points[m + 1], hz_points[m + 2]
        rising = (bin_freq >= left) & (bin_freq <= center)
        falling = (bin_freq > center) & (bin_freq <= right)
        filters[m, rising] = (bin_freq[rising] - left) / (center - left)
        filters[m, falling] = (right - bin_freq[falling]) / (right - center)
    return filters.astype(np.float32)


class MelFilterbankCache:
    """
    Process-wide cache of mel filterbanks keyed by (n_mels, n_bins).

    Entries are built once under a lock and stored read-only, so concurrent
    first use from several engines builds a single instance.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._filters: Dict[Tuple[int, int], np.ndarray] = {}

    def get(self, n_mels: int = N_MELS, n_bins: int = N_BINS) -> np.ndarray:
        key = (n_mels, n_bins)
        filters = self._filters.get(key)
        if filters is not None:
            return filters
        with self._lock:
            filters = self._filters.get(key)
            if filters is None:
                filters = _build_mel_filterbank(n_mels, n_bins)
                filters.setflags(write=False)
                self._filters[key] = filters
                logger.debug("Built mel filterbank n_mels=%d n_bins=%d", n_mels, n_bins)
            return filters

    def clear(self) -> None:
        with self._lock:
            self._filters.clear()


mel_filterbank_cache = MelFilterbankCache()


def _hann_window(n: int) -> np.ndarray:
    i = np.arange(n, dtype=np.float64)
    return (0.5 * (1.0 - np.cos(2.0 * np.pi * i / n))).astype(np.float32)


def _dft_basis(n: int) -> Tuple[np.ndarray, np.ndarray]:
    k = np.arange(n // 2 + 1, dtype=np.float64)
    i = np.arange(n, dtype=np.float64)
    angle = -2.0 * np.pi * np.outer(i, k) / n
    return np.cos(angle), np.sin(angle)


_WINDOW = _hann_window(N_FFT)
_DFT_COS, _DFT_SIN = _dft_basis(N_FFT)
for _arr in (_WINDOW, _DFT_COS, _DFT_SIN):
    _arr.setflags(write=False)


def normalize_and_pad(audio: np.ndarray) -> np.ndarray:
    """
    Keep the last 8 s of `audio`, normalize it and right-align it in a
    zero-filled 128000-sample buffer.
    """
    audio = np.asarray(audio, dtype=np.float32).reshape(-1)
    if len(audio) > WINDOW_SAMPLES:
        audio = audio[-WINDOW_SAMPLES:]

    samples = audio.astype(np.float64)
    mean = samples.mean()
    variance = np.mean((samples - mean) ** 2)
    if variance < VARIANCE_FLOOR:
        variance = VARIANCE_FLOOR
    scale = 1.0 / np.sqrt(variance)

    padded = np.zeros(WINDOW_SAMPLES, dtype=np.float32)
    padded[WINDOW_SAMPLES - len(samples):] = ((samples - mean) * scale).astype(np.float32)
    return padded


def log_mel_from_padded(padded: np.ndarray) -> np.ndarray:
    """Compute the compressed (80, 800) log-mel matrix of a full 8 s window."""
    padded = np.asarray(padded, dtype=np.float32)
    if padded.shape != (WINDOW_SAMPLES,):
        raise ValueError(
            f"expected a {WINDOW_SAMPLES}-sample window, got shape {padded.shape}"
        )

    # The last frames read past the window end; they see zeros there.
    extended = np.concatenate([padded, np.zeros(N_FFT - HOP_LENGTH, dtype=np.float32)])
    starts = np.arange(N_FRAMES) * HOP_LENGTH
    frames = extended[starts[:, None] + np.arange(N_FFT)[None, :]] * _WINDOW

    frames64 = frames.astype(np.float64)
    re = frames64 @ _DFT_COS
    im = frames64 @ _DFT_SIN
    power = ((re * re + im * im) / float(N_FFT * N_FFT)).astype(np.float32)

    filters = mel_filterbank_cache.get(N_MELS, N_BINS)
    mel_energy = power @ filters.T
    mel_energy = np.maximum(mel_energy, np.float32(MEL_FLOOR))

    mel = np.log10(mel_energy.astype(np.float64)).astype(np.float32).T

    floor = np.float32(mel.max() - np.float32(DYNAMIC_RANGE))
    mel = np.maximum(mel, floor)
    return (mel + np.float32(4.0)) / np.float32(4.0)


def compute_log_mel(audio: np.ndarray) -> np.ndarray:
    """
    Convert mono 16 kHz audio to Smart-Turn input features of shape (80, 800).

    Zero-length input yields an empty array rather than an error.
    """
    audio = np.asarray(audio, dtype=np.float32).reshape(-1)
    if audio.size == 0:
        return np.empty(0, dtype=np.float32)
    return log_mel_from_padded(normalize_and_pad(audio))
