"""Audio and callback fakes shared by the test modules."""

import numpy as np

from smart_turn.core.events import Callbacks

CHUNK = 512


def speech_chunk(value=0.3):
    """A 512-sample chunk of speech-like audio (500 Hz tone)."""
    t = np.arange(CHUNK) / 16000
    return (value * np.sin(2 * np.pi * 500 * t)).astype(np.float32)


def silence_chunk():
    return np.zeros(CHUNK, dtype=np.float32)


class ScriptedVAD:
    """Voice-activity model fake returning scripted probabilities in order."""

    def __init__(self, probs=None, default=0.0):
        self.probs = list(probs or [])
        self.default = default
        self.calls = 0
        self.resets = 0
        self.closed = 0

    def script(self, *runs):
        """Append runs of (probability, count)."""
        for prob, count in runs:
            self.probs.extend([prob] * count)

    def infer(self, chunk):
        self.calls += 1
        if self.probs:
            return self.probs.pop(0)
        return self.default

    def reset(self):
        self.resets += 1

    def close(self):
        self.closed += 1


class EventRecorder:
    """Collects callback invocations as (name, *args) tuples."""

    def __init__(self):
        self.events = []
        self.slices = []
        self.errors = []

    def callbacks(self):
        return Callbacks(
            on_listening_started=lambda: self.events.append(("listening_started",)),
            on_listening_stopped=lambda: self.events.append(("listening_stopped",)),
            on_speech_start=lambda: self.events.append(("speech_start",)),
            on_speech_end=lambda: self.events.append(("speech_end",)),
            on_turn_prediction=lambda complete, prob: self.events.append(("turn", complete, prob)),
            on_segment_ready=self._on_segment,
            on_error=self._on_error,
        )

    def _on_segment(self, samples):
        self.slices.append(samples)
        self.events.append(("segment", len(samples)))

    def _on_error(self, err):
        self.errors.append(err)
        self.events.append(("error", type(err).__name__))

    def names(self, include_segments=False):
        return [e[0] for e in self.events if include_segments or e[0] != "segment"]

