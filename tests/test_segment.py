"""Tests for speech segment accumulation and slice emission."""

import numpy as np

from smart_turn.audio.segment import SpeechSegment


def chunk(value):
    return np.full(512, value, dtype=np.float32)


def make_segment(pre_speech=(), emit_samples=1024, max_samples=16000):
    return SpeechSegment(
        pre_speech=list(pre_speech),
        sample_rate=16000,
        emit_samples=emit_samples,
        max_samples=max_samples,
    )


class TestSpeechSegment:
    def test_pre_speech_is_part_of_audio(self):
        seg = make_segment(pre_speech=[chunk(1), chunk(2)])
        seg.append(chunk(3))
        audio = seg.audio()
        assert len(audio) == 3 * 512
        assert audio[0] == 1 and audio[512] == 2 and audio[-1] == 3
        assert seg.speech_samples == 512

    def test_cadence_slices_do_not_overlap(self):
        seg = make_segment(emit_samples=1024)
        seg.append(chunk(1))
        assert seg.due_slice() is None

        seg.append(chunk(2))
        first = seg.due_slice()
        assert first is not None and len(first) == 1024
        assert seg.due_slice() is None

        seg.append(chunk(3))
        seg.append(chunk(4))
        second = seg.due_slice()
        assert len(second) == 1024
        assert second[0] == 3
        assert np.array_equal(np.concatenate([first, second]), seg.audio())

    def test_slices_have_exactly_cadence_size(self):
        seg = make_segment(emit_samples=1000)
        seg.append(chunk(1))
        seg.append(chunk(2))
        first = seg.due_slice()
        assert len(first) == 1000
        assert seg.due_slice() is None

        seg.append(chunk(3))
        seg.append(chunk(4))
        second = seg.due_slice()
        assert len(second) == 1000
        assert seg.emitted_samples == 2000

        tail = seg.tail()
        assert len(tail) == 48
        assert np.array_equal(np.concatenate([first, second, tail]), seg.audio())

    def test_several_slices_due_after_one_append(self):
        seg = make_segment(emit_samples=200)
        seg.append(chunk(1))
        slices = []
        piece = seg.due_slice()
        while piece is not None:
            slices.append(piece)
            piece = seg.due_slice()
        assert [len(s) for s in slices] == [200, 200]
        assert len(seg.tail()) == 112

    def test_tail_returns_residual_once(self):
        seg = make_segment(emit_samples=1024)
        for v in range(3):
            seg.append(chunk(v))
        seg.due_slice()
        tail = seg.tail()
        assert len(tail) == 512
        assert tail[0] == 2
        assert seg.tail() is None
        assert seg.emitted_samples == seg.num_samples

    def test_slices_are_copies(self):
        seg = make_segment(emit_samples=512)
        seg.append(chunk(1))
        piece = seg.due_slice()
        piece[:] = 99
        assert seg.audio()[0] == 1

    def test_hard_cap_excludes_pre_speech(self):
        seg = make_segment(pre_speech=[chunk(0)] * 10, max_samples=2048)
        for _ in range(3):
            seg.append(chunk(1))
        assert not seg.over_limit
        seg.append(chunk(1))
        assert seg.over_limit
        assert seg.elapsed_s == 2048 / 16000

    def test_empty_segment(self):
        seg = make_segment()
        assert seg.audio().size == 0
        assert seg.tail() is None
