import pytest

from conftest import make_samples
from ppg_pipeline.pipeline.samples import PixelSample
from ppg_pipeline.pipeline.window_buffer import WindowBuffer, estimate_sampling_rate


def feed(buffer, samples, last_confidence=None):
    windows = []
    for i, s in enumerate(samples):
        window = buffer.append(s, last_confidence)
        if window is not None:
            windows.append((i, window))
    return windows


def ramp(n, fs=10, covering=True):
    values = [float(i) for i in range(n)]
    return make_samples(values, values, fs=fs, covering=covering)


class TestWindowBuffer:

    def test_first_window_after_window_length_samples(self):
        buffer = WindowBuffer(10, 2)
        windows = feed(buffer, ramp(10))
        assert len(windows) == 1
        index, window = windows[0]
        assert index == 9
        assert len(window) == 10
        assert [s.red for s in window] == [float(i) for i in range(10)]

    def test_low_confidence_advances_by_overlap(self):
        buffer = WindowBuffer(10, 2)
        windows = feed(buffer, ramp(20), last_confidence=0.1)
        assert [i for i, _ in windows] == [9, 11, 13, 15, 17, 19]
        assert windows[1][1][0].red == 2.0

    def test_no_previous_estimate_counts_as_low_confidence(self):
        buffer = WindowBuffer(10, 2)
        assert buffer.retention_drop(None) == 2

    def test_high_confidence_advances_by_half_window(self):
        buffer = WindowBuffer(10, 2, min_confidence=0.5)
        windows = feed(buffer, ramp(20), last_confidence=0.5)
        assert [i for i, _ in windows] == [9, 14, 19]
        assert windows[1][1][0].red == 5.0

    def test_windows_are_time_ordered(self):
        buffer = WindowBuffer(10, 3)
        for _, window in feed(buffer, ramp(40)):
            stamps = [s.presentation_timestamp for s in window]
            assert stamps == sorted(stamps)
            assert len(window) == 10

    def test_backlog_stays_bounded(self):
        buffer = WindowBuffer(10, 2)
        feed(buffer, ramp(100))
        assert len(buffer) < 10
        assert buffer.windows_emitted == 46

    def test_ignores_uncovered_samples_until_lens_covered(self):
        buffer = WindowBuffer(10, 2)
        assert feed(buffer, ramp(5, covering=False)) == []
        assert len(buffer) == 0
        buffer.append(PixelSample(1.0, 1.0, 1.0, 1.0, True))
        buffer.append(PixelSample(1.1, 1.0, 1.0, 1.0, False))
        assert len(buffer) == 2

    def test_uncovered_samples_kept_when_not_required(self):
        buffer = WindowBuffer(10, 2, require_lens_covered=False)
        assert len(feed(buffer, ramp(10, covering=False))) == 1

    def test_clear(self):
        buffer = WindowBuffer(10, 2)
        feed(buffer, ramp(7))
        buffer.clear()
        assert len(buffer) == 0
        assert feed(buffer, ramp(9)) == []

    @pytest.mark.parametrize("window_length,overlap_length", [(1, 1), (10, 0), (10, 11)])
    def test_rejects_invalid_lengths(self, window_length, overlap_length):
        with pytest.raises(ValueError):
            WindowBuffer(window_length, overlap_length)


class TestEstimateSamplingRate:

    def test_uniform_rate(self):
        assert estimate_sampling_rate(ramp(61, fs=30)) == pytest.approx(61 / 2.0)

    def test_starts_at_first_covered_sample(self):
        samples = ramp(5, covering=False) + make_samples(range(11), range(11), fs=10, start=0.5)
        assert estimate_sampling_rate(samples) == pytest.approx(11 / 1.0)

    def test_degenerate(self):
        assert estimate_sampling_rate(ramp(5, covering=False)) is None
        assert estimate_sampling_rate(ramp(1)) is None
