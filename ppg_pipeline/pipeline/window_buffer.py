"""
Confidence-gated sliding window over incoming pixel samples
"""
import logging

logger = logging.getLogger(__name__)


def estimate_sampling_rate(samples):
    """Frames per second from the first lens-covered sample to the last, or None."""
    start = next((i for i, s in enumerate(samples) if s.is_covering_lens), None)
    if start is None:
        return None
    duration = samples[-1].presentation_timestamp - samples[start].presentation_timestamp
    if duration <= 0:
        return None
    return (len(samples) - start) / duration


class WindowBuffer:
    """
    Accumulates samples and hands out a window every time window_length
    samples are available. After each window the oldest samples are dropped:
    half a window if the previous estimate was confident, otherwise only
    overlap_length samples, so a weak signal is retried on mostly the same data.

    Not thread-safe; the session confines it to a single thread.
    """

    def __init__(self, window_length, overlap_length, min_confidence=0.5, require_lens_covered=True):
        if window_length < 2:
            raise ValueError(f"window_length must be at least 2, got {window_length}")
        if not 0 < overlap_length <= window_length:
            raise ValueError(f"overlap_length must be in 1..{window_length}, got {overlap_length}")
        self.window_length = window_length
        self.overlap_length = overlap_length
        self.min_confidence = min_confidence
        self.require_lens_covered = require_lens_covered
        self.backlog = []
        self.windows_emitted = 0

    def __len__(self):
        return len(self.backlog)

    def clear(self):
        self.backlog = []

    def retention_drop(self, last_confidence):
        if last_confidence is not None and last_confidence >= self.min_confidence:
            return self.window_length // 2
        return self.overlap_length

    def append(self, sample, last_confidence=None):
        """Add a sample; returns the window to estimate, or None."""
        if self.require_lens_covered and not self.backlog and not sample.is_covering_lens:
            return None
        self.backlog.append(sample)
        if len(self.backlog) < self.window_length:
            return None

        window = self.backlog[-self.window_length:]
        del self.backlog[:self.retention_drop(last_confidence)]
        self.windows_emitted += 1
        return window
