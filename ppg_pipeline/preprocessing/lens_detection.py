"""
Finger-on-lens detection for camera PPG
"""
import cv2

from ppg_pipeline.config import LENS_MAX_STDDEV, LENS_MIN_RED, LENS_RED_DOMINANCE


class LensDetector:
    """
    A fingertip over the lens (lit by the torch) gives a uniform,
    red-dominated frame. Anything else is treated as uncovered.
    """

    def __init__(self, red_dominance=LENS_RED_DOMINANCE, min_red=LENS_MIN_RED, max_stddev=LENS_MAX_STDDEV):
        self.red_dominance = red_dominance
        self.min_red = min_red
        self.max_stddev = max_stddev

    def is_covering_lens(self, frame, stats=None):
        if frame is None or frame.size == 0:
            return False
        mean, std = stats if stats is not None else cv2.meanStdDev(frame)
        blue, green, red = (float(v) for v in mean.ravel()[:3])
        if red < self.min_red:
            return False
        red_dominant = red >= self.red_dominance * max(green, blue, 1e-6)
        uniform = float(std.ravel()[1]) <= self.max_stddev
        return red_dominant and uniform
