"""
Frame -> PixelSample reduction
"""
import cv2

from ppg_pipeline.pipeline.samples import PixelSample


def frame_to_pixel_sample(frame, timestamp, lens_detector=None):
    """Average an OpenCV BGR frame into one PixelSample."""
    if frame is None or frame.size == 0:
        return None
    mean, std = cv2.meanStdDev(frame)
    blue, green, red = (float(v) for v in mean.ravel()[:3])
    covering = lens_detector.is_covering_lens(frame, (mean, std)) if lens_detector is not None else True
    return PixelSample(float(timestamp), red, green, blue, covering)
