"""
Camera and video IO using OpenCV, feeding a heart rate session
"""
import logging
import time

import cv2

from ppg_pipeline.preprocessing.pixel_sampling import frame_to_pixel_sample

logger = logging.getLogger(__name__)


class CameraIO:
    def __init__(self, source=0, frame_rate=None):
        self.source = source
        self.is_file = isinstance(source, str)
        self.cap = cv2.VideoCapture(source)
        if frame_rate and not self.is_file:
            self.cap.set(cv2.CAP_PROP_FPS, frame_rate)

    def is_opened(self):
        return self.cap.isOpened()

    @property
    def frame_rate(self):
        fps = self.cap.get(cv2.CAP_PROP_FPS)
        if not fps or fps != fps or fps < 1:
            return None
        return fps

    def read(self):
        ret, frame = self.cap.read()
        return ret, frame

    def timestamp(self):
        """Presentation time in seconds: stream position for files, monotonic clock otherwise."""
        if self.is_file:
            return self.cap.get(cv2.CAP_PROP_POS_MSEC) / 1000.0
        return time.monotonic()

    def release(self):
        self.cap.release()


def capture_loop(camera, session, stop_event, lens_detector=None, on_frame=None):
    """Read frames until the stream ends or stop_event is set; returns the frame count."""
    count = 0
    while not stop_event.is_set():
        ret, frame = camera.read()
        if not ret:
            if camera.is_file:
                break
            time.sleep(0.01)
            continue
        sample = frame_to_pixel_sample(frame, camera.timestamp(), lens_detector)
        if sample is None:
            continue
        if not session.submit(sample):
            break
        count += 1
        if on_frame is not None and on_frame(frame, sample) is False:
            break
    logger.info("Capture finished after %d frames", count)
    return count
