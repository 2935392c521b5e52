"""
Switchable heart-rate estimation strategy
"""
import logging

from ppg_pipeline.config import EngineConfig
from ppg_pipeline.models import bandpass_acf, butterworth_acf
from ppg_pipeline.utils.filter_coefficients import FilterCoefficients

logger = logging.getLogger(__name__)


class PeriodicityEstimator:
    """Turns one channel of a window into a HeartRateEstimate.

    method='bandpass' is the live bandpass-FIR path; 'butterworth' is the
    alias-corrected alternative, which needs filter coefficients for the
    frame rate and a longer window.
    """

    def __init__(self, frame_rate, method='bandpass', window_seconds=10.0,
                 min_bpm=None, max_bpm=None, coefficients=None):
        self.frame_rate = frame_rate
        self.method = method
        self.window_seconds = window_seconds
        self.coefficients = coefficients
        if method == 'bandpass':
            self.min_bpm = bandpass_acf.MIN_BPM if min_bpm is None else min_bpm
            self.max_bpm = bandpass_acf.MAX_BPM if max_bpm is None else max_bpm
        elif method == 'butterworth':
            self.min_bpm = butterworth_acf.MIN_HEART_RATE if min_bpm is None else min_bpm
            self.max_bpm = butterworth_acf.MAX_HEART_RATE if max_bpm is None else max_bpm
            if coefficients is None:
                self.coefficients = FilterCoefficients.default()
        else:
            raise ValueError(f"unknown estimation method {method!r}")

    @classmethod
    def from_config(cls, config=None, coefficients=None):
        config = (config or EngineConfig()).validate()
        method = config.method
        if method == 'butterworth':
            if coefficients is None:
                coefficients = FilterCoefficients.default()
            if not coefficients.has_sampling_rate(config.frame_rate):
                logger.warning(
                    "No Butterworth coefficients for %d fps; falling back to the bandpass "
                    "method, heart rate accuracy may be degraded", config.frame_rate)
                method = 'bandpass'
        if method == 'bandpass':
            # never search outside the configured heart rate range
            return cls(config.frame_rate, 'bandpass', config.window_seconds,
                       min_bpm=max(bandpass_acf.MIN_BPM, config.min_heart_rate),
                       max_bpm=min(bandpass_acf.MAX_BPM, config.max_heart_rate))
        return cls(config.frame_rate, 'butterworth', config.window_seconds,
                   min_bpm=config.min_heart_rate, max_bpm=config.max_heart_rate,
                   coefficients=coefficients)

    @property
    def window_length(self):
        if self.method == 'butterworth':
            return butterworth_acf.window_length(self.frame_rate, self.window_seconds)
        return bandpass_acf.window_length(self.frame_rate, self.window_seconds)

    def estimate(self, channel):
        if self.method == 'butterworth':
            return butterworth_acf.butterworth_heart_rate(
                channel, self.frame_rate, self.min_bpm, self.max_bpm,
                window_seconds=self.window_seconds, coefficients=self.coefficients)
        return bandpass_acf.bandpass_heart_rate(channel, self.frame_rate, self.min_bpm, self.max_bpm)

    def __repr__(self):
        return (f"PeriodicityEstimator(method={self.method!r}, frame_rate={self.frame_rate}, "
                f"bpm={self.min_bpm}-{self.max_bpm})")
