"""
Configuration for PPG heart-rate estimation
"""
import math
from dataclasses import dataclass

from ppg_pipeline.errors import ConfigurationError

FRAME_RATE = 60  # validated default, fps
WINDOW_SECONDS = 10.0
WINDOW_OVERLAP_SECONDS = 1.0  # buffer advance while confidence is low
SETTLE_SECONDS = 3.0

# Estimates at or above this confidence count as a reading
MIN_CONFIDENCE = 0.5

# Lag search range for the Butterworth/alias-corrected method
MIN_HEART_RATE = 45.0
MAX_HEART_RATE = 210.0

# Lowest frame rate with filter coefficients
MIN_FRAME_RATE = 12

# Butterworth design used to build the coefficient table
BUTTERWORTH_ORDER = 7
LOWPASS_CUTOFF_HZ = 5.0
HIGHPASS_CUTOFF_HZ = 0.5

# 'bandpass' (live) or 'butterworth'
ESTIMATION_METHOD = 'bandpass'
ESTIMATION_METHODS = ('bandpass', 'butterworth')

# Ignore samples until a finger covers the lens
REQUIRE_LENS_COVERED = True

# Windows waiting for the compute thread; oldest is dropped past this
MAX_PENDING_WINDOWS = 4

# Warn when the measured frame rate drifts this far from the configured one
FRAME_RATE_TOLERANCE = 0.1

# Finger-on-lens heuristic (8-bit intensities)
LENS_RED_DOMINANCE = 1.5  # mean red over mean green/blue
LENS_MIN_RED = 40
LENS_MAX_STDDEV = 30.0  # spatial std of the green channel

# VO2 max markers start this long after the session starts
VO2_MAX_OFFSET_SECONDS = 30.0


@dataclass
class EngineConfig:
    frame_rate: int = FRAME_RATE
    window_seconds: float = WINDOW_SECONDS
    window_overlap_seconds: float = WINDOW_OVERLAP_SECONDS
    settle_seconds: float = SETTLE_SECONDS
    min_confidence: float = MIN_CONFIDENCE
    min_heart_rate: float = MIN_HEART_RATE
    max_heart_rate: float = MAX_HEART_RATE
    method: str = ESTIMATION_METHOD
    require_lens_covered: bool = REQUIRE_LENS_COVERED
    max_pending_windows: int = MAX_PENDING_WINDOWS

    @property
    def window_length(self):
        return int(math.floor(self.window_seconds * self.frame_rate + 0.5))

    @property
    def overlap_length(self):
        return int(math.floor(self.window_overlap_seconds * self.frame_rate + 0.5))

    def validate(self):
        if self.frame_rate <= 0:
            raise ConfigurationError(f"frame rate must be positive, got {self.frame_rate}")
        if self.window_seconds <= 0:
            raise ConfigurationError(f"window must be positive, got {self.window_seconds}s")
        if self.overlap_length <= 0:
            raise ConfigurationError("window overlap must cover at least one frame")
        if self.overlap_length > self.window_length:
            raise ConfigurationError("window overlap cannot exceed the window")
        if self.min_heart_rate <= 0 or self.min_heart_rate >= self.max_heart_rate:
            raise ConfigurationError(
                f"invalid heart rate range {self.min_heart_rate}-{self.max_heart_rate}")
        if self.method not in ESTIMATION_METHODS:
            raise ConfigurationError(f"unknown estimation method {self.method!r}")
        if self.max_pending_windows < 1:
            raise ConfigurationError("max_pending_windows must be at least 1")
        return self
