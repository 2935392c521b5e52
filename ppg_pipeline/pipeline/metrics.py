"""
Summaries over a BPM sample series: resting, peak, end and VO2 max
"""
from enum import Enum

import numpy as np

from ppg_pipeline.config import MIN_CONFIDENCE, VO2_MAX_OFFSET_SECONDS
from ppg_pipeline.pipeline.samples import BpmSample


class Sex(str, Enum):
    FEMALE = 'female'
    MALE = 'male'
    OTHER = 'other'


def high_confidence(samples, min_confidence=MIN_CONFIDENCE):
    return [s for s in samples if s.confidence >= min_confidence]


def resting_heart_rate(samples, min_confidence=MIN_CONFIDENCE, timestamp=None):
    """Mean bpm and confidence of the confident samples.

    When none are confident this falls back to the samples with a reading
    rather than to all of them: a bpm of 0 means "no signal" and would drag
    the mean down. The result is stamped with `timestamp` (the session
    start), or the first sample's timestamp when that is not given.
    """
    selected = high_confidence(samples, min_confidence)
    if not selected:
        selected = [s for s in samples if s.bpm > 0]
    if not selected:
        return None
    bpm = float(np.mean([s.bpm for s in selected]))
    confidence = float(np.mean([s.confidence for s in selected]))
    if timestamp is None:
        timestamp = samples[0].timestamp
    return BpmSample(timestamp, bpm, confidence)


def peak_heart_rate(samples, min_confidence=MIN_CONFIDENCE):
    selected = high_confidence(samples, min_confidence)
    return selected[0] if selected else None


def end_heart_rate(samples, min_confidence=MIN_CONFIDENCE):
    selected = high_confidence(samples, min_confidence)
    return selected[-1] if selected else None


def _after(samples, start_time, min_confidence):
    return [s for s in high_confidence(samples, min_confidence)
            if (s.timestamp or 0) >= start_time]


def vo2_max_window(samples, start_time, min_confidence=MIN_CONFIDENCE, offset=VO2_MAX_OFFSET_SECONDS):
    """First and last confident samples at least `offset` seconds after start."""
    selected = _after(samples, start_time + offset, min_confidence)
    if len(selected) < 2:
        return None
    return selected[0], selected[-1]


def vo2_max(samples, sex, age, start_time, min_confidence=MIN_CONFIDENCE):
    """VO2 max (ml/kg/min) from the mean recovery heart rate after start_time."""
    selected = _after(samples, start_time, min_confidence)
    if len(selected) < 2:
        return None
    beats_30_to_60 = float(np.mean([s.bpm for s in selected])) / 2
    sex = Sex(sex)
    if sex is Sex.FEMALE:
        return 83.477 - (0.586 * beats_30_to_60) - (0.404 * age) - 7.030
    if sex is Sex.MALE:
        return 83.477 - (0.586 * beats_30_to_60) - (0.404 * age)
    return 84.687 - (0.722 * beats_30_to_60) - (0.383 * age)
