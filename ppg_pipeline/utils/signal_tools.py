"""
Autocorrelation utilities for periodicity detection
"""
import numpy as np

from ppg_pipeline.utils.signal_processing import apply_fir


def round_half_up(value):
    return int(np.floor(value + 0.5))


def lag_range(sampling_rate, min_bpm, max_bpm, to_bpm=None):
    """Inclusive (lower, upper) lag bounds whose heart rates stay within range."""
    if to_bpm is None:
        to_bpm = lambda lag: 60.0 * sampling_rate / lag
    lower = max(1, round_half_up(60.0 * sampling_rate / max_bpm))
    upper = round_half_up(60.0 * sampling_rate / min_bpm)
    while lower <= upper and to_bpm(lower) > max_bpm:
        lower += 1
    while upper >= lower and to_bpm(upper) < min_bpm:
        upper -= 1
    return lower, upper


def autocorrelate(x, max_lag):
    """Biased sample autocorrelation for lags 0..max_lag, lag 0 == 1.

    Returns None when the signal is flat or shorter than max_lag + 1.
    """
    x = np.asarray(x, dtype=float)
    if max_lag < 0 or max_lag >= len(x):
        return None
    centered = x - x.mean()
    var = np.dot(centered, centered)
    if var <= 0:
        return None
    n = len(x)
    acf = np.empty(max_lag + 1)
    for k in range(max_lag + 1):
        acf[k] = np.dot(centered[:n - k], centered[k:])
    return acf / var


def xcorr(x):
    x = np.asarray(x, dtype=float)
    return apply_fir(x, x[::-1], mode='full')


def max_splice(r):
    """Drop the mirrored half of an even autocorrelation, up to its peak."""
    pos = int(np.argmax(r))
    return float(r[pos]), r[pos:]


def center_splice(x, end_count):
    return x[end_count:len(x) - end_count]
