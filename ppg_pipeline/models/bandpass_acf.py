"""
Bandpass / trimmed-mean autocorrelation heart-rate method (live path)
"""
import numpy as np

from ppg_pipeline.pipeline.samples import NO_ESTIMATE, HeartRateEstimate
from ppg_pipeline.utils.filter_coefficients import BANDPASS_KERNEL
from ppg_pipeline.utils.signal_processing import apply_fir, trimmed_mean_filter
from ppg_pipeline.utils.signal_tools import center_splice, lag_range, max_splice, round_half_up, xcorr

MIN_BPM = 40
MAX_BPM = 200
# mean filter width is tuned so one beat at this rate fills the window
CEILING_BPM = 220
EDGE_TRIM = 64


def mean_filter_samples(frame_rate):
    return round_half_up(60.0 * frame_rate / CEILING_BPM)


def window_length(frame_rate, window_seconds):
    return round_half_up(window_seconds * frame_rate)


def bandpass_filtered(x, frame_rate):
    """Mean-subtract, bandpass, emphasize peaks, then trim the FIR edges."""
    x = np.asarray(x, dtype=float)
    order = 2 * mean_filter_samples(frame_rate) + 1
    filtered = apply_fir(x - x.mean(), BANDPASS_KERNEL, mode='same')
    return center_splice(trimmed_mean_filter(filtered, order), EDGE_TRIM)


def bandpass_heart_rate(x, frame_rate, min_bpm=MIN_BPM, max_bpm=MAX_BPM):
    x = np.nan_to_num(np.asarray(x, dtype=float), nan=0.0, posinf=0.0, neginf=0.0)
    nsamples = mean_filter_samples(frame_rate)
    if x.ndim != 1 or len(x) < 2 * nsamples + 1 or np.ptp(x) == 0:
        return NO_ESTIMATE
    y = bandpass_filtered(x, frame_rate)
    if len(y) < 2 * nsamples + 2:
        return NO_ESTIMATE

    max_val, acf = max_splice(xcorr(y))
    if not max_val > 0:
        return NO_ESTIMATE

    # acf[pos] scores a period of pos + 1 samples
    to_bpm = lambda lag: round_half_up(60.0 * frame_rate / lag)
    lower, upper = lag_range(frame_rate, min_bpm, max_bpm, to_bpm)
    lo, hi = lower - 1, min(upper - 1, len(acf) - 1)
    if lo > hi:
        return NO_ESTIMATE
    pos = lo + int(np.argmax(acf[lo:hi + 1]))
    val = float(acf[pos])
    if val <= 0:
        return NO_ESTIMATE
    return HeartRateEstimate(float(to_bpm(pos + 1)), val / max_val)
