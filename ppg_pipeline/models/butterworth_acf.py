"""
Butterworth / autocorrelation heart-rate method with alias correction.

The filtered signal is autocorrelated over the physiological lag range and
the strongest lag is checked against its half-period and multiples, since a
trimmed-mean-filtered pulse often correlates as strongly at 2x its period.
"""
import logging
import math

import numpy as np

from ppg_pipeline.config import MAX_HEART_RATE, MIN_HEART_RATE, WINDOW_SECONDS
from ppg_pipeline.pipeline.samples import NO_ESTIMATE, HeartRateEstimate
from ppg_pipeline.utils.filter_coefficients import FilterCoefficients
from ppg_pipeline.utils.signal_processing import (
    high_pass,
    low_pass,
    mean_filter_order,
    trimmed_mean_filter,
)
from ppg_pipeline.utils.signal_tools import autocorrelate, lag_range, round_half_up

logger = logging.getLogger(__name__)

PEAK_THRESHOLD = 0.7


def window_length(sampling_rate, window_seconds=WINDOW_SECONDS):
    # the low/high-pass stages each drop a second and the mean filter drops its order
    rate = round_half_up(sampling_rate)
    return int(window_seconds + 2) * rate + mean_filter_order(rate)


def filtered_length(n, sampling_rate):
    rate = round_half_up(sampling_rate)
    return n - 2 * (rate - 1) - (mean_filter_order(rate) - 1)


def filtered_signal(x, sampling_rate, coefficients=None, drop_seconds=0):
    """Low-pass, high-pass and trimmed-mean filter a channel.

    drop_seconds ignores the leading settle period of a recording.
    """
    rate = round_half_up(sampling_rate)
    drop = drop_seconds * rate - 1 if drop_seconds > 0 else 0
    x = np.nan_to_num(np.asarray(x, dtype=float)[drop:], nan=0.0, posinf=0.0, neginf=0.0)
    x = low_pass(x, rate, coefficients)
    x = high_pass(x, rate, coefficients)
    return trimmed_mean_filter(x, mean_filter_order(rate))


def peak_count(hr):
    """Number of ACF peaks a pulse at hr puts inside the 45-210 BPM lag range."""
    if hr < 90:
        return 1
    elif hr < 135:
        return 2
    elif hr < 180:
        return 3
    elif hr < 225:
        return 4
    elif hr <= 240:
        return 5
    return None


def aliasing_peak_locations(hr, lag, min_lag, max_lag):
    """Candidate lags for the true period: half of lag, and its multiples."""
    n_peaks = peak_count(hr)
    if n_peaks is None:
        return None
    if lag % 2 == 0:
        earlier = [lag // 2]
    else:
        earlier = [lag // 2, lag // 2 + 1]
    earlier = [p for p in earlier if p >= min_lag]
    later = [k * lag for k in range(2, n_peaks + 1) if k * lag <= max_lag]
    return n_peaks, earlier, later


def heart_rate_from_filtered(x, sampling_rate, min_bpm=MIN_HEART_RATE, max_bpm=MAX_HEART_RATE):
    min_lag, max_lag = lag_range(sampling_rate, min_bpm, max_bpm)
    if not 0 < min_lag < max_lag:
        return NO_ESTIMATE
    acf = autocorrelate(x, max_lag)
    if acf is None:
        return NO_ESTIMATE

    y = np.zeros_like(acf)
    y[min_lag:max_lag + 1] = acf[min_lag:max_lag + 1]
    lag = int(np.argmax(y))
    y_max = float(y[lag])
    y_min = float(y.min())
    if y_max <= 0:
        return NO_ESTIMATE
    hr_initial = 60.0 * sampling_rate / lag

    peaks = aliasing_peak_locations(hr_initial, lag, min_lag, max_lag)
    if peaks is None:
        return NO_ESTIMATE
    _, earlier, later = peaks
    acf_max = float(acf.max())
    acf_min = min(float(acf.min()), 0.0)

    if earlier:
        strong = [p for p in earlier if (y[p] - y_min) > PEAK_THRESHOLD * (y_max - y_min)]
        if strong:
            hr = float(np.mean([60.0 * sampling_rate / p for p in strong]))
            confidence = float(np.mean([y[p] - y_min for p in strong])) / (acf_max - acf_min)
            return HeartRateEstimate(hr, confidence)
        return HeartRateEstimate(hr_initial, y_max / acf_max)
    if later and all(y[p] > PEAK_THRESHOLD * y_max for p in later):
        return HeartRateEstimate(hr_initial, y_max / acf_max)
    return NO_ESTIMATE


def butterworth_heart_rate(x, sampling_rate, min_bpm=MIN_HEART_RATE, max_bpm=MAX_HEART_RATE,
                           window_seconds=WINDOW_SECONDS, coefficients=None, drop_seconds=0):
    if coefficients is None:
        coefficients = FilterCoefficients.default()
    rate = round_half_up(sampling_rate)
    if not coefficients.has_sampling_rate(rate):
        logger.debug("No Butterworth coefficients for %d fps", rate)
        return NO_ESTIMATE
    window = int(math.ceil(window_seconds * sampling_rate))
    drop = drop_seconds * rate - 1 if drop_seconds > 0 else 0
    if filtered_length(len(x) - drop, sampling_rate) < window:
        return NO_ESTIMATE
    filtered = filtered_signal(x, sampling_rate, coefficients, drop_seconds)
    return heart_rate_from_filtered(filtered[-window:], sampling_rate, min_bpm, max_bpm)
