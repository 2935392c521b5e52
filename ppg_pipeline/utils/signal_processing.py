"""
Digital filters for PPG heart-rate estimation
"""
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from scipy.signal import lfilter

from ppg_pipeline.utils.filter_coefficients import FilterCoefficients, FilterType

MEAN_FILTER_EPS = 1e-5


def apply_iir(x, b, a):
    """Direct-form IIR filter with a[0] taken as 1 and a zero initial state.

    The first len(b)-1 outputs only see the samples received so far.
    """
    x = np.asarray(x, dtype=float)
    b = np.asarray(b, dtype=float)
    a = np.array(a, dtype=float)
    if x.ndim != 1 or len(x) < len(b):
        raise ValueError(f"IIR filter needs at least {len(b)} samples, got {x.size}")
    a[0] = 1.0
    return lfilter(b, a, x)


def apply_fir(x, kernel, mode='full'):
    x = np.asarray(x, dtype=float)
    full = np.convolve(x, np.asarray(kernel, dtype=float), mode='full')
    if mode == 'full':
        return full
    if mode == 'same':
        start = len(full) // 2 - len(x) // 2
        return full[start:start + len(x)]
    raise ValueError(f"unknown convolution mode {mode!r}")


def _pass_filter(x, sampling_rate, filter_type, coefficients):
    if coefficients is None:
        coefficients = FilterCoefficients.default()
    params = coefficients.lookup(filter_type, sampling_rate)
    # drop the startup transient
    return apply_iir(x, params.b, params.a)[sampling_rate - 1:]


def low_pass(x, sampling_rate, coefficients=None):
    return _pass_filter(x, sampling_rate, FilterType.LOW, coefficients)


def high_pass(x, sampling_rate, coefficients=None):
    return _pass_filter(x, sampling_rate, FilterType.HIGH, coefficients)


def mean_filter_order(sampling_rate):
    if sampling_rate <= 15:
        return 15
    elif sampling_rate <= 18:
        return 19
    elif sampling_rate <= 32:
        return 33
    return 65


def trimmed_mean_filter(x, order):
    """
    Subtract the windowed trimmed mean from each interior sample and scale by
    the window range. Emphasizes one dominant peak per window; the
    (order-1)/2 samples at each end are dropped.
    """
    if order < 3 or order % 2 == 0:
        raise ValueError(f"mean filter order must be odd and >= 3, got {order}")
    x = np.asarray(x, dtype=float)
    if len(x) < order:
        return np.zeros(0)
    windows = sliding_window_view(x, order)
    w_sum = windows.sum(axis=1)
    w_max = windows.max(axis=1)
    w_min = windows.min(axis=1)
    trimmed = (w_sum - w_max + w_min) / (order - 2)
    center = x[(order - 1) // 2:len(x) - (order - 1) // 2]
    return (center - trimmed) / (w_max - w_min + MEAN_FILTER_EPS)
