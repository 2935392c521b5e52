import logging

import numpy as np
import pytest

from conftest import sinusoid
from ppg_pipeline.config import EngineConfig
from ppg_pipeline.models.bandpass_acf import bandpass_filtered, bandpass_heart_rate
from ppg_pipeline.models.butterworth_acf import (
    aliasing_peak_locations,
    butterworth_heart_rate,
    filtered_length,
    filtered_signal,
    peak_count,
    window_length,
)
from ppg_pipeline.pipeline.estimator import PeriodicityEstimator
from ppg_pipeline.pipeline.samples import NO_ESTIMATE
from ppg_pipeline.utils.filter_coefficients import FilterCoefficients


class TestBandpassMethod:

    def test_recovers_72_bpm_sinusoid(self):
        bpm, confidence = bandpass_heart_rate(sinusoid(72), 60)
        assert abs(bpm - 72) <= 1
        assert 0.8 < confidence <= 1.0

    def test_recovers_60_bpm_sinusoid(self):
        bpm, confidence = bandpass_heart_rate(sinusoid(60), 60)
        assert abs(bpm - 60) <= 2
        assert confidence > 0.5

    def test_is_deterministic(self, rng):
        x = sinusoid(80) + 0.02 * rng.standard_normal(600)
        first = bandpass_heart_rate(x, 60)
        for _ in range(3):
            assert bandpass_heart_rate(x.copy(), 60) == first

    @pytest.mark.parametrize("x", [np.zeros(600), np.full(600, 0.42), np.zeros(0)])
    def test_degenerate_windows_give_no_estimate(self, x):
        result = bandpass_heart_rate(x, 60)
        assert result == NO_ESTIMATE
        assert not np.isnan(result.confidence)

    def test_too_short_window_gives_no_estimate(self):
        assert bandpass_heart_rate(sinusoid(72, seconds=2.0), 60) == NO_ESTIMATE

    def test_preprocessing_trims_edges(self):
        # 600 - (33 - 1) - 2 * 64
        assert len(bandpass_filtered(sinusoid(72), 60)) == 440

    def test_range_and_confidence_bounds(self, rng):
        config = EngineConfig()
        estimator = PeriodicityEstimator.from_config(config)
        signals = [sinusoid(bpm) for bpm in (41, 42, 44, 45, 90, 130, 170)]
        signals += [rng.standard_normal(600) for _ in range(5)]
        for x in signals:
            bpm, confidence = estimator.estimate(x)
            if bpm != 0:
                assert config.min_heart_rate <= bpm <= config.max_heart_rate
                assert 0.0 <= confidence <= 1.0

    def test_narrower_range_is_respected(self):
        bpm, _ = bandpass_heart_rate(sinusoid(72), 60, min_bpm=80, max_bpm=200)
        assert bpm == 0 or bpm >= 80


class TestButterworthMethod:

    def test_window_length_covers_filter_losses(self):
        assert window_length(60, 10) == 12 * 60 + 65
        assert filtered_length(window_length(60, 10), 60) >= 600

    def test_filtered_signal_length(self):
        x = sinusoid(72, seconds=13.0, offset=0.0)
        assert len(filtered_signal(x, 60)) == filtered_length(len(x), 60)

    def test_recovers_72_bpm_sinusoid(self):
        x = sinusoid(72, seconds=window_length(60, 10) / 60, offset=0.0)
        bpm, confidence = butterworth_heart_rate(x, 60)
        assert abs(bpm - 72) <= 2
        assert confidence > 0.3
        assert 45 <= bpm <= 210

    def test_short_window_gives_no_estimate(self):
        assert butterworth_heart_rate(sinusoid(72, offset=0.0), 60) == NO_ESTIMATE

    def test_missing_coefficients_give_no_estimate(self):
        empty = FilterCoefficients([])
        x = sinusoid(72, seconds=14.0, offset=0.0)
        assert butterworth_heart_rate(x, 60, coefficients=empty) == NO_ESTIMATE

    def test_flat_window_gives_no_estimate(self):
        assert butterworth_heart_rate(np.zeros(800), 60) == NO_ESTIMATE

    @pytest.mark.parametrize("hr,expected", [(60, 1), (89.9, 1), (90, 2), (150, 3), (200, 4), (240, 5), (241, None)])
    def test_peak_count(self, hr, expected):
        assert peak_count(hr) == expected

    def test_aliasing_even_lag(self):
        assert aliasing_peak_locations(72, 50, 18, 80) == (1, [25], [])

    def test_aliasing_odd_lag(self):
        assert aliasing_peak_locations(87.8, 41, 18, 80) == (1, [20, 21], [])

    def test_aliasing_later_peaks(self):
        assert aliasing_peak_locations(150, 24, 18, 80) == (3, [], [48, 72])

    def test_aliasing_rejects_implausible_rate(self):
        assert aliasing_peak_locations(300, 12, 18, 80) is None


class TestPeriodicityEstimator:

    def test_default_is_bandpass(self):
        estimator = PeriodicityEstimator.from_config()
        assert estimator.method == 'bandpass'
        assert estimator.window_length == 600
        assert (estimator.min_bpm, estimator.max_bpm) == (45, 200)

    def test_butterworth_uses_configured_heart_rates(self):
        config = EngineConfig(method='butterworth', min_heart_rate=50, max_heart_rate=180)
        estimator = PeriodicityEstimator.from_config(config)
        assert estimator.method == 'butterworth'
        assert (estimator.min_bpm, estimator.max_bpm) == (50, 180)
        assert estimator.window_length == 785

    def test_butterworth_without_coefficients_falls_back(self, caplog):
        config = EngineConfig(frame_rate=90, method='butterworth')
        with caplog.at_level(logging.WARNING):
            estimator = PeriodicityEstimator.from_config(config)
        assert estimator.method == 'bandpass'
        assert "degraded" in caplog.text

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            PeriodicityEstimator(60, method='fft')

    def test_estimate_dispatches_to_strategy(self):
        x = sinusoid(72)
        estimator = PeriodicityEstimator(60)
        assert estimator.estimate(x) == bandpass_heart_rate(x, 60)
