import numpy as np
import pytest

from ppg_pipeline.errors import FilterCoefficientsError
from ppg_pipeline.utils.filter_coefficients import (
    BANDPASS_KERNEL,
    TABLE_COLUMNS,
    FilterCoefficients,
    FilterType,
)


@pytest.fixture
def table():
    return FilterCoefficients.default()


def test_default_table_covers_supported_rates(table):
    for rate in (12, 30, 60):
        assert table.has_sampling_rate(rate)
        low = table.lookup('low', rate)
        high = table.lookup(FilterType.HIGH, rate)
        assert len(low.b) == len(low.a) == 8
        assert len(high.b) == len(high.a) == 8
        assert low.a[0] == pytest.approx(1.0)


def test_default_table_is_shared(table):
    assert FilterCoefficients.default() is table


def test_lookup_requires_exact_rate(table):
    with pytest.raises(FilterCoefficientsError):
        table.lookup('low', 61)
    with pytest.raises(FilterCoefficientsError):
        table.lookup('high', 59.5)
    assert not table.has_sampling_rate(11)


def test_missing_rate_is_a_key_error(table):
    with pytest.raises(KeyError):
        table.lookup('low', 1000)


def test_csv_round_trip(tmp_path, table):
    path = tmp_path / "params.csv"
    table.to_frame().to_csv(path, index=False)
    loaded = FilterCoefficients.from_csv(path)
    assert len(loaded) == len(table)
    assert loaded.sampling_rates == table.sampling_rates
    np.testing.assert_allclose(loaded.lookup('high', 60).a, table.lookup('high', 60).a)


def test_csv_missing_columns(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("filter_type,sampling_rate,b1\nlow,60,0.1\n")
    with pytest.raises(FilterCoefficientsError, match="missing columns"):
        FilterCoefficients.from_csv(path)


def test_csv_unknown_filter_type(tmp_path, table):
    df = table.to_frame().head(1).copy()
    df.loc[:, 'filter_type'] = 'band'
    path = tmp_path / "bad.csv"
    df.to_csv(path, index=False)
    with pytest.raises(FilterCoefficientsError):
        FilterCoefficients.from_csv(path)


def test_csv_missing_file(tmp_path):
    with pytest.raises(FilterCoefficientsError):
        FilterCoefficients.from_csv(tmp_path / "nope.csv")


def test_frame_layout(table):
    assert list(table.to_frame().columns) == TABLE_COLUMNS


def test_bandpass_kernel_is_symmetric():
    assert len(BANDPASS_KERNEL) == 129
    np.testing.assert_array_equal(BANDPASS_KERNEL, BANDPASS_KERNEL[::-1])
    assert np.argmax(BANDPASS_KERNEL) == 64
