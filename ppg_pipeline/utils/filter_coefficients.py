"""
Filter coefficient tables for the PPG filters.

Butterworth low/high-pass rows are keyed by (filter type, integer sampling
rate) and must match the rate exactly. The bandpass FIR kernel is fixed.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Dict, Tuple

import numpy as np
import pandas as pd
from scipy.signal import butter

from ppg_pipeline.config import (
    BUTTERWORTH_ORDER,
    FRAME_RATE,
    HIGHPASS_CUTOFF_HZ,
    LOWPASS_CUTOFF_HZ,
    MIN_FRAME_RATE,
)
from ppg_pipeline.errors import FilterCoefficientsError

logger = logging.getLogger(__name__)

N_COEFFICIENTS = BUTTERWORTH_ORDER + 1
B_COLUMNS = [f"b{i}" for i in range(1, N_COEFFICIENTS + 1)]
A_COLUMNS = [f"a{i}" for i in range(1, N_COEFFICIENTS + 1)]
TABLE_COLUMNS = ['filter_type', 'sampling_rate'] + B_COLUMNS + A_COLUMNS

# fir1(128, [1/30, 25/30], 'bandpass'): 1-25 Hz at 60 fps
BANDPASS_KERNEL = np.array([
    -0.000506610984132016, 0.000281340196104213, -0.000453477478785663, 0.000175433848479960, 5.78571000126717e-19, -0.000200178238070410,
    0.000588479261901569, -0.000412615808534457, 0.000832401037231464, -4.84818239396100e-19, 0.000465554741153073, 0.00102165166976478,
    -0.000118534274769341, 0.00192609062899124, -2.40024436102973e-18, 0.00182952606970045, 0.00135480554590726, 0.000748599044261129,
    0.00319643179850945, -2.30788276369201e-19, 0.00382994518525259, 0.00107470141262219, 0.00233017559097417, 0.00376919225339987,
    -8.21109764793137e-18, 0.00568709829032464, -0.000418547259970266, 0.00430878547299781, 0.00234096774958672, -1.06597329751523e-17,
    0.00589948032626289, -0.00345001874823703, 0.00577085280898743, -0.00228532700432350, -3.81044085438483e-18, 0.00263801974428747,
    -0.00769131382422690, 0.00531148463293734, -0.0104990208677403, 1.62815935886881e-17, -0.00558417076326117, -0.0119241848598587,
    0.00134611898423683, -0.0212997771796790, -2.07091826506435e-17, -0.0192845505914200, -0.0139952617851127, -0.00760318790070690,
    -0.0320397640632609, -3.05719612807051e-18, -0.0378997870775431, -0.0106518977344771, -0.0232807805994706, -0.0382418951609459,
    1.64113172833343e-17, -0.0611787321852445, 0.00471988055056295, -0.0517540592057603, -0.0305770938728010, 3.42293636763843e-17,
    -0.100426633129967, 0.0729786483544900, -0.170609488045242, 0.125861208906484, 0.800308136102957, 0.125861208906484,
    -0.170609488045242, 0.0729786483544900, -0.100426633129967, 3.42293636763843e-17, -0.0305770938728010, -0.0517540592057603,
    0.00471988055056295, -0.0611787321852445, 1.64113172833343e-17, -0.0382418951609459, -0.0232807805994706, -0.0106518977344771,
    -0.0378997870775431, -3.05719612807051e-18, -0.0320397640632609, -0.00760318790070690, -0.0139952617851127, -0.0192845505914200,
    -2.07091826506435e-17, -0.0212997771796790, 0.00134611898423683, -0.0119241848598587, -0.00558417076326117, 1.62815935886881e-17,
    -0.0104990208677403, 0.00531148463293734, -0.00769131382422690, 0.00263801974428747, -3.81044085438483e-18, -0.00228532700432350,
    0.00577085280898743, -0.00345001874823703, 0.00589948032626289, -1.06597329751523e-17, 0.00234096774958672, 0.00430878547299781,
    -0.000418547259970266, 0.00568709829032464, -8.21109764793137e-18, 0.00376919225339987, 0.00233017559097417, 0.00107470141262219,
    0.00382994518525259, -2.30788276369201e-19, 0.00319643179850945, 0.000748599044261129, 0.00135480554590726, 0.00182952606970045,
    -2.40024436102973e-18, 0.00192609062899124, -0.000118534274769341, 0.00102165166976478, 0.000465554741153073, -4.84818239396100e-19,
    0.000832401037231464, -0.000412615808534457, 0.000588479261901569, -0.000200178238070410, 5.78571000126717e-19, 0.000175433848479960,
    -0.000453477478785663, 0.000281340196104213, -0.000506610984132016,
])
BANDPASS_KERNEL.setflags(write=False)


class FilterType(str, Enum):
    LOW = 'low'
    HIGH = 'high'


@dataclass(frozen=True)
class FilterParameters:
    filter_type: FilterType
    sampling_rate: int
    b: Tuple[float, ...]
    a: Tuple[float, ...]


def design_butterworth(filter_type, sampling_rate):
    cutoff = LOWPASS_CUTOFF_HZ if FilterType(filter_type) is FilterType.LOW else HIGHPASS_CUTOFF_HZ
    nyq = 0.5 * sampling_rate
    if cutoff >= nyq:
        raise FilterCoefficientsError(
            f"{cutoff} Hz cutoff is above Nyquist for {sampling_rate} fps")
    b, a = butter(BUTTERWORTH_ORDER, cutoff / nyq, btype=FilterType(filter_type).value)
    return FilterParameters(FilterType(filter_type), int(sampling_rate),
                            tuple(float(v) for v in b), tuple(float(v) for v in a))


class FilterCoefficients:
    """Read-only lookup table of Butterworth filter parameters."""

    def __init__(self, rows):
        self._rows: Dict[Tuple[FilterType, int], FilterParameters] = {}
        for params in rows:
            self._rows[(params.filter_type, params.sampling_rate)] = params

    def __len__(self):
        return len(self._rows)

    def lookup(self, filter_type, sampling_rate):
        key = (FilterType(filter_type), sampling_rate)
        if not isinstance(sampling_rate, (int, np.integer)) or key not in self._rows:
            raise FilterCoefficientsError(
                f"no {FilterType(filter_type).value}-pass coefficients for sampling rate {sampling_rate}")
        return self._rows[key]

    def has_sampling_rate(self, sampling_rate):
        return ((FilterType.LOW, sampling_rate) in self._rows
                and (FilterType.HIGH, sampling_rate) in self._rows)

    @property
    def sampling_rates(self):
        return sorted({rate for _, rate in self._rows if self.has_sampling_rate(rate)})

    @classmethod
    def default(cls):
        return _default_table()

    @classmethod
    def from_csv(cls, path):
        try:
            df = pd.read_csv(path)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise FilterCoefficientsError(f"cannot read coefficient table {path}: {e}") from e
        missing = [c for c in TABLE_COLUMNS if c not in df.columns]
        if missing:
            raise FilterCoefficientsError(f"coefficient table {path} is missing columns {missing}")
        rows = []
        for rec in df.to_dict(orient='records'):
            try:
                coeffs = np.asarray([rec[c] for c in B_COLUMNS + A_COLUMNS], dtype=float)
                rate = int(rec['sampling_rate'])
                ftype = FilterType(str(rec['filter_type']).strip())
            except (TypeError, ValueError) as e:
                raise FilterCoefficientsError(f"malformed row in {path}: {rec}") from e
            if not np.all(np.isfinite(coeffs)):
                raise FilterCoefficientsError(f"non-finite coefficients in {path} for rate {rate}")
            rows.append(FilterParameters(ftype, rate,
                                         tuple(coeffs[:N_COEFFICIENTS].tolist()),
                                         tuple(coeffs[N_COEFFICIENTS:].tolist())))
        logger.info("Loaded %d filter rows from %s", len(rows), path)
        return cls(rows)

    def to_frame(self):
        records = []
        for (ftype, rate), params in sorted(self._rows.items(), key=lambda kv: (kv[0][0].value, kv[0][1])):
            rec = {'filter_type': ftype.value, 'sampling_rate': rate}
            rec.update(zip(B_COLUMNS, params.b))
            rec.update(zip(A_COLUMNS, params.a))
            records.append(rec)
        return pd.DataFrame(records, columns=TABLE_COLUMNS)


@lru_cache(maxsize=1)
def _default_table():
    rows = []
    for rate in range(MIN_FRAME_RATE, FRAME_RATE + 1):
        for ftype in FilterType:
            rows.append(design_butterworth(ftype, rate))
    return FilterCoefficients(rows)
