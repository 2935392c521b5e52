"""
CSV persistence for pixel and BPM sample series
"""
import pandas as pd

from ppg_pipeline.pipeline.samples import BpmSample, Channel, PixelSample

PIXEL_COLUMNS = ['timestamp', 'red', 'green', 'blue', 'isCoveringLens']
BPM_COLUMNS = ['timestamp', 'bpm', 'confidence', 'channel']


def _as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes')
    return bool(value)


def pixel_samples_to_frame(samples):
    return pd.DataFrame([s.to_record() for s in samples], columns=PIXEL_COLUMNS)


def bpm_samples_to_frame(samples):
    return pd.DataFrame([s.to_record() for s in samples], columns=BPM_COLUMNS)


def write_pixel_samples(samples, path):
    pixel_samples_to_frame(samples).to_csv(path, index=False)


def write_bpm_samples(samples, path):
    bpm_samples_to_frame(samples).to_csv(path, index=False)


def read_pixel_samples(path):
    df = pd.read_csv(path)
    missing = [c for c in PIXEL_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path} is missing pixel sample columns {missing}")
    df = df.sort_values('timestamp', kind='stable')
    return [
        PixelSample(float(row.timestamp), float(row.red), float(row.green), float(row.blue),
                    _as_bool(row.isCoveringLens))
        for row in df.itertuples(index=False)
    ]


def read_bpm_samples(path):
    df = pd.read_csv(path)
    missing = [c for c in BPM_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path} is missing bpm sample columns {missing}")
    samples = []
    for row in df.itertuples(index=False):
        timestamp = None if pd.isna(row.timestamp) else float(row.timestamp)
        channel = None if pd.isna(row.channel) else Channel(row.channel)
        samples.append(BpmSample(timestamp, float(row.bpm), float(row.confidence), channel))
    return samples
