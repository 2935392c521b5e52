"""Shared pytest configuration and fixtures for the PPG pipeline tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ppg_pipeline.pipeline.samples import PixelSample  # noqa: E402

FS = 60


def sinusoid(bpm, seconds=10.0, fs=FS, offset=0.5, amplitude=0.1):
    t = np.arange(int(round(seconds * fs))) / fs
    return offset + amplitude * np.sin(2 * np.pi * bpm * t / 60.0)


def make_samples(red, green, fs=FS, start=0.0, covering=True):
    return [
        PixelSample(start + i / fs, float(r), float(g), 0.1, covering)
        for i, (r, g) in enumerate(zip(red, green))
    ]


@pytest.fixture
def rng():
    return np.random.default_rng(7)


@pytest.fixture
def pulse_samples(rng):
    """10 s at 60 fps: 72 BPM on green, noise on red."""
    green = sinusoid(72)
    red = 0.5 + 0.05 * rng.standard_normal(len(green))
    return make_samples(red, green)
