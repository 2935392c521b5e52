"""
Sample records flowing through the PPG pipeline
"""
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional


class Channel(str, Enum):
    RED = 'red'
    GREEN = 'green'
    BLUE = 'blue'


@dataclass(frozen=True)
class PixelSample:
    """Average color intensities of one camera frame."""
    presentation_timestamp: float
    red: float
    green: float
    blue: float
    is_covering_lens: bool

    def channel(self, channel):
        return getattr(self, Channel(channel).value)

    def to_record(self):
        return {
            'timestamp': self.presentation_timestamp,
            'red': self.red,
            'green': self.green,
            'blue': self.blue,
            'isCoveringLens': self.is_covering_lens,
        }


@dataclass(frozen=True)
class BpmSample:
    timestamp: Optional[float]
    bpm: float
    confidence: float
    channel: Optional[Channel] = None

    def to_record(self):
        return {
            'timestamp': self.timestamp,
            'bpm': self.bpm,
            'confidence': self.confidence,
            'channel': self.channel.value if self.channel is not None else None,
        }


class HeartRateEstimate(NamedTuple):
    bpm: float
    confidence: float

    @property
    def is_valid(self):
        return self.bpm > 0


NO_ESTIMATE = HeartRateEstimate(0.0, 0.0)
