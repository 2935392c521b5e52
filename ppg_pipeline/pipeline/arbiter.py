"""
Red/green channel arbitration for one window
"""
import logging

import numpy as np

from ppg_pipeline.pipeline.samples import BpmSample, Channel

logger = logging.getLogger(__name__)


class ChannelArbiter:
    def __init__(self, estimator):
        self.estimator = estimator

    def arbitrate(self, window):
        if not window:
            raise ValueError("cannot arbitrate an empty window")
        red = self.estimator.estimate(np.array([s.red for s in window], dtype=float))
        green = self.estimator.estimate(np.array([s.green for s in window], dtype=float))
        # red wins ties
        if red.confidence >= green.confidence:
            channel, best = Channel.RED, red
        else:
            channel, best = Channel.GREEN, green
        timestamp = window[len(window) // 2].presentation_timestamp
        logger.debug("%s bpm=%.1f confidence=%.3f (red %.3f, green %.3f)",
                     channel.value, best.bpm, best.confidence, red.confidence, green.confidence)
        return BpmSample(timestamp, best.bpm, best.confidence, channel)
