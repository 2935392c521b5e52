"""
Exceptions raised by the PPG pipeline.

Signal-level problems (flat windows, too few samples) are not errors; the
estimators report them as a (0, 0) estimate.
"""


class PPGError(Exception):
    pass


class ConfigurationError(PPGError):
    """The engine was configured with values it cannot run with."""


class FilterCoefficientsError(PPGError, KeyError):
    """A coefficient table is missing, malformed, or lacks a sampling rate."""

    def __str__(self):
        # KeyError quotes its message otherwise
        return Exception.__str__(self)
