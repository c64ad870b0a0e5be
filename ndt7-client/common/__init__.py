"""
Common utilities for the ndt7 client.
"""

from .errors import (
    MeasurementError,
    StreamError,
    DeadlineExceeded,
    UnexpectedMessageKind,
    DecodeError,
    ConnectError,
    LocateError,
)
from .periodic_sampler import PeriodicSampler

__all__ = [
    'MeasurementError',
    'StreamError',
    'DeadlineExceeded',
    'UnexpectedMessageKind',
    'DecodeError',
    'ConnectError',
    'LocateError',
    'PeriodicSampler',
]
