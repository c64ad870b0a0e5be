"""
Exception hierarchy for the ndt7 client.
"""


class MeasurementError(Exception):
    """Base class for every failure that ends a sub-test or a run."""


class StreamError(MeasurementError):
    """An I/O operation on the message stream failed."""


class DeadlineExceeded(StreamError):
    """A read or write was attempted after its deadline."""


class UnexpectedMessageKind(MeasurementError):
    """The peer sent a message of a kind the test does not accept."""


class DecodeError(MeasurementError):
    """A control message could not be decoded."""


class ConnectError(MeasurementError):
    """The message stream could not be established."""


class LocateError(MeasurementError):
    """Server discovery failed."""
