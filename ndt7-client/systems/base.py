"""
Base class for bidirectional, message-framed streams used by the measurement tests.
"""

import enum
import logging
from typing import Tuple, Union

logger = logging.getLogger(__name__)


class MessageKind(enum.Enum):
    """Kind of a message received from the stream."""

    TEXT = "text"
    BINARY = "binary"


Payload = Union[str, bytes]


class MessageStream:
    """A full-duplex message stream with independent read and write deadlines.

    Deadlines are absolute ``time.monotonic()`` timestamps. Once a deadline
    has passed, the corresponding I/O call fails with ``DeadlineExceeded``.
    All I/O failures are raised as ``StreamError`` subclasses.
    """

    def receive(self) -> Tuple[MessageKind, Payload]:
        """Block until the next message arrives.

        Returns:
            Tuple of (kind, payload); payload is ``str`` for TEXT and ``bytes`` for BINARY
        """
        raise NotImplementedError

    def send_binary(self, data: bytes) -> None:
        """Send one binary message."""
        raise NotImplementedError

    def send_text(self, text: str) -> None:
        """Send one text message."""
        raise NotImplementedError

    def set_read_deadline(self, deadline: float) -> None:
        raise NotImplementedError

    def set_write_deadline(self, deadline: float) -> None:
        raise NotImplementedError

    def set_read_limit(self, max_message_size: int) -> None:
        """Set the largest inbound message accepted before the stream fails."""
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
