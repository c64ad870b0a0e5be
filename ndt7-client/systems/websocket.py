"""
WebSocket message stream speaking the ndt7 subprotocol.
"""

import ssl
import time
import logging
import threading
from contextlib import ExitStack
from typing import Optional, Tuple

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import ClientConnection, connect

from common.errors import ConnectError, DeadlineExceeded, StreamError
from configuration import (
    NDT7_SUBPROTOCOL,
    MAX_MESSAGE_SIZE,
    DIAL_TIMEOUT_SECONDS,
    CLOSE_TIMEOUT_SECONDS,
)
from systems.base import MessageKind, MessageStream, Payload

logger = logging.getLogger(__name__)


def create_ssl_context(no_verify: bool) -> ssl.SSLContext:
    """Create the TLS context for wss:// endpoints.

    Args:
        no_verify: Skip certificate and hostname verification

    Returns:
        Configured SSL context
    """
    context = ssl.create_default_context()
    if no_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        logger.warning("TLS certificate verification is disabled")
    return context


class WebSocketStream(MessageStream):
    """MessageStream over a synchronous ``websockets`` client connection."""

    def __init__(self, connection: ClientConnection, clock=time.monotonic, exit_stack: Optional[ExitStack] = None):
        self.connection = connection
        if exit_stack is None:
            exit_stack = ExitStack()
            exit_stack.callback(connection.close)
        self._exit_stack = exit_stack
        self._clock = clock
        self._read_deadline: Optional[float] = None
        self._write_deadline: Optional[float] = None

    @classmethod
    def dial(
        cls,
        url: str,
        no_verify: bool = False,
        timeout_seconds: float = DIAL_TIMEOUT_SECONDS,
    ) -> "WebSocketStream":
        """Open a WebSocket to ``url`` negotiating the ndt7 subprotocol.

        Args:
            url: ws:// or wss:// endpoint
            no_verify: Skip TLS verification for wss:// endpoints
            timeout_seconds: Handshake timeout

        Returns:
            Connected stream

        Raises:
            ConnectError: If the connection or the handshake fails
        """
        kwargs = {}
        if url.startswith("wss://"):
            kwargs["ssl"] = create_ssl_context(no_verify)

        logger.info(f"Connecting to {url}")
        stack = ExitStack()
        try:
            connection = stack.enter_context(connect(
                url,
                subprotocols=[NDT7_SUBPROTOCOL],
                compression=None,  # zero-filled payloads would compress away
                max_size=MAX_MESSAGE_SIZE,
                open_timeout=timeout_seconds,
                close_timeout=CLOSE_TIMEOUT_SECONDS,
                **kwargs,
            ))
        except (WebSocketException, OSError, TimeoutError) as e:
            raise ConnectError(f"cannot connect to {url}: {e}") from e

        logger.info(f"Connected to {url} (subprotocol: {connection.subprotocol})")
        return cls(connection, exit_stack=stack)

    def _remaining(self, deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise DeadlineExceeded("i/o deadline exceeded")
        return remaining

    def receive(self) -> Tuple[MessageKind, Payload]:
        timeout = self._remaining(self._read_deadline)
        try:
            message = self.connection.recv(timeout=timeout)
        except TimeoutError as e:
            raise DeadlineExceeded("read deadline exceeded") from e
        except ConnectionClosed as e:
            raise StreamError(f"connection closed: {e}") from e
        except (WebSocketException, OSError) as e:
            raise StreamError(str(e)) from e

        if isinstance(message, str):
            return MessageKind.TEXT, message
        return MessageKind.BINARY, message

    def _send(self, message: Payload) -> None:
        timeout = self._remaining(self._write_deadline)
        if timeout is None:
            self._send_unbounded(message)
            return

        # A blocked sendall() only returns once the socket is shut down.
        expired = threading.Event()

        def expire():
            expired.set()
            self.connection.close_socket()

        timer = threading.Timer(timeout, expire)
        timer.daemon = True
        timer.start()
        try:
            self._send_unbounded(message)
        except StreamError as e:
            if expired.is_set():
                raise DeadlineExceeded("write deadline exceeded") from e
            raise
        finally:
            timer.cancel()

    def _send_unbounded(self, message: Payload) -> None:
        try:
            self.connection.send(message)
        except ConnectionClosed as e:
            raise StreamError(f"connection closed: {e}") from e
        except (WebSocketException, OSError) as e:
            raise StreamError(str(e)) from e

    def send_binary(self, data: bytes) -> None:
        self._send(data)

    def send_text(self, text: str) -> None:
        self._send(text)

    def set_read_deadline(self, deadline: float) -> None:
        self._read_deadline = deadline

    def set_write_deadline(self, deadline: float) -> None:
        self._write_deadline = deadline

    def set_read_limit(self, max_message_size: int) -> None:
        # The frame parser reads the limit for every incoming frame.
        protocol = self.connection.protocol
        if hasattr(protocol, "max_message_size"):
            # newer websockets releases split the limit into message and fragment sizes
            protocol.max_message_size = max_message_size
            protocol.max_fragment_size = None
        else:
            protocol.max_size = max_message_size

    def close(self) -> None:
        try:
            self._exit_stack.close()
        except (WebSocketException, OSError) as e:
            logger.debug(f"Error while closing stream: {e}")

    def __repr__(self) -> str:
        return f"WebSocketStream(read_deadline={self._read_deadline}, write_deadline={self._write_deadline})"
