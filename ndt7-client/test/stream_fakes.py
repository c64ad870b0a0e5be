"""
Stand-ins for the message stream, the clock and a WebSocket peer used by the test suite.
"""

import os
import re
import sys
import io
import socket
import threading

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from websockets.utils import accept_key

from common.errors import DeadlineExceeded, StreamError
from configuration import NDT7_SUBPROTOCOL
from systems.base import MessageKind, MessageStream


class ManualClock:
    """Monotonic clock that advances by ``step`` seconds on every read."""

    def __init__(self, start: float = 1000.0, step: float = 0.0):
        self.now = start
        self.step = step

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


class ScriptedStream(MessageStream):
    """Plays back a list of inbound messages and records outbound ones.

    ``script`` items are (kind, payload) tuples or exceptions to raise. When
    the script is exhausted, receive() fails like a closed connection. Sends
    fail once ``max_sends`` messages were written.
    """

    def __init__(self, script=None, clock=None, max_sends=None, on_receive=None):
        self.script = list(script or [])
        self.clock = clock
        self.max_sends = max_sends
        self.on_receive = on_receive
        self.sent = []
        self.read_deadline = None
        self.write_deadline = None
        self.read_limit = None
        self.closed = False

    def receive(self):
        if self.read_deadline is not None and self.clock is not None and self.clock.now >= self.read_deadline:
            raise DeadlineExceeded("read deadline exceeded")
        if not self.script:
            raise StreamError("connection closed: 1000 (OK)")
        item = self.script.pop(0)
        if self.on_receive is not None:
            self.on_receive()
        if isinstance(item, Exception):
            raise item
        return item

    def _send(self, kind, payload):
        if self.max_sends is not None and len(self.sent) >= self.max_sends:
            raise StreamError("connection closed: 1006")
        self.sent.append((kind, payload))

    def send_binary(self, data: bytes) -> None:
        self._send(MessageKind.BINARY, data)

    def send_text(self, text: str) -> None:
        self._send(MessageKind.TEXT, text)

    def set_read_deadline(self, deadline: float) -> None:
        self.read_deadline = deadline

    def set_write_deadline(self, deadline: float) -> None:
        self.write_deadline = deadline

    def set_read_limit(self, max_message_size: int) -> None:
        self.read_limit = max_message_size

    def close(self) -> None:
        self.closed = True


def captured_lines(output: io.StringIO):
    """Non-blank lines written to a StringIO emitter output."""
    return [line for line in output.getvalue().split("\n") if line]


def text_frame(text: str) -> bytes:
    """Unmasked server-to-client text frame."""
    payload = text.encode("utf-8")
    size = len(payload)
    if size < 126:
        header = bytes([0x81, size])
    elif size < (1 << 16):
        header = bytes([0x81, 126]) + size.to_bytes(2, "big")
    else:
        header = bytes([0x81, 127]) + size.to_bytes(8, "big")
    return header + payload


class StubbornPeer:
    """Local WebSocket peer on a real socket that never reads after the handshake.

    It accepts one client, answers the opening handshake with the ndt7
    subprotocol, then waits. ``go`` releases the queued ``frames``; after
    sending them it waits for the client's close frame and hangs up.
    """

    def __init__(self, frames=None):
        self.frames = list(frames or [])
        self.go = threading.Event()
        self.released = threading.Event()
        self.listener = socket.create_server(("127.0.0.1", 0))
        self.port = self.listener.getsockname()[1]
        self.thread = threading.Thread(target=self._serve, daemon=True)
        self.thread.start()

    @property
    def url(self) -> str:
        return f"ws://127.0.0.1:{self.port}/ndt/v7/test"

    def _serve(self):
        try:
            conn, _ = self.listener.accept()
        except OSError:
            return
        with conn:
            request = b""
            while b"\r\n\r\n" not in request:
                chunk = conn.recv(4096)
                if not chunk:
                    return
                request += chunk
            key = re.search(rb"sec-websocket-key:\s*(\S+)", request, re.IGNORECASE).group(1).decode()
            conn.sendall((
                "HTTP/1.1 101 Switching Protocols\r\n"
                "Upgrade: websocket\r\n"
                "Connection: Upgrade\r\n"
                f"Sec-WebSocket-Accept: {accept_key(key)}\r\n"
                f"Sec-WebSocket-Protocol: {NDT7_SUBPROTOCOL}\r\n"
                "\r\n"
            ).encode())

            if not self.frames:
                self.released.wait(10)
                return
            self.go.wait(10)
            for frame in self.frames:
                conn.sendall(frame)
            conn.settimeout(10)
            try:
                conn.recv(4096)
            except OSError:
                pass

    def close(self):
        self.released.set()
        self.go.set()
        self.thread.join(5)
        self.listener.close()
