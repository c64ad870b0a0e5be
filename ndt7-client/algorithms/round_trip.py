"""
Round-trip test: answer the server's timestamped probes to measure latency.
"""

import json
import time
import logging
import threading

from algorithms.measurement_loop import MeasurementLoop
from common.errors import DecodeError, UnexpectedMessageKind
from common.metrics_utils import elapsed_microseconds
from configuration import ClientConfig, ROUND_TRIP_MAX_MESSAGE_SIZE
from observability.emitter import ReportEmitter
from systems.base import MessageKind, MessageStream

logger = logging.getLogger(__name__)


class RoundTripRequest:
    """Probe sent by the server.

    Attributes:
        srtt: Smoothed RTT (µs)
        rttvar: RTT variance (µs)
        sender_time: Server clock when the probe was sent (µs)
    """

    def __init__(self, srtt: float, rttvar: float, sender_time: int):
        self.srtt = srtt
        self.rttvar = rttvar
        self.sender_time = sender_time

    @classmethod
    def from_json(cls, text: str) -> "RoundTripRequest":
        """Decode a probe; ``ST`` is required, the RTT estimates default to zero.

        Raises:
            DecodeError: If the payload is not a JSON object with an integer ST
        """
        try:
            data = json.loads(text)
        except ValueError as e:
            raise DecodeError(f"invalid round-trip request: {e}") from e
        if not isinstance(data, dict):
            raise DecodeError("invalid round-trip request: not an object")
        sender_time = data.get("ST")
        if isinstance(sender_time, bool) or not isinstance(sender_time, int):
            raise DecodeError(f"invalid round-trip request: bad ST {sender_time!r}")
        try:
            srtt = float(data.get("SRTT", 0.0))
            rttvar = float(data.get("RTTVar", 0.0))
        except (TypeError, ValueError) as e:
            raise DecodeError(f"invalid round-trip request: {e}") from e
        return cls(srtt, rttvar, sender_time)

    def __repr__(self) -> str:
        return f"RoundTripRequest(SRTT={self.srtt}, RTTVar={self.rttvar}, ST={self.sender_time})"


class RoundTripReply:
    """Client answer to a probe, all fields in µs."""

    def __init__(self, sender_time_echo: int, sender_time_difference: int, receiver_time: int):
        self.sender_time_echo = sender_time_echo
        self.sender_time_difference = sender_time_difference
        self.receiver_time = receiver_time

    @classmethod
    def for_request(cls, request: RoundTripRequest, received_us: int, sent_us: int) -> "RoundTripReply":
        return cls(
            sender_time_echo=request.sender_time,
            sender_time_difference=received_us - request.sender_time,
            receiver_time=sent_us,
        )

    def to_json(self) -> str:
        return json.dumps(
            {"STE": self.sender_time_echo, "STD": self.sender_time_difference, "RT": self.receiver_time},
            separators=(",", ":"),
        )


class RoundTripTest:
    """Receives probes and replies to each one until the deadline."""

    def __init__(
        self,
        stream: MessageStream,
        emitter: ReportEmitter,
        config: ClientConfig,
        stop_event: threading.Event,
        clock=time.monotonic,
    ):
        self.stream = stream
        self.emitter = emitter
        self.config = config
        self.stop_event = stop_event
        self.clock = clock
        self.start_ts = None
        self.replies_sent = 0

    def _step(self) -> None:
        kind, payload = self.stream.receive()
        # Timestamp before decoding so parse cost does not skew the measurement.
        received_us = elapsed_microseconds(self.start_ts, self.clock())
        if kind != MessageKind.TEXT:
            raise UnexpectedMessageKind(f"unexpected message type: {kind.value}")

        request = RoundTripRequest.from_json(payload)
        self.emitter.emit_round_trip(request.srtt, request.rttvar, received_us)

        reply = RoundTripReply.for_request(
            request, received_us, elapsed_microseconds(self.start_ts, self.clock())
        )
        self.stream.send_text(reply.to_json())
        self.replies_sent += 1

    def run(self) -> int:
        """Run until cancelled or the stream fails.

        Returns:
            Number of replies sent

        Raises:
            MeasurementError: On stream failure, non-text message or undecodable probe
        """
        self.replies_sent = 0
        self.start_ts = self.clock()
        deadline = self.start_ts + self.config.round_trip_runtime_seconds
        self.stream.set_read_deadline(deadline)
        self.stream.set_write_deadline(deadline)
        self.stream.set_read_limit(ROUND_TRIP_MAX_MESSAGE_SIZE)

        logger.info(f"Starting round-trip test for {self.config.round_trip_runtime_seconds}s")
        try:
            MeasurementLoop(self.stop_event).run(self._step)
        finally:
            logger.info(f"Round-trip test ended after {self.replies_sent} replies")
        return self.replies_sent
