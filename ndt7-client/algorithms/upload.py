"""
Upload test with adaptive message sizing.
"""

import time
import logging
import threading

from algorithms.measurement_loop import MeasurementLoop
from common.metrics_utils import elapsed_microseconds
from common.periodic_sampler import PeriodicSampler
from configuration import (
    ClientConfig,
    MIN_MESSAGE_SIZE,
    MAX_SCALED_MESSAGE_SIZE,
    MAX_MESSAGE_SIZE,
    FRACTION_FOR_SCALING,
    TEST_UPLOAD,
)
from observability.emitter import ReportEmitter
from systems.base import MessageStream

logger = logging.getLogger(__name__)


def next_message_size(
    size: int,
    total_bytes: int,
    max_scaled_size: int = MAX_SCALED_MESSAGE_SIZE,
    fraction: int = FRACTION_FOR_SCALING,
    hard_cap: int = MAX_MESSAGE_SIZE,
) -> int:
    """Decide the size of the next upload message.

    The size doubles only while it is below the soft cap and below
    ``total_bytes // fraction``, so no single message dominates a short
    test while the size still ramps up geometrically on a fast path.

    Args:
        size: Current message size
        total_bytes: Bytes sent so far, including the last message
        max_scaled_size: Growth stops at this size
        fraction: Message may not exceed roughly total_bytes / fraction
        hard_cap: Absolute maximum message size

    Returns:
        Size for the next write
    """
    if size >= max_scaled_size or size >= total_bytes // fraction:
        return size
    return min(size << 1, hard_cap)


def prepare_message(size: int) -> bytes:
    """Build a fresh zero-filled binary payload of ``size`` bytes."""
    return bytes(size)


class UploadTest:
    """Writes prepared messages until the write deadline, growing them as the transfer proves itself."""

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
        self.total_bytes = 0
        self.start_ts = None
        self.message = b""
        self.size_history = []

    @property
    def message_size(self) -> int:
        return len(self.message)

    def _step(self) -> None:
        self.stream.send_binary(self.message)
        self.total_bytes += self.message_size

    def _sample(self) -> None:
        self.emitter.emit_app_info(
            TEST_UPLOAD, self.total_bytes, elapsed_microseconds(self.start_ts, self.clock())
        )

    def _grow(self) -> None:
        size = next_message_size(self.message_size, self.total_bytes)
        if size != self.message_size:
            self.message = prepare_message(size)
            self.size_history.append(size)
            logger.debug(f"Upload message size -> {size} bytes after {self.total_bytes} bytes")

    def run(self) -> int:
        """Run the upload until cancelled or the stream fails.

        Returns:
            Total bytes sent when the loop was cancelled

        Raises:
            MeasurementError: On any stream failure, including deadline expiry
        """
        self.total_bytes = 0
        self.start_ts = self.clock()
        self.stream.set_write_deadline(self.start_ts + self.config.max_runtime_seconds)
        self.message = prepare_message(MIN_MESSAGE_SIZE)
        self.size_history = [MIN_MESSAGE_SIZE]

        logger.info(f"Starting upload test for {self.config.max_runtime_seconds}s")
        sampler = PeriodicSampler(self.config.measure_interval_seconds, clock=self.clock)

        try:
            MeasurementLoop(self.stop_event, sampler).run(self._step, self._sample, self._grow)
        finally:
            logger.info(
                f"Upload test ended after {self.total_bytes} bytes, "
                f"final message size {self.message_size} bytes"
            )
        return self.total_bytes
