"""
Download test: receive from the server until the deadline and count bytes.
"""

import time
import logging
import threading

from algorithms.measurement_loop import MeasurementLoop
from common.metrics_utils import elapsed_microseconds
from common.periodic_sampler import PeriodicSampler
from configuration import ClientConfig, MAX_MESSAGE_SIZE, TEST_DOWNLOAD
from observability.emitter import ReportEmitter
from systems.base import MessageKind, MessageStream

logger = logging.getLogger(__name__)


class DownloadTest:
    """Receives messages until the read deadline, reporting progress periodically.

    Text messages carry measurements formatted by the server; they are
    forwarded verbatim and their bytes count toward the total like binary
    ones. The client emits its own counter records for binary traffic.
    """

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

    def _step(self) -> None:
        kind, payload = self.stream.receive()
        if kind == MessageKind.TEXT:
            self.total_bytes += len(payload.encode("utf-8"))
            self.emitter.emit_raw(payload)
        else:
            self.total_bytes += len(payload)

    def _sample(self) -> None:
        self.emitter.emit_app_info(
            TEST_DOWNLOAD, self.total_bytes, elapsed_microseconds(self.start_ts, self.clock())
        )

    def run(self) -> int:
        """Run the download until cancelled or the stream fails.

        Returns:
            Total bytes received when the loop was cancelled

        Raises:
            MeasurementError: On any stream failure, including deadline expiry
        """
        self.total_bytes = 0
        self.start_ts = self.clock()
        self.stream.set_read_deadline(self.start_ts + self.config.max_runtime_seconds)
        self.stream.set_read_limit(MAX_MESSAGE_SIZE)

        logger.info(f"Starting download test for {self.config.max_runtime_seconds}s")
        sampler = PeriodicSampler(self.config.measure_interval_seconds, clock=self.clock)
        try:
            MeasurementLoop(self.stop_event, sampler).run(self._step, self._sample)
        finally:
            logger.info(f"Download test ended after {self.total_bytes} bytes")
        return self.total_bytes
