"""
Runs the requested sub-tests in sequence, one connection per sub-test.
"""

import time
import logging
import threading
from typing import Callable, List, Optional, Tuple

from algorithms.download import DownloadTest
from algorithms.round_trip import RoundTripTest
from algorithms.upload import UploadTest
from common.errors import ConnectError, LocateError, MeasurementError
from common.stream_factory import dial_stream
from configuration import (
    ClientConfig,
    TEST_DOWNLOAD,
    TEST_UPLOAD,
    TEST_ROUND_TRIP,
    TEST_LOCATE,
)
from observability.emitter import ReportEmitter
from runner.locate import Locator
from systems.base import MessageStream

logger = logging.getLogger(__name__)

# Execution order of the sub-tests
TEST_PLAN = (
    (TEST_ROUND_TRIP, "round_trip_url", RoundTripTest),
    (TEST_DOWNLOAD, "download_url", DownloadTest),
    (TEST_UPLOAD, "upload_url", UploadTest),
)


class TestRunner:
    """Resolves endpoints and runs round-trip, download and upload in order.

    Failing to locate a server or to connect is fatal for the whole run.
    A failure inside a sub-test is reported and the next sub-test still runs.
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        config: ClientConfig,
        emitter: ReportEmitter,
        stop_event: Optional[threading.Event] = None,
        dial: Callable[[str, ClientConfig], MessageStream] = dial_stream,
        locator: Optional[Locator] = None,
        clock=time.monotonic,
    ):
        self.config = config
        self.emitter = emitter
        self.stop_event = stop_event or threading.Event()
        self.dial = dial
        self.locator = locator or Locator(config.locate_url, config.locate_timeout_seconds)
        self.clock = clock
        self.failures: List[Tuple[str, str]] = []

    def _fail(self, test: str, error: Exception) -> None:
        logger.error(f"{test} failed: {error}")
        self.failures.append((test, str(error)))
        self.emitter.emit_failure(test, error)

    def locate(self) -> bool:
        """Locate a server unless endpoints were given explicitly."""
        if self.config.has_explicit_endpoints():
            logger.debug("Explicit endpoints given, skipping locate")
            return True
        try:
            self.locator.resolve(self.config)
        except LocateError as e:
            self._fail(TEST_LOCATE, e)
            return False
        return True

    def run_test(self, name: str, url: str, test_class) -> bool:
        """Dial ``url`` and run one sub-test on it.

        Returns:
            False if the connection could not be established
        """
        try:
            stream = self.dial(url, self.config)
        except ConnectError as e:
            self._fail(name, e)
            return False

        with stream:
            test = test_class(stream, self.emitter, self.config, self.stop_event, clock=self.clock)
            try:
                test.run()
            except MeasurementError as e:
                self._fail(name, e)
        return True

    def run(self) -> int:
        """Run every configured sub-test.

        Returns:
            Process exit status: 0 on success, 1 after a fatal error
        """
        if not self.locate():
            return 1

        for name, url_attr, test_class in TEST_PLAN:
            url = getattr(self.config, url_attr)
            if not url:
                continue
            if self.stop_event.is_set():
                logger.info(f"Cancelled, skipping {name}")
                continue
            logger.info(f"=== {name} ===")
            if not self.run_test(name, url, test_class):
                return 1
        return 0
