"""
Report emitter writing measurement records as newline-delimited JSON.
"""

import sys
import json
import logging
from typing import Optional, TextIO

from configuration import RECORD_SEPARATOR, TEST_ROUND_TRIP

logger = logging.getLogger(__name__)


def _dumps(record: dict) -> str:
    return json.dumps(record, separators=(",", ":"))


class ReportEmitter:
    """Writes one JSON object per line, each followed by a blank line.

    Records are written synchronously and flushed immediately so that a
    downstream formatter reading the pipe sees them live.
    """

    def __init__(self, output: Optional[TextIO] = None, metrics=None):
        """Initialize the emitter.

        Args:
            output: Text stream to write to (default: sys.stdout at write time)
            metrics: Optional sink with record_app_info/record_round_trip/record_failure
        """
        self._output = output
        self.metrics = metrics
        self.records_emitted = 0

    @property
    def output(self) -> TextIO:
        return self._output if self._output is not None else sys.stdout

    def _write(self, line: str) -> None:
        self.output.write(line + RECORD_SEPARATOR)
        self.output.flush()
        self.records_emitted += 1

    def emit_app_info(self, test: str, num_bytes: int, elapsed_us: int) -> None:
        """Emit a client-side byte counter record for download or upload."""
        self._write(_dumps({
            "AppInfo": {"NumBytes": num_bytes, "ElapsedTime": elapsed_us},
            "Test": test,
        }))
        if self.metrics is not None:
            self.metrics.record_app_info(test, num_bytes, elapsed_us)

    def emit_round_trip(self, srtt_us: float, rttvar_us: float, elapsed_us: int) -> None:
        """Emit a round-trip record built from the server's smoothed RTT estimates."""
        self._write(_dumps({
            "AppInfo": {"SRTT": float(srtt_us), "RTTVar": float(rttvar_us), "ElapsedTime": elapsed_us},
            "Test": TEST_ROUND_TRIP,
        }))
        if self.metrics is not None:
            self.metrics.record_round_trip(srtt_us, rttvar_us)

    def emit_raw(self, text: str) -> None:
        """Pass a server-formatted measurement through verbatim."""
        self._write(text)

    def emit_failure(self, test: str, error) -> None:
        """Emit the terminal record of a failed sub-test."""
        self._write(_dumps({"Failure": str(error), "Test": test}))
        if self.metrics is not None:
            self.metrics.record_failure(test)
