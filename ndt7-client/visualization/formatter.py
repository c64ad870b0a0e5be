"""
Human-readable rendering of the client's JSON record stream.
"""

import json
import logging
from typing import Dict, Iterable, Iterator, Optional

from common.metrics_utils import (
    calculate_throughput_mbps,
    microseconds_to_ms,
    microseconds_to_seconds,
)
from configuration import TEST_ROUND_TRIP

logger = logging.getLogger(__name__)


def parse_records(lines: Iterable[str]) -> Iterator[Dict]:
    """Yield the JSON objects of a record stream, skipping blank and malformed lines."""
    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except ValueError:
            logger.debug(f"Skipping non-JSON line: {line[:80]}")
            continue
        if isinstance(record, dict):
            yield record


class StreamFormatter:
    """Renders records as live-updating lines.

    Every progress record starts with a carriage return so a terminal
    overwrites the previous value of the same test; a newline separates
    consecutive tests. Rendering is a pure function of the input.
    """

    def format_record(self, record: Dict) -> Optional[str]:
        """Render one record, or return None if it has no known shape."""
        test = record.get("Test", "")
        if "Failure" in record:
            return f"\n{test}: failure: {record['Failure']}\n"

        app_info = record.get("AppInfo")
        if not isinstance(app_info, dict):
            return None
        elapsed_us = app_info.get("ElapsedTime", 0) or 0

        if test == TEST_ROUND_TRIP or "SRTT" in app_info:
            return (
                f"\r{test}: srtt {microseconds_to_ms(app_info.get('SRTT', 0.0)):.3f} ms "
                f"rttvar {microseconds_to_ms(app_info.get('RTTVar', 0.0)):.3f} ms"
            )

        num_bytes = app_info.get("NumBytes", 0) or 0
        return (
            f"\r{test}: {calculate_throughput_mbps(num_bytes, elapsed_us):.2f} Mbit/s "
            f"({num_bytes} bytes in {microseconds_to_seconds(elapsed_us):.2f} s)"
        )

    def render(self, lines: Iterable[str]) -> str:
        """Render a whole captured stream."""
        output = []
        current_test = None
        for record in parse_records(lines):
            text = self.format_record(record)
            if text is None:
                continue
            test = record.get("Test")
            if current_test is not None and test != current_test:
                output.append("\n")
            current_test = test
            output.append(text)
        if output:
            output.append("\n")
        return "".join(output)
