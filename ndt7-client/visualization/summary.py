"""
Tabular summary of a captured record stream.
"""

import logging
from typing import Dict, Iterable

import pandas as pd

from common.metrics_utils import (
    calculate_latency_stats,
    calculate_throughput_mbps,
    microseconds_to_ms,
    microseconds_to_seconds,
)
from configuration import TEST_ROUND_TRIP
from visualization.formatter import parse_records

logger = logging.getLogger(__name__)


def load_records(lines: Iterable[str]) -> pd.DataFrame:
    """Flatten AppInfo and Failure records into one DataFrame.

    Columns: test, num_bytes, elapsed_us, srtt_ms, rttvar_ms, failure.
    """
    rows = []
    for record in parse_records(lines):
        app_info = record.get("AppInfo") or {}
        rows.append({
            'test': record.get("Test", ""),
            'num_bytes': app_info.get("NumBytes"),
            'elapsed_us': app_info.get("ElapsedTime"),
            'srtt_ms': microseconds_to_ms(app_info["SRTT"]) if "SRTT" in app_info else None,
            'rttvar_ms': microseconds_to_ms(app_info["RTTVar"]) if "RTTVar" in app_info else None,
            'failure': record.get("Failure"),
        })
    columns = ['test', 'num_bytes', 'elapsed_us', 'srtt_ms', 'rttvar_ms', 'failure']
    return pd.DataFrame(rows, columns=columns)


def summarize(lines: Iterable[str]) -> Dict[str, Dict]:
    """
    Summarize a captured stream per sub-test.

    Byte-counting tests report the last counter sample and the mean
    throughput it implies; the round-trip test reports SRTT statistics.

    Args:
        lines: Lines of the captured JSON stream

    Returns:
        Dictionary mapping test name to its statistics
    """
    data = load_records(lines)
    if len(data) == 0:
        logger.warning("No records to summarize")
        return {}

    summary = {}
    for test in data['test'].unique():
        test_data = data[data['test'] == test]
        failures = test_data['failure'].dropna()
        entry = {
            'records': int(len(test_data)),
            'failure': str(failures.iloc[-1]) if len(failures) else None,
        }

        if test == TEST_ROUND_TRIP:
            samples = test_data.dropna(subset=['srtt_ms'])
            stats = calculate_latency_stats(samples, 'srtt_ms')
            entry.update({
                'samples': int(len(samples)),
                'avg_srtt_ms': stats['avg'],
                'p50_srtt_ms': stats['p50'],
                'p95_srtt_ms': stats['p95'],
            })
        else:
            samples = test_data.dropna(subset=['num_bytes', 'elapsed_us'])
            if len(samples):
                last = samples.sort_values('elapsed_us').iloc[-1]
                num_bytes = int(last['num_bytes'])
                elapsed_us = int(last['elapsed_us'])
            else:
                num_bytes, elapsed_us = 0, 0
            entry.update({
                'samples': int(len(samples)),
                'num_bytes': num_bytes,
                'elapsed_seconds': microseconds_to_seconds(elapsed_us),
                'throughput_mbps': calculate_throughput_mbps(num_bytes, elapsed_us),
            })

        summary[test] = entry
        logger.debug(f"Summary for {test}: {entry}")

    return summary


def format_summary(summary: Dict[str, Dict]) -> str:
    """Render a summary as aligned text lines."""
    lines = []
    for test, entry in summary.items():
        if test == TEST_ROUND_TRIP:
            line = (
                f"{test:>10}: srtt avg {entry['avg_srtt_ms']:.3f} ms, "
                f"p50 {entry['p50_srtt_ms']:.3f} ms, p95 {entry['p95_srtt_ms']:.3f} ms "
                f"({entry['samples']} samples)"
            )
        else:
            line = (
                f"{test:>10}: {entry['throughput_mbps']:.2f} Mbit/s, "
                f"{entry['num_bytes']} bytes in {entry['elapsed_seconds']:.2f} s"
            )
        if entry['failure']:
            line += f" [failure: {entry['failure']}]"
        lines.append(line)
    return "\n".join(lines)
