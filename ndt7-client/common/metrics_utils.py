"""
Shared utilities for measurement calculations: elapsed time, throughput and latency.
"""

import logging
import pandas as pd
from configuration import (
    BITS_PER_BYTE,
    BITS_PER_MEGABIT,
    MICROSECONDS_PER_SECOND,
    MICROSECONDS_PER_MILLISECOND,
)

logger = logging.getLogger(__name__)


def elapsed_microseconds(start_ts: float, now_ts: float) -> int:
    """
    Convert the distance between two monotonic timestamps to whole microseconds.

    Args:
        start_ts: Start timestamp in seconds
        now_ts: Later timestamp in seconds

    Returns:
        Elapsed time in whole microseconds (rounded), never negative
    """
    return max(0, int(round((now_ts - start_ts) * MICROSECONDS_PER_SECOND)))


def calculate_throughput_mbps(num_bytes: float, elapsed_us: float) -> float:
    """
    Calculate throughput in megabits per second from a byte count and elapsed microseconds.

    A zero or negative elapsed time yields 0.0 so that records emitted at the
    very start of a test still render.

    Args:
        num_bytes: Total bytes transferred
        elapsed_us: Elapsed time in microseconds

    Returns:
        Throughput in Mbit/s
    """
    if elapsed_us <= 0:
        return 0.0
    seconds = elapsed_us / MICROSECONDS_PER_SECOND
    return (num_bytes * BITS_PER_BYTE) / (seconds * BITS_PER_MEGABIT)


def microseconds_to_ms(value_us: float) -> float:
    """Convert microseconds to milliseconds."""
    return value_us / MICROSECONDS_PER_MILLISECOND


def microseconds_to_seconds(value_us: float) -> float:
    """Convert microseconds to seconds."""
    return value_us / MICROSECONDS_PER_SECOND


def calculate_latency_stats(data: pd.DataFrame, latency_col: str = 'srtt_ms') -> dict:
    """
    Calculate latency statistics (mean and percentiles) from a DataFrame.

    Args:
        data: DataFrame with one latency sample per row
        latency_col: Column name for latency values (default: 'srtt_ms')

    Returns:
        Dictionary with avg, p50, p95 latency statistics
    """
    if len(data) == 0 or latency_col not in data.columns:
        return {
            'avg': 0.0,
            'p50': 0.0,
            'p95': 0.0,
        }

    latencies = data[latency_col].dropna()
    if len(latencies) == 0:
        return {'avg': 0.0, 'p50': 0.0, 'p95': 0.0}

    return {
        'avg': float(latencies.mean()),
        'p50': float(latencies.quantile(0.5)),
        'p95': float(latencies.quantile(0.95)),
    }
