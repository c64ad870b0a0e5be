"""
Configuration constants for the ndt7 measurement client.

This module contains all configuration parameters including:
- Protocol identifiers and discovery endpoints
- Test policy (runtimes, sampling interval, message sizes)
- Size and time conversion factors
- The ClientConfig object threaded through a run
"""

import os
from typing import Optional

# =============================================================================
# PROTOCOL CONFIGURATION
# =============================================================================

# WebSocket subprotocol advertised during the handshake
NDT7_SUBPROTOCOL: str = "net.measurementlab.ndt.v7"

# Server discovery (locate v2)
LOCATE_URL: str = os.getenv(
    "NDT7_LOCATE_URL", "https://locate.measurementlab.net/v2/nearest/ndt/ndt7"
)
LOCATE_TIMEOUT_SECONDS: float = float(os.getenv("NDT7_LOCATE_TIMEOUT_SECONDS", "10"))
LOCATE_MAX_BODY_BYTES: int = 1 << 20
LOCATE_CHUNK_BYTES: int = 1 << 16

# URL template keys in the locate response
LOCATE_DOWNLOAD_KEY: str = "wss:///ndt/v7/download"
LOCATE_UPLOAD_KEY: str = "wss:///ndt/v7/upload"

# Test names, used as the "Test" field of emitted records
TEST_DOWNLOAD: str = "download"
TEST_UPLOAD: str = "upload"
TEST_ROUND_TRIP: str = "roundtrip"
TEST_LOCATE: str = "locate"

# =============================================================================
# TEST POLICY
# =============================================================================

# Upload message sizing
MIN_MESSAGE_SIZE: int = 1 << 10  # 1 KiB
MAX_SCALED_MESSAGE_SIZE: int = 1 << 20  # 1 MiB soft cap for growth
MAX_MESSAGE_SIZE: int = 1 << 24  # 16 MiB hard cap, also the download read limit
FRACTION_FOR_SCALING: int = 16  # message never exceeds ~1/16th of bytes sent

# Download and upload
MAX_RUNTIME_SECONDS: float = 10.0
MEASURE_INTERVAL_SECONDS: float = 0.25

# Round trip
ROUND_TRIP_MAX_MESSAGE_SIZE: int = 1 << 17  # 128 KiB
ROUND_TRIP_RUNTIME_SECONDS: float = 3.0

# =============================================================================
# CONNECTION DEFAULTS
# =============================================================================

DIAL_TIMEOUT_SECONDS: float = 10.0
CLOSE_TIMEOUT_SECONDS: float = 1.0

# =============================================================================
# CONVERSION CONSTANTS
# =============================================================================

BITS_PER_BYTE: int = 8
BITS_PER_MEGABIT: int = 1_000_000
MICROSECONDS_PER_SECOND: int = 1_000_000
MICROSECONDS_PER_MILLISECOND: int = 1_000

# =============================================================================
# OUTPUT
# =============================================================================

RECORD_SEPARATOR: str = "\n\n"  # each record is followed by a blank line

# =============================================================================
# CLI DEFAULTS
# =============================================================================

DEFAULT_PROMETHEUS_PORT: int = 0  # 0 = exporter disabled


class ClientConfig:
    """Settings for one run of the client.

    Built once by the CLI and passed explicitly to the runner and to each
    test, so nothing depends on process-wide mutable state.
    """

    def __init__(
        self,
        download_url: str = "",
        upload_url: str = "",
        round_trip_url: str = "",
        no_verify: bool = False,
        locate_url: str = LOCATE_URL,
        locate_timeout_seconds: float = LOCATE_TIMEOUT_SECONDS,
        dial_timeout_seconds: float = DIAL_TIMEOUT_SECONDS,
        max_runtime_seconds: float = MAX_RUNTIME_SECONDS,
        round_trip_runtime_seconds: float = ROUND_TRIP_RUNTIME_SECONDS,
        measure_interval_seconds: float = MEASURE_INTERVAL_SECONDS,
        prometheus_port: Optional[int] = None,
    ):
        self.download_url = download_url
        self.upload_url = upload_url
        self.round_trip_url = round_trip_url
        self.no_verify = no_verify
        self.locate_url = locate_url
        self.locate_timeout_seconds = locate_timeout_seconds
        self.dial_timeout_seconds = dial_timeout_seconds
        self.max_runtime_seconds = max_runtime_seconds
        self.round_trip_runtime_seconds = round_trip_runtime_seconds
        self.measure_interval_seconds = measure_interval_seconds
        self.prometheus_port = prometheus_port or DEFAULT_PROMETHEUS_PORT

    def has_explicit_endpoints(self) -> bool:
        """True when at least one test URL was given, which disables locate."""
        return bool(self.download_url or self.upload_url or self.round_trip_url)

    def __repr__(self) -> str:
        return (
            f"ClientConfig(download='{self.download_url}', upload='{self.upload_url}', "
            f"round_trip='{self.round_trip_url}', no_verify={self.no_verify})"
        )
