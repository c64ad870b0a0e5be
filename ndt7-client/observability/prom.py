"""
Simple Prometheus metrics exporter for the ndt7 client.
"""

import logging
from typing import Optional

from prometheus_client import start_http_server, CollectorRegistry, Counter, Gauge, REGISTRY

from common.metrics_utils import calculate_throughput_mbps, microseconds_to_ms

logger = logging.getLogger(__name__)


class SimplePrometheusExporter:
    """Simple Prometheus metrics exporter fed by the report emitter."""

    def __init__(self, port: int = 9100, registry: Optional[CollectorRegistry] = None):
        self.port = port
        self.registry = registry or REGISTRY
        self.server_started = False
        self._last_bytes = {}

        # Define metrics
        self.bytes_total = Counter(
            'ndt7_bytes_total', 'Total bytes transferred', ['test'], registry=self.registry
        )
        self.throughput = Gauge(
            'ndt7_throughput_mbps', 'Mean throughput since test start in Mbps', ['test'],
            registry=self.registry,
        )
        self.srtt = Gauge('ndt7_srtt_ms', 'Smoothed RTT reported by the server', registry=self.registry)
        self.rttvar = Gauge('ndt7_rttvar_ms', 'RTT variance reported by the server', registry=self.registry)
        self.failures_total = Counter(
            'ndt7_failures_total', 'Sub-tests that ended in failure', ['test'], registry=self.registry
        )

    def start_server(self):
        """Start the Prometheus HTTP server."""
        if not self.server_started:
            try:
                start_http_server(self.port, registry=self.registry)
                self.server_started = True
                logger.info(f"Prometheus server started on port {self.port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus server: {e}")

    def record_app_info(self, test: str, num_bytes: int, elapsed_us: int):
        """Record a byte counter sample; counters only advance by the delta."""
        delta = num_bytes - self._last_bytes.get(test, 0)
        if delta > 0:
            self.bytes_total.labels(test=test).inc(delta)
        self._last_bytes[test] = max(num_bytes, self._last_bytes.get(test, 0))
        self.throughput.labels(test=test).set(calculate_throughput_mbps(num_bytes, elapsed_us))

    def record_round_trip(self, srtt_us: float, rttvar_us: float):
        self.srtt.set(microseconds_to_ms(srtt_us))
        self.rttvar.set(microseconds_to_ms(rttvar_us))

    def record_failure(self, test: str):
        self.failures_total.labels(test=test).inc()
