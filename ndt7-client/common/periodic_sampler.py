"""
Non-blocking periodic sampler for measurement loops.
"""

import time
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicSampler:
    """Tells a tight I/O loop when a sampling interval boundary has passed.

    Ticks are aligned on ``start + k * interval``. A tick is consumed by the
    first ``due()`` call that observes it; ticks missed while the loop was
    blocked in I/O collapse into a single one.
    """

    def __init__(self, interval_seconds: float, clock: Callable[[], float] = time.monotonic):
        """Initialize the sampler.

        Args:
            interval_seconds: Length of one sampling interval
            clock: Monotonic time source (seconds)
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval must be positive, got {interval_seconds}")
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._start_ts: Optional[float] = None
        self._next_tick_ts: Optional[float] = None
        self.ticks = 0

    def start(self) -> None:
        """Arm the sampler; the first tick is one interval from now."""
        self._start_ts = self._clock()
        self._next_tick_ts = self._start_ts + self.interval_seconds
        self.ticks = 0
        logger.debug(f"Sampler started with {self.interval_seconds}s interval")

    def stop(self) -> None:
        """Release the sampler. A stopped sampler is never due."""
        if self._start_ts is not None:
            logger.debug(f"Sampler stopped after {self.ticks} ticks")
        self._start_ts = None
        self._next_tick_ts = None

    @property
    def running(self) -> bool:
        return self._next_tick_ts is not None

    def due(self) -> bool:
        """Return True if a tick is pending, consuming it. Never blocks."""
        if self._next_tick_ts is None:
            return False
        now = self._clock()
        if now < self._next_tick_ts:
            return False
        # Skip every boundary already behind us so late checks fire once.
        while self._next_tick_ts <= now:
            self._next_tick_ts += self.interval_seconds
        self.ticks += 1
        return True

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False

    def __repr__(self) -> str:
        return f"PeriodicSampler(interval={self.interval_seconds}s, running={self.running}, ticks={self.ticks})"
