"""
Shared run loop for the measurement tests.
"""

import logging
import threading
from typing import Callable, Optional

from common.periodic_sampler import PeriodicSampler

logger = logging.getLogger(__name__)


class MeasurementLoop:
    """Runs one I/O step at a time until cancelled, sampling between steps.

    Each test supplies ``step`` (one receive or send plus its accounting) and,
    optionally, ``on_sample`` which is called after a step whenever the
    sampler reports that an interval boundary passed. Deadline expiry is
    surfaced by the stream as an exception raised from ``step``, which ends
    the loop and propagates to the caller.
    """

    def __init__(self, stop_event: threading.Event, sampler: Optional[PeriodicSampler] = None):
        self.stop_event = stop_event
        self.sampler = sampler
        self.iterations = 0

    def run(
        self,
        step: Callable[[], None],
        on_sample: Optional[Callable[[], None]] = None,
        after_step: Optional[Callable[[], None]] = None,
    ) -> int:
        """Run until the stop event is set or ``step`` raises.

        Args:
            step: One I/O operation and its accounting
            on_sample: Called after a step when an interval boundary passed
            after_step: Called last in every iteration, after sampling

        Returns:
            Number of completed iterations
        """
        if self.sampler is not None:
            with self.sampler:
                self._loop(step, on_sample, after_step)
        else:
            self._loop(step, None, after_step)
        logger.debug(f"Loop finished after {self.iterations} iterations (cancelled)")
        return self.iterations

    def _loop(self, step, on_sample, after_step) -> None:
        while not self.stop_event.is_set():
            step()
            self.iterations += 1
            if on_sample is not None and self.sampler.due():
                on_sample()
            if after_step is not None:
                after_step()
