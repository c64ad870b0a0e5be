"""Test suite for the non-blocking periodic sampler."""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import pytest

from common.periodic_sampler import PeriodicSampler
from stream_fakes import ManualClock


class TestPeriodicSampler:
    """Test cases for tick consumption and release."""

    def test_not_due_before_first_interval(self):
        """Should not fire before one interval has passed."""
        clock = ManualClock()
        with PeriodicSampler(0.25, clock=clock) as sampler:
            clock.advance(0.1)
            assert sampler.due() is False
            clock.advance(0.1)
            assert sampler.due() is False

    def test_fires_once_per_boundary(self):
        """A tick is consumed by the first check that observes it."""
        clock = ManualClock()
        with PeriodicSampler(0.25, clock=clock) as sampler:
            clock.advance(0.25)
            assert sampler.due() is True
            assert sampler.due() is False
            clock.advance(0.25)
            assert sampler.due() is True
            assert sampler.ticks == 2

    def test_missed_ticks_do_not_queue(self):
        """A late check after several intervals fires only once."""
        clock = ManualClock()
        with PeriodicSampler(0.25, clock=clock) as sampler:
            clock.advance(1.1)  # four boundaries passed
            assert sampler.due() is True
            assert sampler.due() is False
            clock.advance(0.1)  # 1.2 < next boundary at 1.25
            assert sampler.due() is False
            clock.advance(0.05)
            assert sampler.due() is True

    def test_stopped_sampler_is_never_due(self):
        """Leaving the context releases the sampler."""
        clock = ManualClock()
        with PeriodicSampler(0.25, clock=clock) as sampler:
            assert sampler.running
        clock.advance(10)
        assert not sampler.running
        assert sampler.due() is False

    def test_released_on_error(self):
        """The sampler is stopped even when the loop body raises."""
        clock = ManualClock()
        sampler = PeriodicSampler(0.25, clock=clock)
        with pytest.raises(RuntimeError):
            with sampler:
                raise RuntimeError("boom")
        assert not sampler.running

    def test_invalid_interval(self):
        """A non-positive interval is rejected."""
        with pytest.raises(ValueError):
            PeriodicSampler(0)
