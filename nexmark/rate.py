"""
Event-time scheduling.

Maps a global index to the simulated millisecond timestamp of its event and,
for paced streams, to how far (in simulated seconds) it lies after the index
the stream started from. All arithmetic is exact (fractions of a
microsecond), so timestamps are monotone in the index however long the
stream runs.
"""

import math
from bisect import bisect_right
from fractions import Fraction
from typing import NamedTuple, Optional

from .errors import ConfigError, GenerationError

MAX_TIMESTAMP = (1 << 63) - 1
US_PER_SECOND = 1_000_000


class Schedule(NamedTuple):
    timestamp: int
    # Simulated seconds after the stream origin; None in burst mode.
    ready_offset: Optional[float]


class RateSchedule:
    """Precomputed rate table for one configuration."""

    def __init__(self, config):
        self.base_time = config.base_time
        shape = config.rate_shape
        if shape is None:
            self._rate = Fraction(config.base_rate)
            self._steps = None
            return

        self._period_us = Fraction(shape.period) * US_PER_SECOND
        self._step_us = self._period_us / shape.steps
        step_seconds = Fraction(shape.period) / shape.steps
        self._rates = []
        self._ends = []
        self._starts = []
        total = 0
        for k in range(shape.steps):
            swing = (1 - math.cos(2 * math.pi * k / shape.steps)) / 2
            rate = Fraction(shape.min_rate + (shape.max_rate - shape.min_rate) * swing)
            events = math.floor(rate * step_seconds)
            self._rates.append(rate)
            self._starts.append(total)
            total += events
            self._ends.append(total)
        if total == 0:
            raise ConfigError(
                f"rate_shape {shape} produces no events in a period; raise max_rate or the period"
            )
        self._steps = shape.steps
        self._epoch_events = total

    @property
    def periodic(self):
        return self._steps is not None

    @property
    def events_per_period(self):
        return self._epoch_events if self._steps is not None else None

    def offset_us(self, global_index):
        """Simulated microseconds between index 0 and global_index (floored)."""
        if self._steps is None:
            return math.floor(global_index * US_PER_SECOND / self._rate)
        epoch, n = divmod(global_index, self._epoch_events)
        k = bisect_right(self._ends, n)
        into_step = (n - self._starts[k]) * US_PER_SECOND / self._rates[k]
        return math.floor(epoch * self._period_us + k * self._step_us + into_step)

    def timestamp(self, global_index):
        ts = self.base_time + self.offset_us(global_index) // 1000
        if ts > MAX_TIMESTAMP:
            raise GenerationError(f"timestamp overflow at event {global_index}", index=global_index)
        return ts

    def ready_offset(self, global_index, origin):
        """Simulated seconds from the origin index to global_index."""
        return (self.offset_us(global_index) - self.offset_us(origin)) / US_PER_SECOND

    def rate_at(self, global_index):
        """Nominal events per second in effect at global_index."""
        if self._steps is None:
            return float(self._rate)
        n = global_index % self._epoch_events
        return float(self._rates[bisect_right(self._ends, n)])


def schedule(global_index, config, origin=None):
    """Timestamp of an event, plus its ready offset when paced from `origin`."""
    table = config.rate_schedule
    offset = None if origin is None else table.ready_offset(global_index, origin)
    return Schedule(table.timestamp(global_index), offset)


def timestamp_of(global_index, config):
    return config.rate_schedule.timestamp(global_index)
