"""
The event generator driver.

`at()` is the pure lookup of the event at any index. `EventGenerator` walks
indices in order with a single cursor, optionally pacing events to the
simulated timeline, and can be bounded, filtered by kind, strided across
workers and cancelled between events.
"""

import enum
import logging
import threading
import time

from .errors import GenerationError
from .factories import make_entity
from .model import Event
from .rate import schedule, timestamp_of
from .scheduler import EventKind, kind_of, next_index_of

logger = logging.getLogger(__name__)


class StreamState(enum.Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


EXHAUSTED = StreamState.EXHAUSTED
CANCELLED = StreamState.CANCELLED


def at(global_index, config):
    """The event at global_index. Pure: independent of any driver."""
    kind, per_kind_index = kind_of(global_index, config)
    timestamp = timestamp_of(global_index, config)
    return Event(kind, global_index, timestamp, make_entity(kind, per_kind_index, timestamp, config))


def generate_range(start, stop, config, kinds=None):
    """Yield the events at indices [start, stop), optionally only some kinds."""
    wanted = frozenset(kinds) if kinds else None
    for index in range(start, stop):
        if wanted is not None and kind_of(index, config)[0] not in wanted:
            continue
        yield at(index, config)


class EventGenerator:
    """Deterministic Nexmark event stream starting at an arbitrary index.

    Worker k of n covers indices start + k, start + k + n, ... when built
    with start=start + k and step=n.
    """

    def __init__(self, config, start=0, step=1, kinds=None, paced=False,
                 cancel=None, clock=time.monotonic):
        if start < 0:
            raise ValueError(f"start must be non-negative, got {start}")
        if step < 1:
            raise ValueError(f"step must be positive, got {step}")
        self.config = config
        self.paced = paced
        self.state = StreamState.NOT_STARTED
        self.emitted = 0
        self._origin = start
        self._cursor = start
        self._step = step
        self._kinds = frozenset(EventKind(k) for k in kinds) if kinds else None
        self._cancel = cancel if cancel is not None else threading.Event()
        self._clock = clock
        self._started_at = None

    @property
    def next_index(self):
        """Where to resume this stream from in a new generator."""
        return self._cursor

    @property
    def cancelled(self):
        return self._cancel.is_set()

    def cancel(self):
        """Ask the stream to stop; honoured at the next step boundary."""
        self._cancel.set()

    def _finish(self, state):
        if self.state is StreamState.RUNNING:
            logger.debug("Stream %s after %d events (next index %d)", state.value, self.emitted, self._cursor)
        self.state = state
        return state

    def _seek(self, index):
        """First index >= index on this stride whose kind is wanted, or None."""
        if self._kinds is None:
            return index
        if self._step == 1:
            return next_index_of(self._kinds, index, self.config)
        # Positions on the stride repeat with the cycle, so one cycle of tries is enough.
        for _ in range(self.config.proportion.total):
            if kind_of(index, self.config)[0] in self._kinds:
                return index
            index += self._step
        return None

    def advance(self):
        """Return the next Event, or EXHAUSTED / CANCELLED once the stream has ended."""
        if self.state in (StreamState.EXHAUSTED, StreamState.CANCELLED):
            return self.state
        if self.state is StreamState.NOT_STARTED:
            self.state = StreamState.RUNNING
            self._started_at = self._clock()
            logger.debug("Stream started at index %d (step %d, paced=%s)", self._cursor, self._step, self.paced)

        if self._cancel.is_set():
            return self._finish(StreamState.CANCELLED)

        index = self._seek(self._cursor)
        max_events = self.config.max_events
        if index is None or (max_events is not None and index >= max_events):
            return self._finish(StreamState.EXHAUSTED)

        kind, per_kind_index = kind_of(index, self.config)
        try:
            timestamp, ready_offset = schedule(index, self.config, self._origin if self.paced else None)
            if ready_offset is not None:
                delay = self._started_at + ready_offset - self._clock()
                # The pending event is dropped if cancelled while waiting.
                if delay > 0 and self._cancel.wait(delay):
                    return self._finish(StreamState.CANCELLED)
            entity = make_entity(kind, per_kind_index, timestamp, self.config)
        except GenerationError as exc:
            if exc.index is None:
                exc.index = index
            logger.error("Generation failed at event %d: %s", index, exc)
            self._finish(StreamState.EXHAUSTED)
            raise

        self._cursor = index + self._step
        self.emitted += 1
        return Event(kind, index, timestamp, entity)

    def __iter__(self):
        while True:
            item = self.advance()
            if isinstance(item, StreamState):
                return
            yield item

    def take(self, n):
        """Yield at most n events, then leave the stream exhausted."""
        for taken in range(1, n + 1):
            item = self.advance()
            if isinstance(item, StreamState):
                return
            if taken == n:
                self._finish(StreamState.EXHAUSTED)
            yield item
        if self.state in (StreamState.NOT_STARTED, StreamState.RUNNING):
            self._finish(StreamState.EXHAUSTED)
