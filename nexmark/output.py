"""
Event output: JSON lines on a text stream, or one Kafka topic per event kind.
"""

import json
import logging
import sys

from confluent_kafka import Producer

from .scheduler import EventKind

logger = logging.getLogger(__name__)

FORMATS = ("json", "repr")
DEFAULT_TOPIC_PREFIX = "nexmark"
POLL_EVERY = 1000


def format_event(event, fmt="json"):
    """Render one event as a single line of text."""
    if fmt == "json":
        return json.dumps(event.to_dict(), separators=(",", ":"))
    if fmt == "repr":
        return repr(event.entity)
    raise ValueError(f"unknown format {fmt!r}, expected one of {FORMATS}")


class _CountingSink:
    def __init__(self):
        self.counts = {kind: 0 for kind in EventKind}

    @property
    def total(self):
        return sum(self.counts.values())

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        pass


class StreamSink(_CountingSink):
    """Writes one formatted event per line to a text stream (stdout by default)."""

    def __init__(self, stream=None, fmt="json"):
        super().__init__()
        if fmt not in FORMATS:
            raise ValueError(f"unknown format {fmt!r}, expected one of {FORMATS}")
        self.stream = stream if stream is not None else sys.stdout
        self.fmt = fmt

    def write(self, event):
        self.stream.write(format_event(event, self.fmt) + "\n")
        self.counts[event.kind] += 1

    def close(self):
        self.stream.flush()


class KafkaSink(_CountingSink):
    """Produces each event's entity as JSON to `<prefix>-<kind>`, keyed by id."""

    def __init__(self, bootstrap_servers, topic_prefix=DEFAULT_TOPIC_PREFIX, producer=None):
        super().__init__()
        self.topic_prefix = topic_prefix
        self.failed = 0
        if producer is None:
            config = {
                'bootstrap.servers': bootstrap_servers,
                'linger.ms': 10,
                'compression.type': 'lz4',
                'batch.size': 16384,
            }
            producer = Producer(config)
        self.producer = producer

    def topic_for(self, kind):
        return f"{self.topic_prefix}-{kind.value}"

    def _delivery_report(self, err, msg):
        if err is not None:
            self.failed += 1
            logger.warning("Delivery to %s failed: %s", msg.topic(), err)

    def write(self, event):
        self.producer.produce(
            topic=self.topic_for(event.kind),
            value=json.dumps(event.entity_dict()).encode('utf-8'),
            key=str(event.key).encode('utf-8'),
            on_delivery=self._delivery_report,
        )
        self.counts[event.kind] += 1
        if self.total % POLL_EVERY == 0:
            self.producer.poll(0)

    def close(self):
        remaining = self.producer.flush()
        if remaining:
            logger.warning("%d messages still queued after flush", remaining)
        if self.failed:
            logger.warning("%d messages failed delivery", self.failed)
