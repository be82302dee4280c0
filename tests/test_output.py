"""
Tests for event serialization and the output sinks.
"""

import io
import json

import pytest

from nexmark import EventKind, at
from nexmark.output import KafkaSink, StreamSink, format_event


class FakeProducer:
    """Records what would have been sent to Kafka."""

    def __init__(self):
        self.produced = []
        self.polls = 0
        self.flushed = False

    def produce(self, topic, value, key, on_delivery=None):
        self.produced.append((topic, json.loads(value), key.decode("utf-8")))

    def poll(self, timeout):
        self.polls += 1
        return 0

    def flush(self, timeout=None):
        self.flushed = True
        return 0


class TestFormat:
    """format_event()."""

    def test_json_line(self, canonical):
        line = format_event(at(0, canonical))
        assert "\n" not in line
        data = json.loads(line)
        assert data["type"] == "person"
        assert data["index"] == 0
        assert data["person"]["id"] == 1000
        assert set(data["person"]) == {
            "id", "name", "email_address", "credit_card", "city", "state", "date_time", "extra",
        }

    def test_bid_json(self, canonical):
        data = json.loads(format_event(at(4, canonical)))
        assert set(data["bid"]) == {"auction", "bidder", "price", "channel", "url", "date_time", "extra"}

    def test_repr(self, canonical):
        assert format_event(at(1, canonical), "repr").startswith("Auction(id=1000,")

    def test_unknown_format(self, canonical):
        with pytest.raises(ValueError):
            format_event(at(0, canonical), "xml")


class TestStreamSink:
    """JSON lines to a text stream."""

    def test_writes_one_line_per_event(self, canonical):
        buffer = io.StringIO()
        with StreamSink(buffer) as sink:
            for i in range(60):
                sink.write(at(i, canonical))
        lines = buffer.getvalue().splitlines()
        assert [json.loads(line)["index"] for line in lines] == list(range(60))
        assert sink.counts == {EventKind.PERSON: 2, EventKind.AUCTION: 6, EventKind.BID: 52}
        assert sink.total == 60


class TestKafkaSink:
    """Per-kind topics through a producer."""

    def test_topics_and_keys(self, canonical):
        producer = FakeProducer()
        sink = KafkaSink("unused:9092", producer=producer)
        for i in range(5):
            sink.write(at(i, canonical))
        sink.close()

        topics = [topic for topic, _, _ in producer.produced]
        assert topics == ["nexmark-person"] + ["nexmark-auction"] * 3 + ["nexmark-bid"]
        _, person, person_key = producer.produced[0]
        assert person["id"] == 1000 and person_key == "1000"
        _, bid, bid_key = producer.produced[4]
        assert bid_key == str(bid["auction"])
        assert producer.flushed

    def test_polls_periodically(self, config):
        producer = FakeProducer()
        with KafkaSink("unused:9092", topic_prefix="bench", producer=producer) as sink:
            for i in range(2500):
                sink.write(at(i, config))
        assert producer.polls == 2
        assert producer.produced[0][0] == "bench-person"
