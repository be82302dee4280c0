"""
Tests for the deterministic field generator.
"""

import re

import pytest

from nexmark import fields
from nexmark.fields import FieldId
from nexmark.scheduler import EventKind

SEEDS = [0, 1, 2, 12345, 2**63, 2**64 - 1]


class TestValue:
    """value() is a pure function of (seed, field)."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_repeatable(self, seed):
        assert fields.value(seed, FieldId.PERSON_CITY) == fields.value(seed, FieldId.PERSON_CITY)
        assert 0 <= fields.value(seed, FieldId.PERSON_CITY) < 2**64

    @pytest.mark.parametrize("seed", SEEDS)
    def test_fields_differ(self, seed):
        values = {fields.value(seed, field) for field in FieldId}
        assert len(values) == len(FieldId)

    def test_fields_uncorrelated(self):
        """Coin flips from two fields on the same seed agree about half the time."""
        agree = sum(
            fields.next_int(seed, FieldId.SELLER_HOT, 2) == fields.next_int(seed, FieldId.BIDDER_HOT, 2)
            for seed in range(5000)
        )
        assert 0.45 < agree / 5000 < 0.55

    def test_entity_seeds_differ_by_kind(self):
        seeds = {fields.entity_seed(kind, 7) for kind in EventKind}
        seeds.add(fields.reference_seed(7))
        seeds.add(fields.channel_seed(7))
        assert len(seeds) == 5


class TestDerivedValues:
    """Integers, strings, prices and padding."""

    def test_next_int_bounds(self):
        draws = [fields.next_int(seed, FieldId.AUCTION_CATEGORY, 5) for seed in range(1000)]
        assert set(draws) == {0, 1, 2, 3, 4}
        big = fields.next_int(3, FieldId.AUCTION_CATEGORY, 2**40)
        assert 0 <= big < 2**40
        with pytest.raises(ValueError):
            fields.next_int(3, FieldId.AUCTION_CATEGORY, 0)

    def test_next_float_range(self):
        for seed in range(200):
            assert 0.0 <= fields.next_float(seed, FieldId.BID_PRICE) < 1.0

    def test_choose(self):
        options = ("a", "b", "c")
        assert fields.choose(9, FieldId.PERSON_STATE, options) in options

    def test_next_string(self):
        text = fields.next_string(42, FieldId.AUCTION_ITEM, 20)
        assert re.fullmatch(r"[a-z]{20}", text)
        assert text == fields.next_string(42, FieldId.AUCTION_ITEM, 20)
        assert fields.next_string(42, FieldId.AUCTION_ITEM, 0) == ""

    def test_string_with_delimiter(self):
        for seed in range(100):
            text = fields.next_string_with_delimiter(seed, FieldId.CHANNEL_URL, 5, "_")
            assert 3 <= len(text) < 5
            assert re.fullmatch(r"[a-z_]+", text)

    def test_next_digits(self):
        assert re.fullmatch(r"\d{4} \d{4} \d{4} \d{4}", fields.next_digits(5, FieldId.PERSON_CARD, 4))

    def test_next_price(self):
        prices = [fields.next_price(seed, FieldId.BID_PRICE) for seed in range(2000)]
        assert min(prices) >= 100
        assert max(prices) <= 100_000_000
        assert len(set(prices)) > 1000

    @pytest.mark.parametrize("avg", [1, 4, 10, 100, 500])
    def test_extra_length_around_average(self, avg):
        delta = (avg + 2) // 5
        lengths = [fields.next_extra_length(seed, FieldId.BID_EXTRA, avg) for seed in range(2000)]
        assert min(lengths) >= avg - delta
        assert max(lengths) <= max(avg + delta - 1, avg)
        assert abs(sum(lengths) / len(lengths) - avg) <= max(1.0, avg * 0.05)

    def test_extra_matches_its_length(self):
        extra = fields.next_extra(11, FieldId.PERSON_EXTRA, 100)
        assert len(extra) == fields.next_extra_length(11, FieldId.PERSON_EXTRA, 100)
        assert fields.next_extra(11, FieldId.PERSON_EXTRA, 0) == ""
