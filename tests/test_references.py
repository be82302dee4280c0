"""
Tests for reference resolution: existence, active window and hot skew.
"""

import pytest

from nexmark import GenerationError, GeneratorConfig, Proportion
from nexmark.references import MAX_ID, Reference, active_window, hot_subset, resolve, resolve_id
from nexmark.scheduler import EventKind, count_allocated, index_of


class TestActiveWindow:
    """Only existing, recent entities are eligible."""

    def test_window_grows_then_slides(self, canonical):
        # Third cycle: three persons exist at the first auction of the cycle.
        assert active_window(101, Reference.SELLER, canonical) == range(0, 3)
        late = index_of(EventKind.AUCTION, 3 * 5000, canonical)
        persons = count_allocated(EventKind.PERSON, late, canonical)
        assert active_window(late, Reference.SELLER, canonical) == range(persons - 1000, persons)

    def test_hot_subset_is_oldest_of_window(self, canonical):
        late = index_of(EventKind.BID, 46 * 1000, canonical)
        window = active_window(late, Reference.AUCTION, canonical)
        assert len(window) == canonical.in_flight_auction_window
        assert hot_subset(late, Reference.AUCTION, canonical) == window[:canonical.hot_set_size]

    @pytest.mark.parametrize("ref,kind", [
        (Reference.SELLER, EventKind.AUCTION),
        (Reference.BIDDER, EventKind.BID),
        (Reference.AUCTION, EventKind.BID),
    ])
    def test_resolved_ids_exist(self, canonical, ref, kind):
        """Every reference points inside the active window, so it already exists."""
        target = EventKind.AUCTION if ref is Reference.AUCTION else EventKind.PERSON
        for n in range(0, 20_000, 7):
            global_index = index_of(kind, n, canonical)
            picked = resolve(global_index, ref, canonical)
            assert picked < count_allocated(target, global_index, canonical)
            assert picked in active_window(global_index, ref, canonical)

    def test_deterministic(self, canonical):
        picks = [resolve(i, Reference.AUCTION, canonical) for i in range(4, 5000, 50)]
        assert picks == [resolve(i, Reference.AUCTION, canonical) for i in range(4, 5000, 50)]

    def test_no_candidates(self, canonical):
        """Index 0 is the first person, so no auction exists yet."""
        with pytest.raises(GenerationError) as excinfo:
            resolve(0, Reference.AUCTION, canonical)
        assert excinfo.value.index == 0

    @pytest.mark.parametrize("ref,option", [
        (Reference.AUCTION, "first_auction_id"),
        (Reference.BIDDER, "first_person_id"),
    ])
    def test_resolved_id_overflow(self, ref, option):
        config = GeneratorConfig(base_time=0, **{option: MAX_ID})
        global_index = index_of(EventKind.BID, 100_000, config)
        assert resolve(global_index, ref, config) > 0
        with pytest.raises(GenerationError):
            resolve_id(global_index, ref, config)


class TestSkew:
    """One reference in K targets the hot subset."""

    @pytest.mark.parametrize("ratio", [2, 5, 10])
    def test_hot_auction_fraction_converges(self, ratio):
        config = GeneratorConfig(proportion=Proportion(1, 3, 46), hot_auction_ratio=ratio, base_time=0)
        hot = 0
        total = 100_000
        for n in range(total):
            global_index = index_of(EventKind.BID, n, config)
            if resolve(global_index, Reference.AUCTION, config) in hot_subset(global_index, Reference.AUCTION, config):
                hot += 1
        assert abs(hot / total - 1 / ratio) < 0.02

    def test_hot_seller_ratio_four(self):
        """Over 4,000 auctions about 1,000 sellers come from the hot subset."""
        config = GeneratorConfig(proportion=Proportion(1, 3, 46), hot_seller_ratio=4, base_time=0)
        hot = 0
        for n in range(4000):
            global_index = index_of(EventKind.AUCTION, n, config)
            if resolve(global_index, Reference.SELLER, config) in hot_subset(global_index, Reference.SELLER, config):
                hot += 1
        assert abs(hot - 1000) < 120

    def test_ratio_one_disables_skew(self):
        """With ratio 1 picks spread uniformly over the whole window."""
        config = GeneratorConfig(hot_bidder_ratio=1, active_person_window=100, base_time=0)
        hot = 0
        samples = 0
        for n in range(5000, 25_000):
            global_index = index_of(EventKind.BID, n, config)
            window = active_window(global_index, Reference.BIDDER, config)
            if len(window) < 100:
                continue
            samples += 1
            if resolve(global_index, Reference.BIDDER, config) in window[:config.hot_set_size]:
                hot += 1
        assert samples > 0
        assert hot / samples < 0.1

    def test_tiny_window_falls_back_to_whole_window(self):
        config = GeneratorConfig(in_flight_auction_window=2, hot_set_size=4, hot_auction_ratio=1000, base_time=0)
        for n in range(0, 2000, 3):
            global_index = index_of(EventKind.BID, n, config)
            assert resolve(global_index, Reference.AUCTION, config) in active_window(global_index, Reference.AUCTION, config)
