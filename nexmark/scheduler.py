"""
Event kind scheduling.

The global index space is cut into cycles of `person + auction + bid`
positions: persons first, then auctions, then bids. Everything below is
closed-form arithmetic over that layout, so "how many auctions exist at
index i" never needs a scan or a table.
"""

import enum


class EventKind(enum.Enum):
    PERSON = "person"
    AUCTION = "auction"
    BID = "bid"


def _check_index(index):
    if index < 0:
        raise ValueError(f"event index must be non-negative, got {index}")


def _layout(kind, proportion):
    """(offset of the kind inside a cycle, its weight)."""
    if kind is EventKind.PERSON:
        return 0, proportion.person
    if kind is EventKind.AUCTION:
        return proportion.person, proportion.auction
    return proportion.person + proportion.auction, proportion.bid


def kind_of(global_index, config):
    """Return (EventKind, per_kind_index) for a global event index."""
    _check_index(global_index)
    proportion = config.proportion
    epoch, offset = divmod(global_index, proportion.total)
    if offset < proportion.person:
        return EventKind.PERSON, epoch * proportion.person + offset
    offset -= proportion.person
    if offset < proportion.auction:
        return EventKind.AUCTION, epoch * proportion.auction + offset
    offset -= proportion.auction
    return EventKind.BID, epoch * proportion.bid + offset


def count_allocated(kind, global_index, config):
    """Number of entities of `kind` at global indices [0, global_index]."""
    _check_index(global_index)
    start, weight = _layout(kind, config.proportion)
    epoch, offset = divmod(global_index, config.proportion.total)
    return epoch * weight + min(max(offset + 1 - start, 0), weight)


def index_of(kind, per_kind_index, config):
    """Global index of the per_kind_index-th entity of `kind`."""
    _check_index(per_kind_index)
    start, weight = _layout(kind, config.proportion)
    epoch, offset = divmod(per_kind_index, weight)
    return epoch * config.proportion.total + start + offset


def next_index_of(kinds, global_index, config):
    """Smallest index >= global_index whose kind is one of `kinds`."""
    _check_index(global_index)
    candidates = []
    for kind in kinds:
        # Entities of this kind before global_index, i.e. the next one's number.
        seen = count_allocated(kind, global_index - 1, config) if global_index else 0
        candidates.append(index_of(kind, seen, config))
    if not candidates:
        raise ValueError("at least one event kind is required")
    return min(candidates)
