"""
Cross-reference selection with hot-entity skew.

A reference may only point at an entity that already exists at the
referring event's index, and only at one of the newest `window` entities of
that kind (older ones have aged out). The oldest few ids of that window form
the hot subset: one reference in `hot_ratio` lands there, the rest are
spread over the remainder of the window.
"""

import enum

from . import fields
from .errors import GenerationError
from .fields import FieldId
from .scheduler import EventKind, count_allocated

MAX_ID = (1 << 63) - 1


class Reference(enum.Enum):
    SELLER = "seller"
    BIDDER = "bidder"
    AUCTION = "auction"


# reference -> (target kind, window option, hot ratio option, hot tag, pick tag)
_POLICY = {
    Reference.SELLER: (EventKind.PERSON, "active_person_window", "hot_seller_ratio",
                       FieldId.SELLER_HOT, FieldId.SELLER_PICK),
    Reference.BIDDER: (EventKind.PERSON, "active_person_window", "hot_bidder_ratio",
                       FieldId.BIDDER_HOT, FieldId.BIDDER_PICK),
    Reference.AUCTION: (EventKind.AUCTION, "in_flight_auction_window", "hot_auction_ratio",
                        FieldId.AUCTION_HOT, FieldId.AUCTION_PICK),
}


def active_window(global_index, ref, config):
    """Per-kind indices eligible for `ref` at global_index, oldest first."""
    kind, window_option, _, _, _ = _POLICY[ref]
    available = count_allocated(kind, global_index, config)
    size = min(available, getattr(config, window_option))
    return range(available - size, available)


def hot_subset(global_index, ref, config):
    """The oldest `hot_set_size` ids of the active window."""
    window = active_window(global_index, ref, config)
    return window[:config.hot_set_size]


def resolve(global_index, ref, config):
    """Per-kind index of the entity referenced by the event at global_index."""
    _, _, ratio_option, hot_tag, pick_tag = _POLICY[ref]
    window = active_window(global_index, ref, config)
    if not window:
        raise GenerationError(f"no {ref.value} candidates at event {global_index}", index=global_index)

    seed = fields.reference_seed(global_index)
    ratio = getattr(config, ratio_option)
    hot = window[:config.hot_set_size]
    cold = window[len(hot):]

    if ratio == 1 or not cold:
        candidates = window
    elif fields.next_int(seed, hot_tag, ratio) == 0:
        candidates = hot
    else:
        candidates = cold
    return candidates[fields.next_int(seed, pick_tag, len(candidates))]


def resolve_id(global_index, ref, config):
    """Like resolve() but returns the public id (with the first-id offset)."""
    index = resolve(global_index, ref, config)
    first_id = config.first_auction_id if ref is Reference.AUCTION else config.first_person_id
    if first_id + index > MAX_ID:
        raise GenerationError(f"{ref.value} id overflow at event {global_index}", index=global_index)
    return first_id + index
