"""
Deterministic field values.

Every variable field of every event is derived from an explicit seed and a
field tag through a keyed hash, so any event can be rebuilt on its own, in
any order, on any thread. Nothing here keeps state between calls.
"""

import enum
import hashlib
import math
import random
import struct

MIN_STRING_LENGTH = 3
LETTERS = "abcdefghijklmnopqrstuvwxyz"

_U64 = struct.Struct("<Q")
_MASK64 = (1 << 64) - 1


class FieldId(enum.Enum):
    """One tag per generated field. The value is the hash personalisation."""

    # Person
    PERSON_FIRST_NAME = "p.first"
    PERSON_LAST_NAME = "p.last"
    PERSON_EMAIL_USER = "p.email.user"
    PERSON_EMAIL_DOMAIN = "p.email.dom"
    PERSON_CARD = "p.card"
    PERSON_CITY = "p.city"
    PERSON_STATE = "p.state"
    PERSON_EXTRA = "p.extra"

    # Auction
    AUCTION_ITEM = "a.item"
    AUCTION_DESCRIPTION = "a.desc"
    AUCTION_INITIAL_BID = "a.initial"
    AUCTION_RESERVE = "a.reserve"
    AUCTION_EXPIRES = "a.expires"
    AUCTION_CATEGORY = "a.category"
    AUCTION_EXTRA = "a.extra"

    # Bid
    BID_PRICE = "b.price"
    BID_HOT_CHANNEL = "b.hotchan"
    BID_CHANNEL = "b.channel"
    BID_EXTRA = "b.extra"

    # Reference draws, seeded by global index
    SELLER_HOT = "r.seller.hot"
    SELLER_PICK = "r.seller.pick"
    AUCTION_HOT = "r.auction.hot"
    AUCTION_PICK = "r.auction.pick"
    BIDDER_HOT = "r.bidder.hot"
    BIDDER_PICK = "r.bidder.pick"

    # Channel catalogue, seeded by channel number
    CHANNEL_URL = "c.url"
    CHANNEL_HAS_ID = "c.hasid"
    HOT_CHANNEL_URL = "c.hot.url"


# Seed domains keep entity seeds and reference seeds apart.
_PERSON_DOMAIN = 1
_AUCTION_DOMAIN = 2
_BID_DOMAIN = 3
_REFERENCE_DOMAIN = 4
_CHANNEL_DOMAIN = 5


def _splitmix64(x):
    x = (x + 0x9E3779B97F4A7C15) & _MASK64
    x = ((x ^ (x >> 30)) * 0xBF58476D1CE4E5B9) & _MASK64
    x = ((x ^ (x >> 27)) * 0x94D049BB133111EB) & _MASK64
    return x ^ (x >> 31)


def make_seed(domain, number):
    """Fold a domain tag and a non-negative number into a 64-bit seed."""
    return _splitmix64(((domain & 0xFF) << 56) ^ (number & _MASK64) ^ ((number >> 64) << 8))


def entity_seed(kind, per_kind_index):
    """Seed for every content field of the n-th entity of a kind."""
    domain = {"person": _PERSON_DOMAIN, "auction": _AUCTION_DOMAIN, "bid": _BID_DOMAIN}[kind.value]
    return make_seed(domain, per_kind_index)


def reference_seed(global_index):
    return make_seed(_REFERENCE_DOMAIN, global_index)


def channel_seed(channel):
    return make_seed(_CHANNEL_DOMAIN, channel)


def value(seed, field):
    """The 64-bit pseudo-random value for (seed, field)."""
    digest = hashlib.blake2b(
        _U64.pack(seed & _MASK64),
        digest_size=8,
        person=field.value.encode("ascii"),
    ).digest()
    return _U64.unpack(digest)[0]


def _rng(seed, field):
    # A throwaway generator for multi-value draws; never reused across calls.
    return random.Random(value(seed, field))


def next_int(seed, field, bound):
    """Uniform integer in [0, bound)."""
    if bound <= 0:
        raise ValueError(f"bound must be positive, got {bound}")
    if bound <= 1 << 32:
        # modulo bias stays below 2**-32
        return value(seed, field) % bound
    return _rng(seed, field).randrange(bound)


def next_float(seed, field):
    """Uniform float in [0, 1)."""
    return (value(seed, field) >> 11) * (1.0 / (1 << 53))


def choose(seed, field, options):
    return options[next_int(seed, field, len(options))]


def next_string(seed, field, length):
    """A string of exactly `length` lowercase letters."""
    if length <= 0:
        return ""
    return "".join(_rng(seed, field).choices(LETTERS, k=length))


def _delimited(rng, max_length, delimiter):
    length = rng.randrange(MIN_STRING_LENGTH, max_length)
    return "".join(
        delimiter if rng.randrange(13) == 0 else rng.choice(LETTERS)
        for _ in range(length)
    )


def next_string_with_delimiter(seed, field, max_length, delimiter):
    """Lowercase string of length in [MIN_STRING_LENGTH, max_length) with the odd delimiter."""
    return _delimited(_rng(seed, field), max_length, delimiter)


def next_words_with_delimiter(seed, field, count, max_length, delimiter):
    """Several independent delimited strings from one draw."""
    rng = _rng(seed, field)
    return [_delimited(rng, max_length, delimiter) for _ in range(count)]


def next_digits(seed, field, groups, width=4):
    """Space separated groups of zero padded digits, e.g. a card number."""
    rng = _rng(seed, field)
    top = 10 ** width
    return " ".join(f"{rng.randrange(top):0{width}d}" for _ in range(groups))


def next_price(seed, field):
    """Prices spread over six orders of magnitude, in cents."""
    return int(round(math.pow(10.0, next_float(seed, field) * 6.0) * 100.0))


def next_extra_length(seed, field, avg):
    """Padding length drawn uniformly from [avg - delta, avg + delta)."""
    if avg <= 0:
        return 0
    delta = (avg + 2) // 5
    if delta == 0:
        return avg
    return avg - delta + next_int(seed, field, 2 * delta)


def next_extra(seed, field, avg):
    return next_string(seed, field, next_extra_length(seed, field, avg))
