"""
Entity factories.

Each factory builds the n-th entity of its kind from nothing but
(n, timestamp, config): every field comes from the deterministic field
generator seeded by (kind, n), and cross references come from the
reference resolver at the entity's own global index.
"""

from functools import lru_cache

from . import fields
from .errors import GenerationError
from .fields import FieldId
from .model import Auction, Bid, Person
from .rate import timestamp_of
from .references import MAX_ID, Reference, resolve_id
from .scheduler import EventKind, index_of

HOT_CHANNELS = ("Google", "Facebook", "Baidu", "Apple")


def _checked_id(first_id, per_kind_index, kind):
    entity_id = first_id + per_kind_index
    if entity_id > MAX_ID:
        raise GenerationError(f"{kind.value} id overflow at per-kind index {per_kind_index}")
    return entity_id


def base_url(seed, field):
    parts = fields.next_words_with_delimiter(seed, field, 3, 5, "_")
    return "https://www.nexmark.com/{}/{}/{}/item.htm?query=1".format(*parts)


def _reverse_bits32(value):
    reversed_bits = int(f"{value & 0xFFFFFFFF:032b}"[::-1], 2)
    if reversed_bits >= 1 << 31:
        reversed_bits -= 1 << 32
    return abs(reversed_bits)


@lru_cache(maxsize=4096)
def channel(number):
    """(name, url) of catalogue channel `number`."""
    seed = fields.channel_seed(number)
    url = base_url(seed, FieldId.CHANNEL_URL)
    # 9 in 10 channels carry their id in the url
    if fields.next_int(seed, FieldId.CHANNEL_HAS_ID, 10) > 0:
        url += f"&channel_id={_reverse_bits32(number)}"
    return f"channel-{number}", url


@lru_cache(maxsize=None)
def hot_channel(number):
    """(name, url) of one of the HOT_CHANNELS."""
    return HOT_CHANNELS[number], base_url(fields.channel_seed(number), FieldId.HOT_CHANNEL_URL)


def make_person(per_kind_index, timestamp, config):
    seed = fields.entity_seed(EventKind.PERSON, per_kind_index)
    first = fields.choose(seed, FieldId.PERSON_FIRST_NAME, config.first_names)
    last = fields.choose(seed, FieldId.PERSON_LAST_NAME, config.last_names)
    email = "{}@{}.com".format(
        fields.next_string(seed, FieldId.PERSON_EMAIL_USER, 7),
        fields.next_string(seed, FieldId.PERSON_EMAIL_DOMAIN, 5),
    )
    return Person(
        id=_checked_id(config.first_person_id, per_kind_index, EventKind.PERSON),
        name=f"{first} {last}",
        email_address=email,
        credit_card=fields.next_digits(seed, FieldId.PERSON_CARD, 4),
        city=fields.choose(seed, FieldId.PERSON_CITY, config.us_cities),
        state=fields.choose(seed, FieldId.PERSON_STATE, config.us_states),
        date_time=timestamp,
        extra=fields.next_extra(seed, FieldId.PERSON_EXTRA, config.avg_padding_bytes),
    )


def auction_expires(per_kind_index, timestamp, config, seed=None):
    """Expiration timestamp of the per_kind_index-th auction.

    With liveness checking on, an auction stays open past the moment it drops
    out of the in-flight window, so no bid can ever reference a closed one.
    """
    if seed is None:
        seed = fields.entity_seed(EventKind.AUCTION, per_kind_index)
    window = config.in_flight_auction_window
    if config.check_liveness:
        aged_out = timestamp_of(index_of(EventKind.AUCTION, per_kind_index + window, config), config)
        horizon = max(aged_out - timestamp, 1)
        return max(aged_out, timestamp) + 1 + fields.next_int(seed, FieldId.AUCTION_EXPIRES, horizon)

    own_index = index_of(EventKind.AUCTION, per_kind_index, config)
    events_for_auctions = window * config.proportion.total // config.proportion.auction
    horizon = timestamp_of(own_index + events_for_auctions, config) - timestamp
    return timestamp + 1 + fields.next_int(seed, FieldId.AUCTION_EXPIRES, max(horizon * 2, 1))


def make_auction(per_kind_index, timestamp, config):
    seed = fields.entity_seed(EventKind.AUCTION, per_kind_index)
    global_index = index_of(EventKind.AUCTION, per_kind_index, config)
    initial_bid = fields.next_price(seed, FieldId.AUCTION_INITIAL_BID)
    return Auction(
        id=_checked_id(config.first_auction_id, per_kind_index, EventKind.AUCTION),
        item_name=fields.next_string(seed, FieldId.AUCTION_ITEM, 20),
        description=fields.next_string(seed, FieldId.AUCTION_DESCRIPTION, 100),
        initial_bid=initial_bid,
        reserve=initial_bid + fields.next_price(seed, FieldId.AUCTION_RESERVE),
        date_time=timestamp,
        expires=auction_expires(per_kind_index, timestamp, config, seed),
        seller=resolve_id(global_index, Reference.SELLER, config),
        category=config.first_category_id + fields.next_int(seed, FieldId.AUCTION_CATEGORY, config.num_categories),
        extra=fields.next_extra(seed, FieldId.AUCTION_EXTRA, config.avg_padding_bytes),
    )


def make_bid(per_kind_index, timestamp, config):
    seed = fields.entity_seed(EventKind.BID, per_kind_index)
    global_index = index_of(EventKind.BID, per_kind_index, config)

    # 1 in hot_channel_ratio bids come from the long tail of channels
    if fields.next_int(seed, FieldId.BID_HOT_CHANNEL, config.hot_channel_ratio) > 0:
        name, url = hot_channel(fields.next_int(seed, FieldId.BID_CHANNEL, len(HOT_CHANNELS)))
    else:
        name, url = channel(fields.next_int(seed, FieldId.BID_CHANNEL, config.num_channels))

    return Bid(
        auction=resolve_id(global_index, Reference.AUCTION, config),
        bidder=resolve_id(global_index, Reference.BIDDER, config),
        price=fields.next_price(seed, FieldId.BID_PRICE),
        channel=name,
        url=url,
        date_time=timestamp,
        extra=fields.next_extra(seed, FieldId.BID_EXTRA, config.avg_padding_bytes),
    )


FACTORIES = {
    EventKind.PERSON: make_person,
    EventKind.AUCTION: make_auction,
    EventKind.BID: make_bid,
}


def make_entity(kind, per_kind_index, timestamp, config):
    return FACTORIES[kind](per_kind_index, timestamp, config)
