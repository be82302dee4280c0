"""Nexmark event types: Person, Auction, Bid and the Event wrapper."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Union

from .scheduler import EventKind


@dataclass(frozen=True)
class Person:
    """Someone selling items and/or bidding on auctions."""

    id: int
    name: str
    email_address: str
    credit_card: str
    city: str
    state: str
    date_time: int
    extra: str


@dataclass(frozen=True)
class Auction:
    """An item under auction. `seller` is a Person id, `expires` a ms timestamp."""

    id: int
    item_name: str
    description: str
    initial_bid: int
    reserve: int
    date_time: int
    expires: int
    seller: int
    category: int
    extra: str


@dataclass(frozen=True)
class Bid:
    """A bid on `auction` by the Person `bidder`, price in cents."""

    auction: int
    bidder: int
    price: int
    channel: str
    url: str
    date_time: int
    extra: str


Entity = Union[Person, Auction, Bid]


@dataclass(frozen=True)
class Event:
    """One generated event: exactly one entity plus where it sits in the stream."""

    kind: EventKind
    index: int
    timestamp: int
    entity: Entity

    @property
    def key(self):
        """Partitioning key: the entity id, or the auction id for bids."""
        if self.kind is EventKind.BID:
            return self.entity.auction
        return self.entity.id

    def entity_dict(self) -> Dict[str, Any]:
        return asdict(self.entity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "index": self.index,
            self.kind.value: self.entity_dict(),
        }
