"""
Generation parameters for the Nexmark event stream.

A GeneratorConfig is validated once when it is built and never changes
afterwards, so it can be shared freely between drivers, threads and worker
processes. Defaults follow the canonical Nexmark benchmark settings.
"""

import math
import os
import time
from dataclasses import dataclass, field, fields, replace
from functools import cached_property
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError

# Constants from official Nexmark
FIRST_PERSON_ID = 1000
FIRST_AUCTION_ID = 1000
FIRST_CATEGORY_ID = 10
NUM_CATEGORIES = 5
NUM_CHANNELS = 10_000

FIRST_NAMES = ("peter", "paul", "luke", "john", "saul", "vicky", "kate", "julie", "sarah", "deiter", "walter")
LAST_NAMES = ("shultz", "abrams", "spencer", "white", "bartels", "walton", "smith", "jones", "noris")
US_CITIES = ("phoenix", "los angeles", "san francisco", "boise", "portland", "bend", "redmond", "seattle", "kent", "cheyenne")
US_STATES = ("az", "ca", "id", "or", "wa", "wy")

ENV_PREFIX = "NEXMARK_"


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class Proportion:
    """Relative weights of Person, Auction and Bid events in each cycle."""

    person: int = 1
    auction: int = 3
    bid: int = 46

    def __post_init__(self):
        for name in ("person", "auction", "bid"):
            value = getattr(self, name)
            if not _is_int(value) or value <= 0:
                raise ConfigError(f"proportion.{name} must be a positive integer, got {value!r}")

    @property
    def total(self):
        return self.person + self.auction + self.bid


@dataclass(frozen=True)
class RateShape:
    """Periodic rate: a sine-like swing between min_rate and max_rate.

    The period (seconds) is cut into `steps` equal slices, each holding a
    constant rate.
    """

    period: float
    min_rate: float
    max_rate: float
    steps: int = 10

    def __post_init__(self):
        for name in ("period", "min_rate", "max_rate"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigError(f"rate_shape.{name} must be a finite number, got {value!r}")
        if not self.period > 0:
            raise ConfigError(f"rate_shape.period must be positive, got {self.period!r}")
        if self.min_rate < 0:
            raise ConfigError(f"rate_shape.min_rate must not be negative, got {self.min_rate!r}")
        if not self.max_rate > 0 or self.max_rate < self.min_rate:
            raise ConfigError(
                f"rate_shape.max_rate must be positive and >= min_rate, got {self.max_rate!r}"
            )
        if not _is_int(self.steps) or self.steps < 1:
            raise ConfigError(f"rate_shape.steps must be a positive integer, got {self.steps!r}")


@dataclass(frozen=True)
class GeneratorConfig:
    """Immutable, validated set of generation parameters."""

    proportion: Proportion = field(default_factory=Proportion)

    # Bound how far back a reference may point
    active_person_window: int = 1000
    in_flight_auction_window: int = 100

    # 1 in K references go to the hot subset; 1 disables skew
    hot_seller_ratio: int = 4
    hot_auction_ratio: int = 2
    hot_bidder_ratio: int = 4
    hot_set_size: int = 4

    base_rate: float = 10_000
    rate_shape: Optional[RateShape] = None

    avg_padding_bytes: int = 100
    max_events: Optional[int] = None
    check_liveness: bool = True
    base_time: Optional[int] = None

    first_person_id: int = FIRST_PERSON_ID
    first_auction_id: int = FIRST_AUCTION_ID
    first_category_id: int = FIRST_CATEGORY_ID
    num_categories: int = NUM_CATEGORIES

    # Half of the bids come through one of the hot channels
    hot_channel_ratio: int = 2
    num_channels: int = NUM_CHANNELS

    first_names: Tuple[str, ...] = FIRST_NAMES
    last_names: Tuple[str, ...] = LAST_NAMES
    us_cities: Tuple[str, ...] = US_CITIES
    us_states: Tuple[str, ...] = US_STATES

    def __post_init__(self):
        if self.base_time is None:
            object.__setattr__(self, "base_time", int(time.time() * 1000))
        for name in ("first_names", "last_names", "us_cities", "us_states"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        self._validate()

    def _validate(self):
        if not isinstance(self.proportion, Proportion):
            raise ConfigError(f"proportion must be a Proportion, got {self.proportion!r}")
        if self.rate_shape is not None and not isinstance(self.rate_shape, RateShape):
            raise ConfigError(f"rate_shape must be a RateShape or None, got {self.rate_shape!r}")

        for name in ("active_person_window", "in_flight_auction_window"):
            self._require_int(name, minimum=1)
        for name in ("hot_seller_ratio", "hot_auction_ratio", "hot_bidder_ratio",
                     "hot_set_size", "hot_channel_ratio", "num_categories", "num_channels"):
            self._require_int(name, minimum=1)
        for name in ("avg_padding_bytes", "base_time", "first_person_id",
                     "first_auction_id", "first_category_id"):
            self._require_int(name, minimum=0)
        if self.max_events is not None:
            self._require_int("max_events", minimum=0)

        rate = self.base_rate
        if isinstance(rate, bool) or not isinstance(rate, (int, float)) or not math.isfinite(rate) or not rate > 0:
            raise ConfigError(f"base_rate must be a finite positive number, got {self.base_rate!r}")
        for name in ("first_names", "last_names", "us_cities", "us_states"):
            if not getattr(self, name):
                raise ConfigError(f"{name} must not be empty")

        # Eagerly build the rate table so a shape without events fails here.
        self.rate_schedule
        self._check_references_reachable()

    def _require_int(self, name, minimum):
        value = getattr(self, name)
        if not _is_int(value) or value < minimum:
            raise ConfigError(f"{name} must be an integer >= {minimum}, got {value!r}")

    def _check_references_reachable(self):
        """Every Auction needs an earlier Person, every Bid an earlier Auction and Person."""
        from .scheduler import EventKind, count_allocated, index_of

        first_auction = index_of(EventKind.AUCTION, 0, self)
        first_bid = index_of(EventKind.BID, 0, self)
        if count_allocated(EventKind.PERSON, first_auction, self) == 0:
            raise ConfigError("proportion layout produces an auction before any person exists")
        if (count_allocated(EventKind.PERSON, first_bid, self) == 0
                or count_allocated(EventKind.AUCTION, first_bid, self) == 0):
            raise ConfigError("proportion layout produces a bid before any auction or person exists")

    @cached_property
    def rate_schedule(self):
        from .rate import RateSchedule
        return RateSchedule(self)

    def with_overrides(self, **changes):
        """Return a new validated config with some fields replaced."""
        try:
            return replace(self, **changes)
        except TypeError as exc:
            raise ConfigError(str(exc)) from exc

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]):
        """Build a config from a nested mapping, as read from YAML."""
        return cls(**_normalize(mapping))

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (Proportion, RateShape)):
                value = {g.name: getattr(value, g.name) for g in fields(value)}
            elif isinstance(value, tuple):
                value = list(value)
            result[f.name] = value
        return result


_FIELD_NAMES = {f.name for f in fields(GeneratorConfig)}


def _normalize(mapping):
    if not isinstance(mapping, Mapping):
        raise ConfigError(f"configuration must be a mapping, got {type(mapping).__name__}")
    unknown = set(mapping) - _FIELD_NAMES
    if unknown:
        raise ConfigError(f"unknown configuration option(s): {', '.join(sorted(unknown))}")

    values = dict(mapping)
    proportion = values.get("proportion")
    if isinstance(proportion, Mapping):
        try:
            values["proportion"] = Proportion(**proportion)
        except TypeError as exc:
            raise ConfigError(f"invalid proportion: {exc}") from exc
    elif isinstance(proportion, (list, tuple)):
        if len(proportion) != 3:
            raise ConfigError(f"proportion needs three weights, got {proportion!r}")
        values["proportion"] = Proportion(*proportion)

    shape = values.get("rate_shape")
    if isinstance(shape, str):
        if shape.lower() != "none":
            raise ConfigError(f"unknown rate_shape {shape!r}")
        values["rate_shape"] = None
    elif isinstance(shape, Mapping):
        try:
            values["rate_shape"] = RateShape(**shape)
        except TypeError as exc:
            raise ConfigError(f"invalid rate_shape: {exc}") from exc
    return values


def _parse_scalar(name, raw):
    text = raw.strip()
    if text.lower() in ("none", "null", "unlimited", ""):
        return None
    if text.lower() in ("true", "yes", "on"):
        return True
    if text.lower() in ("false", "no", "off"):
        return False
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{name.upper()}: cannot parse {raw!r}") from None


def _from_environ(environ):
    values: Dict[str, Any] = {}
    proportion = {}
    for key, raw in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX):].lower()
        if name.startswith("proportion_"):
            proportion[name[len("proportion_"):]] = _parse_scalar(name, raw)
        elif name == "rate_shape":
            values["rate_shape"] = _parse_rate_shape(raw)
        elif name in ("first_names", "last_names", "us_cities", "us_states"):
            values[name] = tuple(part.strip() for part in raw.split(",") if part.strip())
        elif name in _FIELD_NAMES:
            values[name] = _parse_scalar(name, raw)
    if proportion:
        values["proportion"] = proportion
    return values


def _parse_rate_shape(raw):
    """Parse `period,min_rate,max_rate[,steps]` or `none`."""
    if raw.strip().lower() in ("", "none"):
        return "none"
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) not in (3, 4):
        raise ConfigError(f"{ENV_PREFIX}RATE_SHAPE must be 'period,min_rate,max_rate[,steps]', got {raw!r}")
    try:
        shape = {"period": float(parts[0]), "min_rate": float(parts[1]), "max_rate": float(parts[2])}
        if len(parts) == 4:
            shape["steps"] = int(parts[3])
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}RATE_SHAPE: cannot parse {raw!r}") from None
    return shape


def load_config(path=None, environ=None, **overrides):
    """Load a config from an optional YAML file, NEXMARK_* env vars and overrides.

    Later sources win: file < environment < keyword overrides.
    """
    values: Dict[str, Any] = {}
    if path is not None:
        try:
            with open(path, "r") as f:
                loaded = yaml.safe_load(f) or {}
        except OSError as exc:
            raise ConfigError(f"cannot read config file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"malformed config file {path}: {exc}") from exc
        if not isinstance(loaded, Mapping):
            raise ConfigError(f"config file {path} must contain a mapping")
        values.update(loaded)

    env_values = _from_environ(os.environ if environ is None else environ)
    if "proportion" in env_values and isinstance(values.get("proportion"), Mapping):
        env_values["proportion"] = {**values["proportion"], **env_values["proportion"]}
    values.update(env_values)
    values.update({k: v for k, v in overrides.items() if v is not None})
    return GeneratorConfig.from_mapping(values)
