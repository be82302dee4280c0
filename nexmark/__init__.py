"""Deterministic Nexmark benchmark event generator."""

from .config import GeneratorConfig, Proportion, RateShape, load_config
from .errors import ConfigError, GenerationError, NexmarkError
from .generator import CANCELLED, EXHAUSTED, EventGenerator, StreamState, at, generate_range
from .model import Auction, Bid, Event, Person
from .scheduler import EventKind, kind_of

__all__ = [
    "Auction",
    "Bid",
    "CANCELLED",
    "ConfigError",
    "EXHAUSTED",
    "Event",
    "EventGenerator",
    "EventKind",
    "GenerationError",
    "GeneratorConfig",
    "NexmarkError",
    "Person",
    "Proportion",
    "RateShape",
    "StreamState",
    "at",
    "generate_range",
    "kind_of",
    "load_config",
]

__version__ = "0.1.0"
