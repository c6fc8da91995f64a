# Mark services as a package and expose the domain services.

from .clock import MonotonicClock
from .history import HistoryStore
from .rules import RuleEngine, default_engine, infer

__all__ = [
    "HistoryStore",
    "MonotonicClock",
    "RuleEngine",
    "default_engine",
    "infer",
]
