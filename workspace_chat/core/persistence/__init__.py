"""Persistence layer - each store owns its file path, data format, and I/O."""

from ._base import JsonStore
from .state_store import StatePersister, StateStore

__all__ = [
    "JsonStore",
    "StatePersister",
    "StateStore",
]
