from .core.config import StoreConfig
from .core.errors import (
    GameStateError,
    PathError,
    SessionNotFoundError,
    StaleWriteError,
    StateError,
    ValidationError,
)
from .core.paths import IndexPolicy
from .core.store import GameStateStore
from .core.types import ChoiceRecord, DeltaEntry, HistoryEntry, Session
from .persistence.memory import InMemorySessionStorage, InMemoryUnitOfWork

__all__ = [
    "GameStateStore",
    "StoreConfig",
    "IndexPolicy",
    "Session",
    "DeltaEntry",
    "HistoryEntry",
    "ChoiceRecord",
    "InMemorySessionStorage",
    "InMemoryUnitOfWork",
    "GameStateError",
    "SessionNotFoundError",
    "ValidationError",
    "PathError",
    "StateError",
    "StaleWriteError",
]
