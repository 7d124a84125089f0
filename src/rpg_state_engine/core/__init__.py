from .config import StoreConfig
from .errors import (
    GameStateError,
    PathError,
    SessionNotFoundError,
    StaleWriteError,
    StateError,
    ValidationError,
)
from .paths import MISSING, IndexPolicy, parse_path, read_path, strip_legacy_prefix, write_path
from .store import GameStateStore
from .types import ChoiceRecord, DeltaEntry, HistoryEntry, Session

__all__ = [
    "GameStateStore",
    "StoreConfig",
    "IndexPolicy",
    "MISSING",
    "parse_path",
    "read_path",
    "write_path",
    "strip_legacy_prefix",
    "Session",
    "DeltaEntry",
    "HistoryEntry",
    "ChoiceRecord",
    "GameStateError",
    "SessionNotFoundError",
    "ValidationError",
    "PathError",
    "StateError",
    "StaleWriteError",
]
