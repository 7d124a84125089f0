from __future__ import annotations


class GameStateError(Exception):
    kind = "error"


class SessionNotFoundError(GameStateError):
    kind = "not_found"

    def __init__(self, session_id: str):
        super().__init__(f"Session with id {session_id} not found")
        self.session_id = session_id


class ValidationError(GameStateError):
    kind = "validation"


class PathError(ValidationError):
    kind = "path"

    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid path {path!r}: {reason}")
        self.path = path
        self.reason = reason


class StateError(GameStateError):
    kind = "state"


class StaleWriteError(StateError):
    kind = "stale_write"
