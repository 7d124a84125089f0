from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass
class SessionRecord:
    id: str
    document_json: str
    created_at: datetime
    updated_at: datetime
    row_version: int = 1


class InMemorySessionStorage:
    """Process-local session table shared by every unit of work built on it."""

    def __init__(self) -> None:
        self.rows: dict[str, SessionRecord] = {}

    def __len__(self) -> int:
        return len(self.rows)


class InMemorySessionRepo:
    def __init__(self, storage: InMemorySessionStorage):
        self.storage = storage
        # session_id -> staged record, or None for a staged delete
        self.staged: dict[str, SessionRecord | None] = {}

    def get(self, session_id: str) -> SessionRecord | None:
        if session_id in self.staged:
            row = self.staged[session_id]
        else:
            row = self.storage.rows.get(session_id)
        return replace(row) if row is not None else None

    def add(
        self,
        session_id: str,
        document_json: str,
        created_at: datetime,
        updated_at: datetime,
    ) -> SessionRecord:
        row = SessionRecord(
            id=session_id,
            document_json=document_json,
            created_at=created_at,
            updated_at=updated_at,
        )
        self.staged[session_id] = row
        return replace(row)

    def list_all(self) -> list[SessionRecord]:
        ids = set(self.storage.rows) | set(self.staged)
        rows = [self.get(session_id) for session_id in ids]
        return [row for row in rows if row is not None]

    def delete(self, session_id: str) -> bool:
        if self.get(session_id) is None:
            return False
        self.staged[session_id] = None
        return True

    def cas_apply_update(
        self,
        session_id: str,
        expected_row_version: int,
        values: dict[str, object],
    ) -> bool:
        current = self.get(session_id)
        if current is None or current.row_version != expected_row_version:
            return False
        self.staged[session_id] = replace(current, **values, row_version=current.row_version + 1)
        return True


class InMemoryUnitOfWork:
    """Unit of work over ``InMemorySessionStorage``.

    Writes are staged on the repo and only reach the storage on ``commit``;
    leaving the context without committing discards them.
    """

    def __init__(self, storage: InMemorySessionStorage):
        self._storage = storage
        self.sessions: InMemorySessionRepo | None = None

    def __enter__(self) -> "InMemoryUnitOfWork":
        self.sessions = InMemorySessionRepo(self._storage)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.sessions is None:
            return
        self.rollback()
        self.sessions = None

    def commit(self) -> None:
        assert self.sessions is not None
        for session_id, row in self.sessions.staged.items():
            if row is None:
                self._storage.rows.pop(session_id, None)
            else:
                self._storage.rows[session_id] = row
        self.sessions.staged.clear()

    def rollback(self) -> None:
        assert self.sessions is not None
        self.sessions.staged.clear()
