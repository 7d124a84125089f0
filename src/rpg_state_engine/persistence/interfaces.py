from __future__ import annotations

from datetime import datetime
from typing import Protocol


class SessionRepo(Protocol):
    def get(self, session_id: str): ...
    def add(
        self,
        session_id: str,
        document_json: str,
        created_at: datetime,
        updated_at: datetime,
    ): ...
    def list_all(self): ...
    def delete(self, session_id: str) -> bool: ...
    def cas_apply_update(
        self,
        session_id: str,
        expected_row_version: int,
        values: dict[str, object],
    ) -> bool: ...


class UnitOfWork(Protocol):
    sessions: SessionRepo

    def commit(self) -> None: ...
    def rollback(self) -> None: ...

    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
