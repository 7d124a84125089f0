from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from .models import GameSessionRow


class SessionRepo:
    def __init__(self, session: Session):
        self.session = session

    def get(self, session_id: str) -> GameSessionRow | None:
        return self.session.get(GameSessionRow, session_id)

    def add(
        self,
        session_id: str,
        document_json: str,
        created_at: datetime,
        updated_at: datetime,
    ) -> GameSessionRow:
        row = GameSessionRow(
            id=session_id,
            document_json=document_json,
            created_at=created_at,
            updated_at=updated_at,
            row_version=1,
        )
        self.session.add(row)
        self.session.flush()
        return row

    def list_all(self) -> list[GameSessionRow]:
        stmt = select(GameSessionRow).order_by(GameSessionRow.created_at.desc())
        return list(self.session.execute(stmt).scalars().all())

    def delete(self, session_id: str) -> bool:
        stmt = delete(GameSessionRow).where(GameSessionRow.id == session_id)
        return (self.session.execute(stmt).rowcount or 0) == 1

    def cas_apply_update(
        self,
        session_id: str,
        expected_row_version: int,
        values: dict[str, object],
    ) -> bool:
        update_values = dict(values)
        update_values["row_version"] = GameSessionRow.row_version + 1
        stmt = (
            update(GameSessionRow)
            .where(GameSessionRow.id == session_id)
            .where(GameSessionRow.row_version == expected_row_version)
            .values(**update_values)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        return result.rowcount == 1
