from __future__ import annotations

import uuid

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class GameSessionRow(TimestampMixin, Base):
    __tablename__ = "rse_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    document_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    row_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


Index("ix_rse_sessions_created", GameSessionRow.created_at)
