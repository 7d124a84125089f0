from __future__ import annotations

import json
from datetime import datetime

from sqlalchemy import select

from rpg_state_engine.core.store import GameStateStore
from rpg_state_engine.persistence.sqlalchemy.models import GameSessionRow


def test_session_document_is_stored_as_json(session_factory, sqlalchemy_uow_factory, clock):
    store = GameStateStore(uow_factory=sqlalchemy_uow_factory, clock=clock)
    session = store.create_session({"title": "T"})
    store.mutate(session.id, "world.location", "Harbor")

    with session_factory() as db:
        rows = db.execute(select(GameSessionRow)).scalars().all()
        assert len(rows) == 1
        row = rows[0]
        assert row.id == session.id
        assert row.row_version == 2
        document = json.loads(row.document_json)
        assert document["world"] == {"location": "Harbor"}
        assert document["_pending_deltas"][0]["field"] == "world.location"


def test_cas_update_rejects_stale_row_version(sqlalchemy_uow_factory):
    now = datetime(2024, 1, 1, 12, 0, 0)
    with sqlalchemy_uow_factory() as uow:
        uow.sessions.add("session-1", "{}", now, now)
        uow.commit()

    with sqlalchemy_uow_factory() as uow:
        assert uow.sessions.cas_apply_update("session-1", 1, {"document_json": '{"a":1}', "updated_at": now}) is True
        assert uow.sessions.cas_apply_update("session-1", 1, {"document_json": '{"a":2}', "updated_at": now}) is False
        uow.commit()

    with sqlalchemy_uow_factory() as uow:
        row = uow.sessions.get("session-1")
        assert row.row_version == 2
        assert row.document_json == '{"a":1}'


def test_uncommitted_work_is_rolled_back(sqlalchemy_uow_factory, memory_uow_factory):
    now = datetime(2024, 1, 1, 12, 0, 0)
    for factory in (sqlalchemy_uow_factory, memory_uow_factory):
        try:
            with factory() as uow:
                uow.sessions.add("session-2", "{}", now, now)
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        with factory() as uow:
            assert uow.sessions.get("session-2") is None
            assert uow.sessions.list_all() == []
