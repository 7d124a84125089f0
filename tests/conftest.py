from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from rpg_state_engine.core.store import GameStateStore
from rpg_state_engine.persistence.memory import InMemorySessionStorage, InMemoryUnitOfWork
from rpg_state_engine.persistence.sqlalchemy.db import build_engine, build_session_factory, create_schema
from rpg_state_engine.persistence.sqlalchemy.uow import SQLAlchemyUnitOfWork


class TickingClock:
    """Strictly increasing naive-UTC time, one second per call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)
        self.calls = 0

    def __call__(self) -> datetime:
        self.calls += 1
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture()
def clock():
    return TickingClock()


@pytest.fixture()
def session_factory():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    create_schema(engine)
    return build_session_factory(engine)


@pytest.fixture()
def sqlalchemy_uow_factory(session_factory):
    def _factory():
        return SQLAlchemyUnitOfWork(session_factory)

    return _factory


@pytest.fixture()
def memory_storage():
    return InMemorySessionStorage()


@pytest.fixture()
def memory_uow_factory(memory_storage):
    def _factory():
        return InMemoryUnitOfWork(memory_storage)

    return _factory


@pytest.fixture(params=["memory", "sqlalchemy"])
def store(request, clock):
    if request.param == "memory":
        uow_factory = request.getfixturevalue("memory_uow_factory")
    else:
        uow_factory = request.getfixturevalue("sqlalchemy_uow_factory")
    return GameStateStore(uow_factory=uow_factory, clock=clock)
