from .db import build_engine, build_session_factory, create_schema
from .models import GameSessionRow
from .uow import SQLAlchemyUnitOfWork

__all__ = [
    "build_engine",
    "build_session_factory",
    "create_schema",
    "GameSessionRow",
    "SQLAlchemyUnitOfWork",
]
