from __future__ import annotations

import json
import logging

from rpg_state_engine import GameStateStore
from rpg_state_engine.persistence.sqlalchemy import (
    SQLAlchemyUnitOfWork,
    build_engine,
    build_session_factory,
    create_schema,
)


def make_uow_factory():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    create_schema(engine)
    session_factory = build_session_factory(engine)

    def _uow_factory():
        return SQLAlchemyUnitOfWork(session_factory)

    return _uow_factory


def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    store = GameStateStore(uow_factory=make_uow_factory())

    session = store.create_session(
        {
            "title": "Fantasy Adventure",
            "characters": [{"name": "Hero", "level": 1, "hp": 100, "mp": 50, "class": "Warrior"}],
            "world": {"location": "Starting Village", "time": "morning", "weather": "sunny"},
            "inventory": [],
            "story": {"chapter": 1, "progress": "beginning"},
        }
    )

    store.mutate(session.id, "characters[0].hp", 80)
    store.mutate(session.id, "inventory[0]", {"name": "Torch", "quantity": 1})
    store.advance_narrative(session.id, "A goblin leaps from the hedge and strikes you.")
    offered = store.offer_choices(session.id, ["Flee to the village", "Fight the goblin"])

    print("changes since last prompt:")
    for delta in offered.pending_deltas:
        print("  ", delta.description)

    chosen = store.select_choice(session.id, "Fight the goblin", 1)
    print("history:", [h.selected_option for h in chosen.history])
    print(json.dumps(chosen.to_dict(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
