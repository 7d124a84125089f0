from __future__ import annotations

import copy
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Sequence

from ..persistence.interfaces import UnitOfWork
from ..persistence.memory import InMemorySessionStorage, InMemoryUnitOfWork
from .config import StoreConfig
from .errors import SessionNotFoundError, StaleWriteError, StateError, ValidationError
from .normalize import (
    clone_json,
    describe_change,
    dump_json,
    format_utc_timestamp,
    format_value,
    parse_json_dict,
    utcnow,
)
from .paths import MISSING, parse_path, read_path, strip_legacy_prefix, write_path
from .types import (
    ACTIVE_CHOICES_KEY,
    HISTORY_KEY,
    LAST_CHOICE_KEY,
    LAST_NARRATIVE_KEY,
    LAST_PROMPT_AT_KEY,
    PENDING_DELTAS_KEY,
    RESERVED_KEYS,
    ChoiceRecord,
    DeltaEntry,
    HistoryEntry,
    Session,
)


class GameStateStore:
    """Session documents with automatic delta and decision-history tracking.

    Every operation loads the stored document into a fresh copy, changes the
    copy and writes it back through a row-version compare-and-set inside one
    unit of work, so a failed operation leaves the stored document untouched.

    The store does no locking: operations against the same session id must
    not be interleaved by concurrent callers. A lost update that the storage
    layer detects surfaces as ``StaleWriteError``.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        *,
        config: StoreConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
        logger: logging.Logger | None = None,
    ):
        if uow_factory is None:
            storage = InMemorySessionStorage()

            def uow_factory() -> InMemoryUnitOfWork:
                return InMemoryUnitOfWork(storage)

        self._uow_factory = uow_factory
        self._config = config or StoreConfig()
        self._clock = clock or utcnow
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._logger = logger or logging.getLogger(__name__)

    @property
    def config(self) -> StoreConfig:
        return self._config

    def create_session(self, initial_document: dict[str, Any]) -> Session:
        if not isinstance(initial_document, dict):
            raise ValidationError("initial document must be a JSON object")
        document = clone_json(initial_document, what="initial document")
        session_id = self._id_factory()
        now = self._clock()

        with self._uow_factory() as uow:
            if uow.sessions.get(session_id) is not None:
                raise StateError(f"Session id {session_id} is already in use")
            uow.sessions.add(session_id, dump_json(document), now, now)
            uow.commit()

        self._logger.info("Session created with id %s", session_id)
        return Session(id=session_id, document=document, created_at=now, updated_at=now)

    def get_session(self, session_id: str) -> Session:
        with self._uow_factory() as uow:
            return self._load(uow, session_id)

    def list_sessions(self) -> list[Session]:
        with self._uow_factory() as uow:
            sessions = [self._to_session(row) for row in uow.sessions.list_all()]
        sessions.sort(key=lambda s: s.created_at, reverse=True)
        return sessions

    def delete_session(self, session_id: str) -> bool:
        with self._uow_factory() as uow:
            deleted = uow.sessions.delete(session_id)
            if deleted:
                uow.commit()
        if deleted:
            self._logger.info("Session %s deleted", session_id)
        return deleted

    def mutate(self, session_id: str, path: str, value: Any) -> Session:
        if not isinstance(path, str):
            raise ValidationError("path must be a string")
        field = strip_legacy_prefix(path, self._config.legacy_path_prefix)
        tokens = parse_path(field)
        if tokens[0] in RESERVED_KEYS:
            raise ValidationError(f"{tokens[0]} is reserved for store bookkeeping")
        new_value = clone_json(value)

        with self._uow_factory() as uow:
            session = self._load(uow, session_id)
            document = session.document
            previous = read_path(document, tokens)
            write_path(
                document,
                tokens,
                new_value,
                index_policy=self._config.index_policy,
                path=field,
            )
            now = self._clock()
            self._upsert_delta(
                document,
                field,
                None if previous is MISSING else previous,
                copy.deepcopy(new_value),
                now,
            )
            updated = self._save(uow, session, document, now)

        self._logger.debug("Session %s updated: %s = %s", session_id, field, format_value(new_value))
        return updated

    def advance_narrative(self, session_id: str, text: str) -> Session:
        if not isinstance(text, str):
            raise ValidationError("narrative text must be a string")

        with self._uow_factory() as uow:
            session = self._load(uow, session_id)
            document = session.document
            document[LAST_NARRATIVE_KEY] = text
            story = document.get("story")
            if isinstance(story, dict):
                story["progress"] = text
            updated = self._save(uow, session, document, self._clock())

        self._logger.debug("Session %s narrative advanced (%d chars)", session_id, len(text))
        return updated

    def offer_choices(self, session_id: str, options: Sequence[str]) -> Session:
        """Store the offered options and clear the pending delta log.

        The returned session still carries the deltas accumulated since the
        previous offer; the stored document does not, so the next read shows
        an empty log.
        """
        if isinstance(options, (str, bytes)) or not isinstance(options, (list, tuple)):
            raise ValidationError("options must be a list of strings")
        if not options:
            raise ValidationError("options must contain at least one option")
        if any(not isinstance(option, str) for option in options):
            raise ValidationError("every option must be a string")
        choices = list(options)

        with self._uow_factory() as uow:
            session = self._load(uow, session_id)
            document = session.document
            pending = document.get(PENDING_DELTAS_KEY)
            if not isinstance(pending, list):
                pending = []
            now = self._clock()
            document[ACTIVE_CHOICES_KEY] = choices
            document[LAST_PROMPT_AT_KEY] = format_utc_timestamp(now)
            document[PENDING_DELTAS_KEY] = []
            stored = self._save(uow, session, document, now)

        self._logger.debug(
            "Session %s offered %d options, cleared %d pending deltas",
            session_id,
            len(choices),
            len(pending),
        )
        stored.document = {**stored.document, PENDING_DELTAS_KEY: pending}
        return stored

    def select_choice(self, session_id: str, selected_option: str, selected_index: int) -> Session:
        if not isinstance(selected_option, str):
            raise ValidationError("selected option must be a string")
        if isinstance(selected_index, bool) or not isinstance(selected_index, int):
            raise ValidationError("selected index must be an integer")

        with self._uow_factory() as uow:
            session = self._load(uow, session_id)
            narrative = session.last_narrative
            choices = session.active_choices
            if not narrative or not choices:
                raise StateError(f"Session {session_id} has no narrative and offered choices to select from")
            if not 0 <= selected_index < len(choices):
                raise ValidationError(
                    f"selected index {selected_index} is out of range for {len(choices)} offered options"
                )
            if choices[selected_index] != selected_option:
                self._logger.warning(
                    "Session %s selection %r does not match offered option %d %r",
                    session_id,
                    selected_option,
                    selected_index,
                    choices[selected_index],
                )

            now = self._clock()
            document = session.document
            history = document.get(HISTORY_KEY)
            if not isinstance(history, list):
                history = []
            history.append(
                HistoryEntry(
                    narrative=narrative,
                    options=choices,
                    selected_option=selected_option,
                    selected_index=selected_index,
                    timestamp=now,
                ).to_dict()
            )
            overflow = len(history) - self._config.history_limit
            if overflow > 0:
                del history[:overflow]
            document[HISTORY_KEY] = history
            document[LAST_CHOICE_KEY] = ChoiceRecord(
                option=selected_option,
                index=selected_index,
                timestamp=now,
            ).to_dict()
            updated = self._save(uow, session, document, now)

        self._logger.debug("Session %s selected option %d %r", session_id, selected_index, selected_option)
        return updated

    def _load(self, uow: UnitOfWork, session_id: str) -> Session:
        row = uow.sessions.get(session_id)
        if row is None:
            raise SessionNotFoundError(session_id)
        return self._to_session(row)

    @staticmethod
    def _to_session(row) -> Session:
        return Session(
            id=row.id,
            document=parse_json_dict(row.document_json),
            created_at=row.created_at,
            updated_at=row.updated_at,
            row_version=row.row_version,
        )

    def _save(self, uow: UnitOfWork, session: Session, document: dict[str, Any], now: datetime) -> Session:
        ok = uow.sessions.cas_apply_update(
            session_id=session.id,
            expected_row_version=session.row_version,
            values={"document_json": dump_json(document), "updated_at": now},
        )
        if not ok:
            raise StaleWriteError(f"Session {session.id} was modified concurrently")
        uow.commit()
        return Session(
            id=session.id,
            document=document,
            created_at=session.created_at,
            updated_at=now,
            row_version=session.row_version + 1,
        )

    @staticmethod
    def _upsert_delta(
        document: dict[str, Any],
        field: str,
        previous: Any,
        value: Any,
        now: datetime,
    ) -> None:
        deltas = document.get(PENDING_DELTAS_KEY)
        if not isinstance(deltas, list):
            deltas = []
            document[PENDING_DELTAS_KEY] = deltas

        for position, existing in enumerate(deltas):
            if isinstance(existing, dict) and existing.get("field") == field:
                initial = existing.get("initial_value")
                deltas[position] = DeltaEntry(
                    field=field,
                    initial_value=initial,
                    final_value=value,
                    timestamp=now,
                    description=describe_change(field, initial, value),
                ).to_dict()
                return

        deltas.append(
            DeltaEntry(
                field=field,
                initial_value=previous,
                final_value=value,
                timestamp=now,
                description=describe_change(field, previous, value),
            ).to_dict()
        )
