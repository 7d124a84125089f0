from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from .normalize import format_utc_timestamp, parse_utc_timestamp

# Store-owned bookkeeping keys kept inside every session document.
PENDING_DELTAS_KEY = "_pending_deltas"
LAST_NARRATIVE_KEY = "_last_narrative"
HISTORY_KEY = "_history"
ACTIVE_CHOICES_KEY = "_active_choices"
LAST_CHOICE_KEY = "_last_choice"
LAST_PROMPT_AT_KEY = "_last_prompt_at"

RESERVED_KEYS = frozenset(
    {
        PENDING_DELTAS_KEY,
        LAST_NARRATIVE_KEY,
        HISTORY_KEY,
        ACTIVE_CHOICES_KEY,
        LAST_CHOICE_KEY,
        LAST_PROMPT_AT_KEY,
    }
)


@dataclass
class DeltaEntry:
    field: str
    initial_value: Any
    final_value: Any
    timestamp: datetime
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "initial_value": self.initial_value,
            "final_value": self.final_value,
            "timestamp": format_utc_timestamp(self.timestamp),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeltaEntry":
        return cls(
            field=str(data.get("field") or ""),
            initial_value=data.get("initial_value"),
            final_value=data.get("final_value"),
            timestamp=parse_utc_timestamp(data.get("timestamp")) or datetime.min,
            description=str(data.get("description") or ""),
        )


@dataclass
class HistoryEntry:
    narrative: str
    options: list[str]
    selected_option: str
    selected_index: int
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "narrative": self.narrative,
            "options": list(self.options),
            "selected_option": self.selected_option,
            "selected_index": self.selected_index,
            "timestamp": format_utc_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        options = data.get("options")
        return cls(
            narrative=str(data.get("narrative") or ""),
            options=[str(o) for o in options] if isinstance(options, list) else [],
            selected_option=str(data.get("selected_option") or ""),
            selected_index=int(data.get("selected_index") or 0),
            timestamp=parse_utc_timestamp(data.get("timestamp")) or datetime.min,
        )


@dataclass
class ChoiceRecord:
    option: str
    index: int
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "option": self.option,
            "index": self.index,
            "timestamp": format_utc_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChoiceRecord":
        return cls(
            option=str(data.get("option") or ""),
            index=int(data.get("index") or 0),
            timestamp=parse_utc_timestamp(data.get("timestamp")) or datetime.min,
        )


@dataclass
class Session:
    """One game document plus the store's bookkeeping.

    Bookkeeping lives in ``document`` under the reserved keys above so a
    full read always shows it; the properties below decode those keys.
    """

    id: str
    document: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    row_version: int = 1

    @property
    def pending_deltas(self) -> list[DeltaEntry]:
        raw = self.document.get(PENDING_DELTAS_KEY)
        if not isinstance(raw, list):
            return []
        return [DeltaEntry.from_dict(item) for item in raw if isinstance(item, dict)]

    @property
    def history(self) -> list[HistoryEntry]:
        raw = self.document.get(HISTORY_KEY)
        if not isinstance(raw, list):
            return []
        return [HistoryEntry.from_dict(item) for item in raw if isinstance(item, dict)]

    @property
    def active_choices(self) -> list[str]:
        raw = self.document.get(ACTIVE_CHOICES_KEY)
        if not isinstance(raw, list):
            return []
        return [str(option) for option in raw]

    @property
    def last_narrative(self) -> Optional[str]:
        raw = self.document.get(LAST_NARRATIVE_KEY)
        return raw if isinstance(raw, str) else None

    @property
    def last_choice(self) -> Optional[ChoiceRecord]:
        raw = self.document.get(LAST_CHOICE_KEY)
        return ChoiceRecord.from_dict(raw) if isinstance(raw, dict) else None

    @property
    def last_prompt_at(self) -> Optional[datetime]:
        return parse_utc_timestamp(self.document.get(LAST_PROMPT_AT_KEY))

    @property
    def content(self) -> dict[str, Any]:
        return {key: value for key, value in self.document.items() if key not in RESERVED_KEYS}

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.id,
            "document": self.document,
            "created_at": format_utc_timestamp(self.created_at),
            "updated_at": format_utc_timestamp(self.updated_at),
        }

