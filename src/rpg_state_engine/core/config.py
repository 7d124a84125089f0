from __future__ import annotations

from dataclasses import dataclass

from .paths import IndexPolicy


@dataclass(frozen=True)
class StoreConfig:
    history_limit: int = 10
    legacy_path_prefix: str | None = "game"
    index_policy: IndexPolicy = IndexPolicy.PAD

    def __post_init__(self) -> None:
        if self.history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        # Accept the plain string form, e.g. StoreConfig(index_policy="strict").
        object.__setattr__(self, "index_policy", IndexPolicy(self.index_policy))
