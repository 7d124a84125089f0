from __future__ import annotations

import re
from enum import Enum
from typing import Any

from .errors import PathError

_INDEX_RE = re.compile(r"[0-9]+")


class IndexPolicy(str, Enum):
    """How ``write_path`` treats a list index past the end of the list."""

    PAD = "pad"
    STRICT = "strict"


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def is_index_token(token: str) -> bool:
    return bool(_INDEX_RE.fullmatch(token))


def strip_legacy_prefix(path: str, prefix: str | None = "game") -> str:
    if prefix and path.startswith(prefix + "."):
        return path[len(prefix) + 1:]
    return path


def parse_path(path: str) -> list[str]:
    """Split ``characters[0].level`` into ``["characters", "0", "level"]``.

    Malformed expressions raise ``PathError``: empty segments, a subscript
    with no key in front of it, unbalanced or nested brackets, and subscripts
    that are not non-negative integer literals (``arr[-1]``, ``arr[x]``).
    """
    if not isinstance(path, str) or not path:
        raise PathError(str(path), "path is empty")

    tokens: list[str] = []
    current = ""
    in_brackets = False
    after_subscript = False
    need_segment = True

    for char in path:
        if in_brackets:
            if char == "]":
                if not is_index_token(current):
                    raise PathError(path, f"subscript [{current}] is not a non-negative integer")
                tokens.append(current)
                current = ""
                in_brackets = False
                after_subscript = True
            elif char == "[":
                raise PathError(path, "nested '['")
            else:
                current += char
            continue

        if char == "[":
            if current:
                tokens.append(current)
                current = ""
            elif need_segment:
                raise PathError(path, "subscript without a key")
            in_brackets = True
            need_segment = False
        elif char == "]":
            raise PathError(path, "unbalanced ']'")
        elif char == ".":
            if current:
                tokens.append(current)
                current = ""
            elif not after_subscript:
                raise PathError(path, "empty segment")
            after_subscript = False
            need_segment = True
        else:
            if after_subscript:
                raise PathError(path, "expected '.' or '[' after subscript")
            current += char
            need_segment = False

    if in_brackets:
        raise PathError(path, "unbalanced '['")
    if current:
        tokens.append(current)
    elif need_segment:
        raise PathError(path, "empty segment")
    return tokens


def read_path(document: Any, tokens: list[str]) -> Any:
    """Return the value at ``tokens`` or ``MISSING`` if any step is absent."""
    current = document
    for token in tokens:
        if isinstance(current, dict):
            if token not in current:
                return MISSING
            current = current[token]
        elif isinstance(current, list):
            if not is_index_token(token):
                return MISSING
            index = int(token)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def _new_container(next_token: str) -> dict | list:
    # Lookahead decides the container kind once, at creation time.
    return [] if is_index_token(next_token) else {}


def _list_index(container: list, token: str, path: str, policy: IndexPolicy) -> int:
    if not is_index_token(token):
        raise PathError(path, f"key {token!r} used on a sequence")
    index = int(token)
    size = len(container)
    if index >= size:
        if policy is IndexPolicy.STRICT and index > size:
            raise PathError(path, f"index {index} out of range for sequence of length {size}")
        container.extend([None] * (index + 1 - size))
    return index


def write_path(
    document: Any,
    tokens: list[str],
    value: Any,
    *,
    index_policy: IndexPolicy = IndexPolicy.PAD,
    path: str | None = None,
) -> None:
    """Assign ``value`` at ``tokens`` inside ``document``, creating containers.

    Mutates ``document`` in place, so callers that need all-or-nothing
    semantics must write into a copy. A ``None`` met during descent is
    replaced by a fresh container.
    """
    path_text = path if path is not None else ".".join(tokens)
    if not tokens:
        raise PathError(path_text, "path has no segments")

    current = document
    for position, token in enumerate(tokens[:-1]):
        next_token = tokens[position + 1]
        if isinstance(current, dict):
            child = current.get(token)
            if child is None:
                child = _new_container(next_token)
                current[token] = child
        elif isinstance(current, list):
            index = _list_index(current, token, path_text, index_policy)
            child = current[index]
            if child is None:
                child = _new_container(next_token)
                current[index] = child
        else:
            raise PathError(path_text, f"cannot descend into {type(current).__name__} at {token!r}")
        current = child

    last = tokens[-1]
    if isinstance(current, dict):
        current[last] = value
    elif isinstance(current, list):
        current[_list_index(current, last, path_text, index_policy)] = value
    else:
        raise PathError(path_text, f"cannot assign {last!r} inside {type(current).__name__}")
