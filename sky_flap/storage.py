"""Best-score persistence.

A store is a tiny key/value map of integers. The session only ever touches one
key (the best score); reads that fail or find garbage behave like a missing
key, writes that fail raise StoreError so the caller can decide to carry on.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Protocol

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a score store cannot persist a value."""


class ScoreStore(Protocol):
    def get(self, key: str) -> int | None: ...

    def set(self, key: str, value: int) -> None: ...


class MemoryScoreStore:
    """Dict-backed store; nothing survives the process."""

    def __init__(self, initial: dict[str, int] | None = None) -> None:
        self.values: dict[str, int] = dict(initial or {})
        self.writes = 0

    def get(self, key: str) -> int | None:
        return self.values.get(key)

    def set(self, key: str, value: int) -> None:
        self.values[key] = int(value)
        self.writes += 1


class JsonScoreStore:
    """Store backed by a single JSON object file."""

    def __init__(self, path: str) -> None:
        self.path = path

    def _load(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable score file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring score file %s: expected a JSON object", self.path)
            return {}
        return data

    def get(self, key: str) -> int | None:
        value = self._load().get(key)
        # bool is an int subclass but never a valid score
        if isinstance(value, bool) or not isinstance(value, int):
            if value is not None:
                logger.warning("Ignoring non-integer %r for %s", value, key)
            return None
        return value

    def set(self, key: str, value: int) -> None:
        data = self._load()
        data[key] = int(value)
        tmp_path = self.path + ".tmp"
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StoreError(f"could not write {self.path}: {exc}") from exc
