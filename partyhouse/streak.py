# partyhouse/streak.py
from __future__ import annotations

import json
import logging
import os
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Streak(Protocol):
    def get(self) -> int: ...

    def set(self, value: int) -> None: ...


class MemoryStreak:
    """Win streak that lives as long as the process."""

    def __init__(self, value: int = 0):
        self._value = value

    def get(self) -> int:
        return self._value

    def set(self, value: int) -> None:
        self._value = value


class JsonStreak:
    """Win streak kept in a small JSON file: {"win_streak": n}."""

    def __init__(self, path: str):
        self.path = path

    def get(self) -> int:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            return 0
        except (OSError, ValueError) as e:
            logger.warning("Unreadable streak file %s: %s", self.path, e)
            return 0
        try:
            return max(0, int(raw.get("win_streak", 0)))
        except (AttributeError, TypeError, ValueError):
            logger.warning("Malformed streak file %s", self.path)
            return 0

    def set(self, value: int) -> None:
        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump({"win_streak": int(value)}, f)
        os.replace(tmp, self.path)
