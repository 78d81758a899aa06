from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass, asdict, field
from enum import IntEnum, IntFlag
from pathlib import Path
from typing import Callable, Dict, List, Optional

from blockapps.core.timing import Scheduler, TransitionHandle, run_deferred

logger = logging.getLogger(__name__)


class InterType(IntFlag):
    """When a level shows its interstitial. Values combine bitwise."""

    NONE = 0
    PRE = 1
    POST = 2


class Mode(IntEnum):
    NORMAL = 1
    ADAPTIVE = 2


@dataclass
class LevelProgress:
    """State of the level being played, shared by the feedback components."""

    level: int
    max_level: int
    lang: str = "en_us"
    page: Optional[int] = None
    skin_id: Optional[str] = None
    mode: Optional[Mode] = None
    interstitials: InterType = InterType.NONE
    level_complete: Optional[bool] = None
    next_level_url: Optional[str] = None
    has_run: bool = False
    level_id: float = field(default_factory=random.random)

    @property
    def is_final_level(self) -> bool:
        return self.level >= self.max_level


@dataclass
class LevelRecord:
    best_stars: int = 0
    attempts: int = 0


class ProgressStore:
    """Best result per level. Persists to disk across app restarts.
    File: ~/.blockapps/progress.json. Loaded by :meth:`restore`, which the app
    defers until its window is set up."""

    def __init__(self, file_path: Optional[Path] = None) -> None:
        self._file_path = file_path or Path.home() / ".blockapps" / "progress.json"
        self._records: Dict[str, LevelRecord] = {}
        self._listeners: List[Callable[[], None]] = []

    def add_listener(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` whenever stored records change."""
        self._listeners.append(listener)

    def get_record(self, level_key: str) -> LevelRecord:
        return self._records.get(level_key, LevelRecord())

    def record_result(self, level_key: str, stars: int) -> LevelRecord:
        current = self._records.get(level_key, LevelRecord())
        current.best_stars = max(current.best_stars, stars)
        current.attempts += 1
        self._records[level_key] = current
        self._save()
        self._notify()
        return current

    def reset_level(self, level_key: str) -> None:
        """Clear progress for a single level."""
        self._records[level_key] = LevelRecord()
        self._save()
        self._notify()

    def reset(self) -> None:
        """Clear all progress."""
        self._records = {}
        self._save()
        self._notify()

    def restore(self) -> None:
        """Load records from disk, replacing anything held in memory."""
        self._records = self._load()
        self._notify()

    def restore_later(self, scheduler: Scheduler) -> TransitionHandle:
        """Restore after the current initialisation has finished."""
        return run_deferred(scheduler, self.restore, f"restore progress from {self._file_path}")

    def save(self) -> None:
        """Persist current state to disk (e.g. on app exit)."""
        self._save()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _load(self) -> Dict[str, LevelRecord]:
        records: Dict[str, LevelRecord] = {}
        if not self._file_path.exists():
            return records
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load progress from %s: %s", self._file_path, e)
            return records
        if not isinstance(payload, dict):
            logger.warning("Ignoring progress file %s: expected an object", self._file_path)
            return records

        levels = payload.get("levels", {})
        if not isinstance(levels, dict):
            return records
        for key, value in levels.items():
            if not isinstance(value, dict):
                continue
            records[key] = LevelRecord(
                best_stars=int(value.get("best_stars", 0)),
                attempts=int(value.get("attempts", 0)),
            )
        return records

    def _save(self) -> None:
        payload = {"levels": {key: asdict(value) for key, value in self._records.items()}}
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save progress to %s: %s", self._file_path, e)
