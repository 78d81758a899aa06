"""Localized message catalogs loaded from YAML."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_LANG = "en_us"


def messages_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "data" / "messages"


def available_languages(base_dir: Optional[Path] = None) -> List[str]:
    base_dir = base_dir or messages_dir()
    return sorted(p.stem for p in base_dir.glob("*.yaml"))


def choose_language(
    available: Iterable[str],
    requested: str = "",
    stored: Optional[str] = None,
    system: Optional[str] = None,
) -> str:
    """Pick the learner's language.

    Order: explicit request, stored preference, system locale, English,
    then any supported language.
    """
    languages = list(available)
    for candidate in (requested, stored, system, DEFAULT_LANG):
        if candidate and candidate in languages:
            return candidate
    if languages:
        return languages[0]
    raise LookupError("No languages available.")


class MessageCatalog:
    def __init__(self, lang: str, messages: Dict[str, str]) -> None:
        self.lang = lang
        self._messages = dict(messages)

    @classmethod
    def load(cls, lang: str, base_dir: Optional[Path] = None) -> "MessageCatalog":
        path = (base_dir or messages_dir()) / f"{lang}.yaml"
        if not path.exists():
            raise FileNotFoundError(f"Message catalog not found: {path}")
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"{path.name}: expected a mapping of message keys")
        messages = {}
        for key, value in raw.items():
            if value is None:
                logger.warning("%s: message %r has no text", path.name, key)
                continue
            messages[str(key)] = str(value)
        return cls(lang, messages)

    def get_or_none(self, key: str) -> Optional[str]:
        text = self._messages.get(key)
        if text is None:
            return None
        return text.replace("\\n", "\n")

    def get(self, key: str) -> str:
        text = self.get_or_none(key)
        if text is None:
            logger.warning("Unknown message: %s", key)
            return f"[Unknown message: {key}]"
        return text

    def format(self, key: str, *args: object) -> str:
        """Message with ``%1``, ``%2``... replaced by ``args``."""
        text = self.get(key)
        for index, value in enumerate(args, start=1):
            text = text.replace(f"%{index}", str(value))
        return text

    def capacity_message(self, capacity: Union[int, float]) -> Optional[str]:
        """How many more blocks may be added, or None when unlimited."""
        if capacity == math.inf:
            return None
        if capacity == 0:
            return self.get("capacity0")
        if capacity == 1:
            return self.get("capacity1")
        return self.format("capacity2", int(capacity))
