"""Exception types raised by the blockapps runtime."""

from __future__ import annotations


class BlockAppsError(Exception):
    """Base class for blockapps errors."""


class LevelConfigError(BlockAppsError, ValueError):
    """A level file cannot be loaded at all."""


class QuizMarkupError(BlockAppsError):
    """A quiz response identifier is neither a right nor a wrong answer.

    This means the level's quiz markup is broken, so it is never swallowed.
    """

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Quiz response {identifier!r} is not 'w' or 'r'")
        self.identifier = identifier
