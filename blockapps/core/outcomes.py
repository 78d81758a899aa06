"""Program test outcomes and how each one is presented."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional


class Outcome(IntEnum):
    """Result of testing a learner's program.

    The evaluator checks these in a fixed order; the numeric values are
    reported to the server and must not change.
    """

    NO_TESTS_RUN = -1
    ALL_PASS = 0
    EMPTY_BLOCK_FAIL = 1
    MISSING_BLOCK_FAIL = 2
    TOO_FEW_BLOCKS_FAIL = 3
    LEVEL_INCOMPLETE_FAIL = 4
    TOO_MANY_BLOCKS_FAIL = 5
    APP_SPECIFIC_1_STAR_FAIL = 6
    APP_SPECIFIC_2_STAR_FAIL = 7


@dataclass(frozen=True)
class Presentation:
    """Stars, hint and dialog buttons shown for an outcome."""

    stars: int
    message_key: Optional[str]
    show_continue: bool
    show_try_again: bool
    show_return_to_level: bool


_CONTINUE = dict(show_continue=True, show_try_again=False, show_return_to_level=False)
_CONTINUE_OR_RETRY = dict(show_continue=True, show_try_again=True, show_return_to_level=False)
_RETRY = dict(show_continue=False, show_try_again=True, show_return_to_level=False)
_RETURN = dict(show_continue=False, show_try_again=False, show_return_to_level=True)

PRESENTATIONS: Dict[Outcome, Presentation] = {
    Outcome.NO_TESTS_RUN: Presentation(0, None, **_RETURN),
    Outcome.ALL_PASS: Presentation(3, None, **_CONTINUE),
    Outcome.EMPTY_BLOCK_FAIL: Presentation(0, "emptyBlocksError", **_RETURN),
    Outcome.MISSING_BLOCK_FAIL: Presentation(1, "missingBlocksError", **_RETRY),
    Outcome.TOO_FEW_BLOCKS_FAIL: Presentation(0, "tooFewBlocksError", **_RETURN),
    Outcome.LEVEL_INCOMPLETE_FAIL: Presentation(0, "levelIncompleteError", **_RETURN),
    Outcome.TOO_MANY_BLOCKS_FAIL: Presentation(2, "tooManyBlocksError", **_CONTINUE_OR_RETRY),
    Outcome.APP_SPECIFIC_1_STAR_FAIL: Presentation(1, None, **_RETRY),
    Outcome.APP_SPECIFIC_2_STAR_FAIL: Presentation(2, None, **_CONTINUE_OR_RETRY),
}


def presentation_for(outcome: Outcome) -> Presentation:
    return PRESENTATIONS[Outcome(outcome)]


def stars_for(outcome: Outcome) -> int:
    """Number of stars earned; 0 means only a corrective hint is shown."""
    return presentation_for(outcome).stars
