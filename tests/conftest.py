"""Shared fixtures: message catalog, synthetic bounds, virtual time."""

from __future__ import annotations

from typing import Any, Dict, Optional

import pytest

from blockapps.core.messages import MessageCatalog
from blockapps.core.overlay import DIALOG, Rect
from blockapps.core.timing import VirtualScheduler

MESSAGES = {
    "hintTitle": "Hint:",
    "emptyBlocksError": "Empty block.",
    "missingBlocksError": "Use these blocks.",
    "tooFewBlocksError": "Too few blocks.",
    "levelIncompleteError": "Not solved yet.",
    "numBlocksNeeded": "Solvable with %1 blocks, you used %2.",
    "nextLevelMsg": "Next level?",
    "finalLevelMsg": "All done!",
    "capacity0": "No blocks left.",
    "capacity1": "One block left.",
    "capacity2": "%1 blocks left.",
    "q3right": "Right!",
    "q3wrong": "Wrong.\\nTry again.",
}


class FakeBounds:
    """Bounds provider with fixed rectangles and a log of queried nodes."""

    def __init__(self, rects: Optional[Dict[Any, Rect]] = None) -> None:
        self.rects = rects if rects is not None else {
            DIALOG: Rect(100, 50, 400, 300),
            "helpButton": Rect(10, 10, 40, 20),
            "codeButton": Rect(60, 10, 40, 20),
        }
        self.queries = []

    def bounds(self, node: Any) -> Optional[Rect]:
        self.queries.append(node)
        return self.rects.get(node)


@pytest.fixture()
def messages() -> MessageCatalog:
    return MessageCatalog("en_us", MESSAGES)


@pytest.fixture()
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


@pytest.fixture()
def bounds() -> FakeBounds:
    return FakeBounds()
