"""Hints, quizzes and videos shown before or after a level."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from blockapps.core.errors import QuizMarkupError
from blockapps.core.messages import MessageCatalog
from blockapps.core.progress import InterType, LevelProgress

logger = logging.getLogger(__name__)

VIDEO_URL_TEMPLATE = "https://docs.google.com/file/d/{video_id}/preview"


@dataclass(frozen=True)
class QuizAnswer:
    id: str
    text: str


@dataclass(frozen=True)
class Quiz:
    question: str
    answers: List[QuizAnswer] = field(default_factory=list)


@dataclass(frozen=True)
class InterstitialContent:
    message: str = ""
    quiz: Optional[Quiz] = None
    video_id: Optional[str] = None

    @property
    def has_message(self) -> bool:
        return bool(self.message.strip())

    @property
    def is_gating(self) -> bool:
        return self.has_message or self.quiz is not None


class InterstitialState(Enum):
    HIDDEN = "hidden"
    PRE_SHOWN = "pre_shown"
    POST_SHOWN = "post_shown"
    QUIZ_PENDING = "quiz_pending"
    QUIZ_RESOLVED = "quiz_resolved"


@dataclass(frozen=True)
class QuizFeedback:
    text: str
    color: str
    correct: bool


def video_url(video_id: str) -> str:
    return VIDEO_URL_TEMPLATE.format(video_id=video_id)


class InterstitialCoordinator:
    """Decides when auxiliary content must be seen before the learner moves on.

    Advancing is refused while the pre-level content is up or a quiz is
    unanswered; the content is shown again instead.
    """

    def __init__(
        self,
        progress: LevelProgress,
        content: InterstitialContent,
        messages: MessageCatalog,
    ) -> None:
        self._progress = progress
        self._content = content
        self._messages = messages
        self._state = InterstitialState.HIDDEN
        self._quiz_feedback: Optional[QuizFeedback] = None
        self._listeners: List[Callable[[], None]] = []

    @property
    def state(self) -> InterstitialState:
        return self._state

    @property
    def content(self) -> InterstitialContent:
        return self._content

    @property
    def is_visible(self) -> bool:
        return self._state is not InterstitialState.HIDDEN

    @property
    def continue_enabled(self) -> bool:
        return self._state is not InterstitialState.QUIZ_PENDING

    @property
    def quiz_feedback(self) -> Optional[QuizFeedback]:
        return self._quiz_feedback

    @property
    def video_url(self) -> Optional[str]:
        if not self._content.video_id:
            return None
        return video_url(self._content.video_id)

    def add_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def on_page_ready(self) -> None:
        if self._progress.interstitials & InterType.PRE and not self._progress.has_run:
            self._set_state(InterstitialState.PRE_SHOWN)

    def on_level_complete(self) -> None:
        if not self._progress.interstitials & InterType.POST:
            return
        self._show_post_content()

    def acknowledge(self) -> None:
        """Dismiss the pre-level content so the learner can start."""
        if self._state is InterstitialState.PRE_SHOWN:
            self._set_state(InterstitialState.HIDDEN)

    def has_pending_content(self) -> bool:
        """True if advancing now would skip content the learner has not seen."""
        if self._state in (InterstitialState.PRE_SHOWN, InterstitialState.QUIZ_PENDING):
            return True
        if self._state is not InterstitialState.HIDDEN:
            return False
        if self._content.has_message:
            return True
        return (
            self._content.quiz is not None
            and bool(self._progress.level_complete)
            and bool(self._progress.interstitials & InterType.POST)
        )

    def request_advance(self) -> bool:
        """Return True if the learner may leave the level now.

        Otherwise the pending content is (re)displayed.
        """
        if self._state in (InterstitialState.PRE_SHOWN, InterstitialState.QUIZ_PENDING):
            logger.info("Advance refused while interstitial is %s", self._state.value)
            self._notify()
            return False
        if self.has_pending_content():
            self._show_post_content()
            return False
        return True

    def answer(self, identifier: str) -> QuizFeedback:
        """Handle a quiz answer whose identifier ends in 'r' (right) or 'w' (wrong)."""
        kind = identifier[-1:]
        if kind == "w":
            correct = False
        elif kind == "r":
            correct = True
        else:
            raise QuizMarkupError(identifier)

        response_word = "right" if correct else "wrong"
        feedback = QuizFeedback(
            text=self._messages.get(f"q{self._progress.level}{response_word}"),
            color="green" if correct else "red",
            correct=correct,
        )
        self._quiz_feedback = feedback
        if correct and self._state is InterstitialState.QUIZ_PENDING:
            self._state = InterstitialState.QUIZ_RESOLVED
        self._notify()
        return feedback

    def cancel(self) -> None:
        """Hide the content; pending display for this cycle is dropped."""
        if self._state is InterstitialState.HIDDEN:
            return
        self._set_state(InterstitialState.HIDDEN)

    def _show_post_content(self) -> None:
        self._quiz_feedback = None
        if self._content.quiz is not None:
            self._set_state(InterstitialState.QUIZ_PENDING)
        else:
            self._set_state(InterstitialState.POST_SHOWN)

    def _set_state(self, state: InterstitialState) -> None:
        logger.debug("Interstitial %s -> %s", self._state.value, state.value)
        self._state = state
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
