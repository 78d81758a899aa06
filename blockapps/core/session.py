from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from blockapps.core.evaluator import FeedbackEvaluator, FeedbackReport
from blockapps.core.interstitial import InterstitialCoordinator, InterstitialState, QuizFeedback
from blockapps.core.levels import LevelConfig
from blockapps.core.messages import MessageCatalog
from blockapps.core.navigator import LevelNavigator, RunControls
from blockapps.core.outcomes import Outcome, presentation_for
from blockapps.core.overlay import BoundsProvider, OverlayController
from blockapps.core.progress import LevelProgress, ProgressStore
from blockapps.core.report import NullReporter, Reporter
from blockapps.core.timing import Scheduler
from blockapps.core.urls import Location
from blockapps.core.workspace import Workspace

logger = logging.getLogger(__name__)

# Node identifiers resolved by the view.
HELP = "help"
CODE = "code"
HELP_BUTTON = "helpButton"
CODE_BUTTON = "codeButton"

HELP_STYLE = {"width": "50%", "right": "25%", "top": "3em"}
CODE_STYLE = {"width": "40%", "left": "30%", "top": "5em"}

LevelRunner = Callable[[Workspace], bool]


def _normalize(code: str) -> str:
    return re.sub(r"\s+", "", code)


def solution_runner(config: LevelConfig) -> LevelRunner:
    """Treat the level as complete when the program matches the solution.

    Whitespace is ignored. Without a solution any non-empty program completes.
    """

    def _run(workspace: Workspace) -> bool:
        code = _normalize(workspace.to_code())
        if config.solution is None:
            return bool(code)
        return code == _normalize(config.solution)

    return _run


@dataclass(frozen=True)
class DialogButtons:
    continue_visible: bool
    continue_enabled: bool
    try_again_visible: bool
    return_visible: bool


class FeedbackSession:
    """One level's run cycle: evaluate, report, show feedback, move on.

    Wires the evaluator, overlay, interstitial and navigator around a shared
    :class:`LevelProgress`.
    """

    def __init__(
        self,
        config: LevelConfig,
        progress: LevelProgress,
        workspace: Workspace,
        messages: MessageCatalog,
        scheduler: Scheduler,
        bounds: BoundsProvider,
        navigate: Callable[[str], None],
        location: Optional[Location] = None,
        reporter: Optional[Reporter] = None,
        store: Optional[ProgressStore] = None,
        runner: Optional[LevelRunner] = None,
        app_name: str = "blockapps",
        on_reset: Optional[Callable[[], None]] = None,
    ) -> None:
        self.config = config
        self.progress = progress
        self.workspace = workspace
        self.messages = messages
        self._reporter = reporter or NullReporter()
        self._store = store
        self._runner = runner or solution_runner(config)
        self._app_name = app_name
        self._on_level_reset = on_reset
        self._outcome = Outcome.NO_TESTS_RUN
        self._feedback: Optional[FeedbackReport] = None

        self.evaluator = FeedbackEvaluator(config)
        self.interstitial = InterstitialCoordinator(progress, config.interstitial, messages)
        self.overlay = OverlayController(scheduler, bounds, self.interstitial)
        self.controls = RunControls()
        self.navigator = LevelNavigator(
            progress,
            self.overlay,
            self.interstitial,
            location or Location(),
            navigate,
            controls=self.controls,
            on_reset=self._on_reset,
        )
        self.overlay.park(HELP)
        self.overlay.park(CODE)

    @property
    def outcome(self) -> Outcome:
        return self._outcome

    @property
    def feedback(self) -> Optional[FeedbackReport]:
        return self._feedback

    def on_page_ready(self) -> None:
        self.interstitial.on_page_ready()
        if self.interstitial.state is InterstitialState.PRE_SHOWN:
            self.show_help(animate=False)

    def run(self) -> Outcome:
        """Run the learner's program and show the verdict."""
        self.overlay.hide(False)
        self.controls.running()
        self.progress.has_run = True
        self.progress.level_complete = bool(self._runner(self.workspace))
        outcome = self.evaluator.evaluate(self.workspace, self.progress.level_complete)
        logger.info("Level %s result: %s", self.progress.level, outcome.name)
        self._reporter.report(self._app_name, self.progress, outcome, self.workspace.to_code())
        if self._store is not None:
            self._store.record_result(self.config.key, presentation_for(outcome).stars)
        self.display_feedback(outcome)
        return outcome

    def display_feedback(self, outcome: Outcome) -> None:
        self._feedback = self.evaluator.build_feedback(outcome, self.workspace, self.progress, self.messages)
        self.show_help(True, outcome)

    def show_help(self, animate: bool = True, outcome: Optional[Outcome] = None) -> None:
        """Open the help dialog, with feedback for ``outcome`` if given."""
        if outcome is None:
            outcome = Outcome.NO_TESTS_RUN
            self._feedback = None
        self._outcome = outcome
        self.overlay.show(HELP, HELP_BUTTON, animate, True, HELP_STYLE)
        if presentation_for(outcome).show_continue:
            self.overlay.start_key_dismissal(on_advance=self.advance)
        else:
            self.overlay.start_key_dismissal()
        if not self.interstitial.is_visible:
            if self.progress.level_complete:
                self.interstitial.on_level_complete()
            else:
                self.interstitial.on_page_ready()

    def show_code(self) -> str:
        code = self.workspace.to_code()
        self.overlay.show(CODE, CODE_BUTTON, True, True, CODE_STYLE)
        self.overlay.start_key_dismissal()
        return code

    def advance(self) -> bool:
        """Continue to the next level unless interstitial content is pending."""
        navigated = self.navigator.advance_or_reset(True)
        if not navigated and not self.overlay.is_visible:
            # Gating content lives in the help dialog; bring it back.
            self.show_help(False, self._outcome)
        return navigated

    def try_again(self) -> None:
        self.navigator.advance_or_reset(False)

    def return_to_level(self) -> None:
        """Close the dialog and go back to the blocks, acknowledging any intro."""
        self.interstitial.acknowledge()
        self.navigator.advance_or_reset(False)

    def answer_quiz(self, identifier: str) -> QuizFeedback:
        return self.interstitial.answer(identifier)

    def handle_key(self, key_code: int) -> bool:
        return self.overlay.handle_key(key_code)

    def capacity_message(self) -> Optional[str]:
        return self.messages.capacity_message(self.workspace.remaining_capacity())

    def buttons(self) -> DialogButtons:
        presentation = presentation_for(self._outcome)
        state = self.interstitial.state
        post = state in (
            InterstitialState.POST_SHOWN,
            InterstitialState.QUIZ_PENDING,
            InterstitialState.QUIZ_RESOLVED,
        )
        if post:
            return DialogButtons(
                continue_visible=True,
                continue_enabled=self.interstitial.continue_enabled,
                try_again_visible=False,
                return_visible=False,
            )
        return DialogButtons(
            continue_visible=presentation.show_continue,
            continue_enabled=True,
            try_again_visible=presentation.show_try_again,
            return_visible=presentation.show_return_to_level,
        )

    def _on_reset(self) -> None:
        logger.debug("Level %s reset for another attempt", self.progress.level)
        if self._on_level_reset is not None:
            self._on_level_reset()
