"""Tests for blockapps.core.session – the run, feedback and advance cycle."""

from __future__ import annotations

import pytest

from blockapps.core.interstitial import InterstitialContent, InterstitialState, Quiz, QuizAnswer
from blockapps.core.levels import LevelConfig
from blockapps.core.outcomes import Outcome
from blockapps.core.overlay import KEY_ENTER, KEY_ESCAPE
from blockapps.core.progress import InterType, LevelProgress, ProgressStore
from blockapps.core.session import HELP, FeedbackSession, solution_runner
from blockapps.core.timing import TRANSITION_MS
from blockapps.core.urls import Location
from blockapps.core.workspace import BlockWorkspace

TEMPLATES = {"move": "moveForward();", "turn": "turnLeft();"}
LOCATION = Location.parse("https://example.org/maze?level=3")


class RecordingReporter:
    def __init__(self) -> None:
        self.reports = []

    def report(self, app, progress, result, program):
        self.reports.append((app, progress.level, result, program))


def _config(**kwargs) -> LevelConfig:
    kwargs.setdefault("solution", "moveForward();\nturnLeft();")
    return LevelConfig(number=3, title="Corner", templates=TEMPLATES, **kwargs)


@pytest.fixture()
def store(tmp_path) -> ProgressStore:
    return ProgressStore(tmp_path / "progress.json")


@pytest.fixture()
def make_session(scheduler, bounds, messages, store):
    def _make(config=None, interstitials=InterType.NONE, max_level=4, on_reset=None):
        config = config or _config()
        progress = LevelProgress(level=config.number, max_level=max_level, interstitials=interstitials)
        workspace = BlockWorkspace(config.templates, config.max_blocks)
        visited = []
        reporter = RecordingReporter()
        session = FeedbackSession(
            config,
            progress,
            workspace,
            messages,
            scheduler,
            bounds,
            visited.append,
            location=LOCATION,
            reporter=reporter,
            store=store,
            on_reset=on_reset,
        )
        return session, visited, reporter

    return _make


def _solve(session: FeedbackSession) -> None:
    session.workspace.add_block("move")
    session.workspace.add_block("turn")


# ---------------------------------------------------------------------------
# Solution runner
# ---------------------------------------------------------------------------

class TestSolutionRunner:
    def test_ignores_whitespace(self):
        ws = BlockWorkspace(TEMPLATES)
        ws.add_block("move")
        ws.add_block("turn")
        assert solution_runner(_config(solution="moveForward();   turnLeft();"))(ws)

    def test_wrong_program(self):
        ws = BlockWorkspace(TEMPLATES)
        ws.add_block("turn")
        assert not solution_runner(_config())(ws)

    def test_without_solution_any_program(self):
        ws = BlockWorkspace(TEMPLATES)
        runner = solution_runner(_config(solution=None))
        assert not runner(ws)
        ws.add_block("turn")
        assert runner(ws)


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------

class TestRun:
    def test_pass_shows_feedback(self, make_session, scheduler):
        session, _, reporter = make_session()
        _solve(session)
        assert session.run() is Outcome.ALL_PASS
        assert session.progress.has_run
        assert session.progress.level_complete
        assert session.controls.reset_visible
        assert session.feedback.stars == 3
        assert session.overlay.session.content == HELP
        scheduler.advance(TRANSITION_MS)
        assert session.overlay.state.dialog_visible
        assert reporter.reports == [("blockapps", 3, Outcome.ALL_PASS, "moveForward();\nturnLeft();\n")]

    def test_records_best_stars(self, make_session, store):
        session, _, _ = make_session()
        session.workspace.add_block("move")
        session.run()
        assert store.get_record("level3").best_stars == 0
        session.workspace.add_block("turn")
        session.run()
        assert store.get_record("level3").best_stars == 3

    def test_incomplete_offers_return(self, make_session):
        session, _, _ = make_session()
        session.workspace.add_block("move")
        assert session.run() is Outcome.LEVEL_INCOMPLETE_FAIL
        buttons = session.buttons()
        assert buttons.return_visible
        assert not buttons.continue_visible

    def test_second_run_replaces_dialog(self, make_session, scheduler):
        session, _, _ = make_session()
        session.run()
        session.run()
        assert session.overlay.attached == [HELP]
        assert session.overlay.holding_area.count(HELP) == 0


# ---------------------------------------------------------------------------
# Advance and retry
# ---------------------------------------------------------------------------

class TestAdvance:
    def test_continue_navigates(self, make_session):
        session, visited, _ = make_session()
        _solve(session)
        session.run()
        assert session.advance()
        assert visited == ["https://example.org/maze?lang=en_us&level=4&reinf=1"]
        assert not session.overlay.is_visible

    def test_enter_key_advances(self, make_session, scheduler):
        session, visited, _ = make_session()
        _solve(session)
        session.run()
        scheduler.advance(TRANSITION_MS)
        assert session.handle_key(KEY_ENTER)
        assert len(visited) == 1

    def test_enter_key_only_closes_without_continue(self, make_session, scheduler):
        session, visited, _ = make_session()
        session.workspace.add_block("move")
        session.run()
        scheduler.advance(TRANSITION_MS)
        assert session.handle_key(KEY_ENTER)
        assert visited == []
        assert not session.overlay.is_visible

    def test_try_again_resets(self, make_session):
        resets = []
        session, _, _ = make_session(on_reset=lambda: resets.append(True))
        session.run()
        session.try_again()
        assert not session.overlay.is_visible
        assert session.controls.run_visible
        assert resets == [True]


# ---------------------------------------------------------------------------
# Interstitials
# ---------------------------------------------------------------------------

QUIZ_CONTENT = InterstitialContent(
    message="Corners!",
    quiz=Quiz("Which way?", [QuizAnswer("q3w", "Right"), QuizAnswer("q3r", "Left")]),
)


class TestInterstitials:
    def test_pre_content_shown_on_load(self, make_session):
        session, visited, _ = make_session(
            _config(interstitial=InterstitialContent(message="Welcome")), InterType.PRE
        )
        session.on_page_ready()
        assert session.overlay.is_visible
        assert session.overlay.state.dialog_visible
        assert session.interstitial.state is InterstitialState.PRE_SHOWN

    def test_pre_content_dismissed_by_first_run(self, make_session):
        session, _, _ = make_session(
            _config(interstitial=InterstitialContent(message="Welcome")), InterType.PRE
        )
        session.on_page_ready()
        session.run()
        assert session.interstitial.state is InterstitialState.HIDDEN

    def test_return_to_level_acknowledges_intro(self, make_session):
        session, visited, _ = make_session(
            _config(interstitial=InterstitialContent(message="Welcome")), InterType.PRE
        )
        session.on_page_ready()
        assert session.buttons().return_visible
        session.return_to_level()
        assert session.interstitial.state is InterstitialState.HIDDEN
        assert not session.overlay.is_visible
        assert visited == []

    def test_intro_message_shown_again_before_next_level(self, make_session):
        session, visited, _ = make_session(
            _config(interstitial=InterstitialContent(message="Welcome")), InterType.PRE
        )
        session.on_page_ready()
        session.return_to_level()
        _solve(session)
        session.run()
        assert session.interstitial.state is InterstitialState.HIDDEN

        assert not session.advance()
        assert visited == []
        assert session.overlay.is_visible
        assert session.interstitial.state is InterstitialState.POST_SHOWN
        assert session.advance()
        assert len(visited) == 1

    def test_quiz_gates_continue(self, make_session):
        session, visited, _ = make_session(_config(interstitial=QUIZ_CONTENT), InterType.POST)
        _solve(session)
        session.run()
        assert session.interstitial.state is InterstitialState.QUIZ_PENDING
        buttons = session.buttons()
        assert buttons.continue_visible and not buttons.continue_enabled
        assert not buttons.try_again_visible

        assert not session.advance()
        session.answer_quiz("q3w")
        assert not session.buttons().continue_enabled
        session.answer_quiz("q3r")
        assert session.buttons().continue_enabled
        assert session.advance()
        assert len(visited) == 1

    def test_escape_then_advance_shows_quiz_again(self, make_session, scheduler):
        session, visited, _ = make_session(_config(interstitial=QUIZ_CONTENT), InterType.POST)
        _solve(session)
        session.run()
        scheduler.advance(TRANSITION_MS)
        session.handle_key(KEY_ESCAPE)
        assert not session.overlay.is_visible
        assert not session.advance()
        assert visited == []
        assert session.overlay.is_visible
        assert session.interstitial.state is InterstitialState.QUIZ_PENDING

    def test_failed_run_does_not_show_post_content(self, make_session):
        session, _, _ = make_session(_config(interstitial=QUIZ_CONTENT), InterType.POST)
        session.workspace.add_block("move")
        session.run()
        assert session.interstitial.state is InterstitialState.HIDDEN


# ---------------------------------------------------------------------------
# Capacity and code
# ---------------------------------------------------------------------------

class TestMisc:
    def test_capacity_message(self, make_session):
        session, _, _ = make_session(_config(max_blocks=3))
        session.workspace.add_block("move")
        assert session.capacity_message() == "2 blocks left."

    def test_unlimited_capacity_has_no_message(self, make_session):
        session, _, _ = make_session()
        assert session.capacity_message() is None

    def test_show_code(self, make_session):
        session, _, _ = make_session()
        session.workspace.add_block("move")
        assert session.show_code() == "moveForward();\n"
        assert session.overlay.session.content == "code"
        session.show_help(False)
        assert session.overlay.attached == [HELP]
        assert "code" in session.overlay.holding_area
