"""Tests for blockapps.core.interstitial – pre/post content and quizzes."""

from __future__ import annotations

import pytest

from blockapps.core.errors import QuizMarkupError
from blockapps.core.interstitial import (
    InterstitialContent,
    InterstitialCoordinator,
    InterstitialState,
    Quiz,
    QuizAnswer,
    video_url,
)
from blockapps.core.progress import InterType, LevelProgress

QUIZ = Quiz("How many?", [QuizAnswer("q3w", "One"), QuizAnswer("q3r", "Four")])


def _coordinator(messages, flags, content=None, **progress_kwargs):
    progress = LevelProgress(level=3, max_level=4, interstitials=flags, **progress_kwargs)
    content = content if content is not None else InterstitialContent(message="Loops!", quiz=QUIZ)
    return InterstitialCoordinator(progress, content, messages), progress


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

class TestContent:
    def test_blank_message_is_not_gating(self):
        assert not InterstitialContent(message="   ").is_gating

    def test_quiz_is_gating(self):
        assert InterstitialContent(quiz=QUIZ).is_gating

    def test_video_url(self):
        assert video_url("abc") == "https://docs.google.com/file/d/abc/preview"

    def test_coordinator_video_url(self, messages):
        coordinator, _ = _coordinator(messages, InterType.PRE, InterstitialContent(video_id="xyz"))
        assert coordinator.video_url == video_url("xyz")

    def test_no_video(self, messages):
        coordinator, _ = _coordinator(messages, InterType.PRE)
        assert coordinator.video_url is None


# ---------------------------------------------------------------------------
# Pre-level content
# ---------------------------------------------------------------------------

class TestPre:
    def test_shown_on_page_ready(self, messages):
        coordinator, _ = _coordinator(messages, InterType.PRE)
        coordinator.on_page_ready()
        assert coordinator.state is InterstitialState.PRE_SHOWN

    def test_not_shown_after_a_run(self, messages):
        coordinator, _ = _coordinator(messages, InterType.PRE, has_run=True)
        coordinator.on_page_ready()
        assert coordinator.state is InterstitialState.HIDDEN

    def test_not_shown_without_flag(self, messages):
        coordinator, _ = _coordinator(messages, InterType.POST)
        coordinator.on_page_ready()
        assert coordinator.state is InterstitialState.HIDDEN

    def test_advance_refused_while_shown(self, messages):
        coordinator, _ = _coordinator(messages, InterType.PRE)
        coordinator.on_page_ready()
        notified = []
        coordinator.add_listener(lambda: notified.append(True))
        assert not coordinator.request_advance()
        assert notified == [True]
        assert coordinator.state is InterstitialState.PRE_SHOWN

    def test_acknowledge_hides(self, messages):
        coordinator, _ = _coordinator(messages, InterType.PRE)
        coordinator.on_page_ready()
        coordinator.acknowledge()
        assert coordinator.state is InterstitialState.HIDDEN
        assert not coordinator.is_visible

    def test_acknowledge_leaves_post_content_alone(self, messages):
        coordinator, _ = _coordinator(messages, InterType.POST)
        coordinator.on_level_complete()
        coordinator.acknowledge()
        assert coordinator.state is InterstitialState.QUIZ_PENDING

    def test_message_shown_again_before_leaving(self, messages):
        content = InterstitialContent(message="Walls block you.")
        coordinator, progress = _coordinator(messages, InterType.PRE, content)
        coordinator.on_page_ready()
        coordinator.acknowledge()
        progress.level_complete = True

        assert coordinator.has_pending_content()
        assert not coordinator.request_advance()
        assert coordinator.state is InterstitialState.POST_SHOWN
        assert coordinator.continue_enabled
        assert coordinator.request_advance()


# ---------------------------------------------------------------------------
# Post-level content
# ---------------------------------------------------------------------------

class TestPost:
    def test_quiz_pending_on_completion(self, messages):
        coordinator, _ = _coordinator(messages, InterType.POST)
        coordinator.on_level_complete()
        assert coordinator.state is InterstitialState.QUIZ_PENDING
        assert not coordinator.continue_enabled

    def test_message_only(self, messages):
        coordinator, _ = _coordinator(messages, InterType.POST, InterstitialContent(message="Done"))
        coordinator.on_level_complete()
        assert coordinator.state is InterstitialState.POST_SHOWN
        assert coordinator.continue_enabled

    def test_both_flags(self, messages):
        coordinator, _ = _coordinator(messages, InterType.PRE | InterType.POST)
        coordinator.on_page_ready()
        assert coordinator.state is InterstitialState.PRE_SHOWN
        coordinator.cancel()
        coordinator.on_level_complete()
        assert coordinator.state is InterstitialState.QUIZ_PENDING

    def test_no_post_flag(self, messages):
        coordinator, _ = _coordinator(messages, InterType.PRE)
        coordinator.on_level_complete()
        assert coordinator.state is InterstitialState.HIDDEN

    def test_wrong_then_right(self, messages):
        coordinator, _ = _coordinator(messages, InterType.POST, level_complete=True)
        coordinator.on_level_complete()

        wrong = coordinator.answer("q3w")
        assert not wrong.correct
        assert wrong.color == "red"
        assert wrong.text == "Wrong.\nTry again."
        assert not coordinator.continue_enabled
        assert not coordinator.request_advance()

        right = coordinator.answer("q3r")
        assert right.correct
        assert right.color == "green"
        assert right.text == "Right!"
        assert coordinator.state is InterstitialState.QUIZ_RESOLVED
        assert coordinator.continue_enabled
        assert coordinator.request_advance()

    def test_malformed_identifier_raises(self, messages):
        coordinator, _ = _coordinator(messages, InterType.POST)
        coordinator.on_level_complete()
        with pytest.raises(QuizMarkupError) as excinfo:
            coordinator.answer("q3x")
        assert excinfo.value.identifier == "q3x"
        assert coordinator.state is InterstitialState.QUIZ_PENDING

    def test_empty_identifier_raises(self, messages):
        coordinator, _ = _coordinator(messages, InterType.POST)
        with pytest.raises(QuizMarkupError):
            coordinator.answer("")

    def test_dismissed_content_shown_again_on_advance(self, messages):
        coordinator, _ = _coordinator(messages, InterType.POST, level_complete=True)
        coordinator.on_level_complete()
        coordinator.cancel()
        assert coordinator.has_pending_content()
        assert not coordinator.request_advance()
        assert coordinator.state is InterstitialState.QUIZ_PENDING

    def test_quiz_only_advance_allowed_when_incomplete(self, messages):
        coordinator, _ = _coordinator(
            messages, InterType.POST, InterstitialContent(quiz=QUIZ), level_complete=False
        )
        assert coordinator.request_advance()

    def test_message_shown_before_leaving_incomplete_level(self, messages):
        coordinator, _ = _coordinator(messages, InterType.POST, InterstitialContent(message="Done"))
        assert not coordinator.request_advance()
        assert coordinator.state is InterstitialState.POST_SHOWN
        assert coordinator.request_advance()

    def test_non_gating_content_never_blocks(self, messages):
        coordinator, _ = _coordinator(
            messages, InterType.POST, InterstitialContent(video_id="v"), level_complete=True
        )
        assert coordinator.request_advance()
