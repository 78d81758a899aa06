"""Tests for blockapps.core.report – report payloads and responses."""

from __future__ import annotations

from blockapps.core.outcomes import Outcome
from blockapps.core.progress import LevelProgress
from blockapps.core.report import (
    DEFAULT_REPORT_URL,
    NullReporter,
    apply_report_response,
    build_report_body,
    parse_redirect,
    report_url,
)
from blockapps.core.urls import Location


class TestReportUrl:
    def test_default_relative_to_origin(self, monkeypatch):
        monkeypatch.delenv("BLOCKAPPS_REPORT_URL", raising=False)
        location = Location.parse("https://example.org/maze?level=1")
        assert report_url(location) == "https://example.org" + DEFAULT_REPORT_URL

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("BLOCKAPPS_REPORT_URL", "https://reports.example.org/r")
        assert report_url(Location.parse("https://example.org/maze")) == "https://reports.example.org/r"

    def test_callback_url_param_wins(self, monkeypatch):
        monkeypatch.setenv("BLOCKAPPS_REPORT_URL", "https://reports.example.org/r")
        location = Location.parse("https://example.org/maze?callback_url=%2Fdone")
        assert report_url(location) == "https://example.org/done"


class TestBuildReportBody:
    def test_fields_and_order(self):
        body = build_report_body("maze", 0.5, 3, Outcome.TOO_MANY_BLOCKS_FAIL, "moveForward();")
        assert body == (
            "app=maze&id=0.5&level=3&result=5&attempt=1&time=1&program=moveForward%28%29%3B"
        )

    def test_program_fully_encoded(self):
        body = build_report_body("maze", 0.1, 1, Outcome.ALL_PASS, "a b\n&c=/d")
        assert body.endswith("&program=a%20b%0A%26c%3D%2Fd")

    def test_negative_result(self):
        body = build_report_body("maze", 0.1, 1, Outcome.NO_TESTS_RUN, "")
        assert "&result=-1&" in body


class TestResponses:
    def test_parse_redirect(self):
        assert parse_redirect(b'{"redirect": "/custom"}') == "/custom"

    def test_parse_redirect_missing(self):
        assert parse_redirect(b'{"ok": true}') is None

    def test_parse_redirect_not_json(self):
        assert parse_redirect(b"<html>") is None

    def test_parse_redirect_not_object(self):
        assert parse_redirect(b'["/custom"]') is None

    def test_apply_sets_next_level(self):
        progress = LevelProgress(level=1, max_level=2)
        apply_report_response(progress, 200, b'{"redirect": "/custom"}')
        assert progress.next_level_url == "/custom"

    def test_apply_ignores_failed_status(self):
        progress = LevelProgress(level=1, max_level=2)
        apply_report_response(progress, 500, b'{"redirect": "/custom"}')
        assert progress.next_level_url is None

    def test_apply_ignores_empty_redirect(self):
        progress = LevelProgress(level=1, max_level=2, next_level_url="/kept")
        apply_report_response(progress, 200, b'{"redirect": ""}')
        assert progress.next_level_url == "/kept"


class TestNullReporter:
    def test_does_nothing(self):
        progress = LevelProgress(level=1, max_level=2)
        NullReporter().report("maze", progress, Outcome.ALL_PASS, "code")
        assert progress.next_level_url is None
