"""Tests for blockapps.core.timing – virtual time and deferred tasks."""

from __future__ import annotations

import logging

from blockapps.core.timing import TransitionHandle, VirtualScheduler, run_deferred


class TestTransitionHandle:
    def test_fires_once(self):
        calls = []
        handle = TransitionHandle(lambda: calls.append(1))
        handle.fire()
        handle.fire()
        assert calls == [1]
        assert not handle.pending

    def test_cancelled_never_fires(self):
        calls = []
        handle = TransitionHandle(lambda: calls.append(1))
        handle.cancel()
        handle.fire()
        assert calls == []
        assert not handle.pending


class TestVirtualScheduler:
    def test_fires_in_due_order(self):
        scheduler = VirtualScheduler()
        order = []
        scheduler.call_later(20, lambda: order.append("b"))
        scheduler.call_later(10, lambda: order.append("a"))
        scheduler.call_later(20, lambda: order.append("c"))
        scheduler.advance(15)
        assert order == ["a"]
        assert scheduler.now == 15
        scheduler.advance(5)
        assert order == ["a", "b", "c"]

    def test_pending_count_ignores_cancelled(self):
        scheduler = VirtualScheduler()
        handle = scheduler.call_later(10, lambda: None)
        scheduler.call_later(10, lambda: None)
        handle.cancel()
        assert scheduler.pending_count() == 1

    def test_run_pending_includes_new_work(self):
        scheduler = VirtualScheduler()
        calls = []
        scheduler.call_later(5, lambda: scheduler.call_later(5, lambda: calls.append("late")))
        scheduler.run_pending()
        assert calls == ["late"]
        assert scheduler.now == 10


class TestRunDeferred:
    def test_runs_after_current_work(self):
        scheduler = VirtualScheduler()
        calls = []
        run_deferred(scheduler, lambda: calls.append("task"), "task")
        assert calls == []
        scheduler.advance(0)
        assert calls == ["task"]

    def test_failure_is_logged(self, caplog):
        scheduler = VirtualScheduler()

        def boom():
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="blockapps.core.timing"):
            run_deferred(scheduler, boom, "exploding task")
            scheduler.run_pending()
        assert "exploding task" in caplog.text
