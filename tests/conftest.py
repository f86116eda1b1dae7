"""Shared fixtures for spanview tests."""

from __future__ import annotations

from typing import Callable

import pytest

from spanview.trace.span import SpanData


class FakeTimer:
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Virtual clock: timers only fire when the test advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay_s, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [t for t in self.timers if not t.cancelled and not t.fired and t.due <= self.now]
        for timer in sorted(due, key=lambda t: t.due):
            timer.fired = True
            timer.callback()

    @property
    def active(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def abc_spans() -> list[SpanData]:
    """Root A (0..100ms) with children B (10..30) and C (50..60)."""
    return [
        SpanData("A", "A", 0.0, 100.0),
        SpanData("B", "B", 10.0, 20.0, parent_span_id="A"),
        SpanData("C", "C", 50.0, 10.0, parent_span_id="A"),
    ]
