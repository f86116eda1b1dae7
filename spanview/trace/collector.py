"""Trace collector — buffers spans per trace and renders once a trace settles.

Spans arrive one by one, usually children first.  Every span (re)arms a
short render timer for its trace; once the trace has been quiet for the
whole delay the buffered spans are handed to the render callback exactly
once.  A span arriving after that starts a new batch.

Thread-safe: buffers and pending timers are guarded by one lock, and the
render callback runs outside it.

Usage::

    collector = TraceCollector(render_trace)
    collector.add_span(trace_id, span)
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Protocol, Sequence

from spanview.trace.span import SpanData

logger = logging.getLogger("spanview.collector")

RenderCallback = Callable[[str, Sequence[SpanData]], Any]

DEFAULT_RENDER_DELAY_S = 0.1


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback after a delay and cancel it."""

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """Scheduler backed by daemon :class:`threading.Timer` threads."""

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay_s, callback)
        timer.daemon = True
        timer.start()
        return timer


class TraceCollector:
    """Per-trace span buffer with debounced rendering.

    Attributes:
        delay_s: Quiet period after the last span of a trace before rendering.
    """

    def __init__(
        self,
        render: RenderCallback,
        scheduler: Scheduler | None = None,
        delay_s: float = DEFAULT_RENDER_DELAY_S,
    ) -> None:
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        self.delay_s = delay_s
        self._render = render
        self._scheduler: Scheduler = scheduler or ThreadingScheduler()
        self._spans: dict[str, list[SpanData]] = {}
        self._pending: dict[str, tuple[int, TimerHandle]] = {}
        self._seq = 0
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add_span(self, trace_id: str, span: SpanData) -> None:
        """Buffer *span* and (re)arm the render timer for its trace."""
        with self._lock:
            self._spans.setdefault(trace_id, []).append(span)
            previous = self._pending.pop(trace_id, None)
            if previous is not None:
                previous[1].cancel()
            self._seq += 1
            seq = self._seq
            handle = self._scheduler.call_later(self.delay_s, lambda: self._fire(trace_id, seq))
            self._pending[trace_id] = (seq, handle)
        logger.debug(
            "collector.schedule trace=%s span=%s rearmed=%s",
            trace_id[:8], span.span_id[:8], previous is not None,
        )

    def _fire(self, trace_id: str, seq: int) -> None:
        with self._lock:
            current = self._pending.get(trace_id)
            # A timer that lost the race with a re-arm must not render.
            if current is None or current[0] != seq:
                return
            del self._pending[trace_id]
            spans = self._spans.pop(trace_id, None)
        if spans:
            self._deliver(trace_id, spans)

    def _deliver(self, trace_id: str, spans: list[SpanData]) -> None:
        try:
            self._render(trace_id, spans)
        except Exception:
            logger.exception("collector.render failed trace=%s", trace_id[:8])

    # ------------------------------------------------------------------
    # Introspection / lifecycle
    # ------------------------------------------------------------------

    def pending_traces(self) -> list[str]:
        """Trace ids with an armed render timer."""
        with self._lock:
            return list(self._pending)

    def buffered(self, trace_id: str) -> list[SpanData]:
        """Copy of the spans buffered for *trace_id*."""
        with self._lock:
            return list(self._spans.get(trace_id, []))

    def flush(self) -> int:
        """Cancel all timers and render every buffered trace now.

        Returns the number of traces rendered.
        """
        with self._lock:
            for _seq, handle in self._pending.values():
                handle.cancel()
            self._pending.clear()
            batches = [(tid, spans) for tid, spans in self._spans.items() if spans]
            self._spans.clear()
        for trace_id, spans in batches:
            self._deliver(trace_id, spans)
        logger.debug("collector.flush traces=%d", len(batches))
        return len(batches)

    def close(self) -> None:
        """Cancel all timers and drop buffered spans without rendering."""
        with self._lock:
            for _seq, handle in self._pending.values():
                handle.cancel()
            dropped = len(self._spans)
            self._pending.clear()
            self._spans.clear()
        logger.debug("collector.close dropped=%d", dropped)
