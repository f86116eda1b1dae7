"""OpenTelemetry SDK bridge — feed finished SDK spans into a TraceCollector.

Requires ``opentelemetry-sdk`` only at the call site that owns the
``TracerProvider``; this module duck-types the span-processor interface
so it imports without the SDK installed.

Usage::

    from opentelemetry.sdk.trace import TracerProvider
    from spanview.trace.otel import install

    provider = TracerProvider()
    install(provider)
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING, Any

from spanview.trace.collector import TraceCollector
from spanview.trace.span import SpanData, filter_attributes, ns_to_ms
from spanview.trace.timeline import render_trace

if TYPE_CHECKING:
    from spanview.config import ViewerConfig

logger = logging.getLogger("spanview.trace")


def _format_id(value: Any, digits: int) -> str:
    if isinstance(value, int):
        return format(value, f"0{digits}x")
    return str(value)


def span_from_readable(span: Any, config: ViewerConfig | None = None) -> tuple[str, SpanData]:
    """Convert an SDK ``ReadableSpan`` into ``(trace_id, SpanData)``.

    Raises:
        ValueError: If the span has no context or no start/end time.
    """
    from spanview.config import ViewerConfig

    cfg = config or ViewerConfig()
    ctx = getattr(span, "context", None)
    if ctx is None:
        raise ValueError("span has no context")
    start = getattr(span, "start_time", None)
    end = getattr(span, "end_time", None)
    if start is None or end is None:
        raise ValueError(f"span {getattr(span, 'name', '?')!r} has not ended")

    parent = getattr(span, "parent", None)
    parent_id = _format_id(parent.span_id, 16) if parent is not None else None

    data = SpanData(
        span_id=_format_id(ctx.span_id, 16),
        parent_span_id=parent_id,
        name=str(getattr(span, "name", "?")),
        start_time=ns_to_ms(start),
        duration=ns_to_ms(max(0, end - start)),
        attributes=filter_attributes(
            dict(getattr(span, "attributes", None) or {}),
            hidden_prefixes=cfg.hidden_attribute_prefixes,
            keep=cfg.kept_attributes,
        ),
    )
    return _format_id(ctx.trace_id, 32), data


class TimelineSpanProcessor:
    """Span processor that renders each finished trace as a timeline.

    Attributes:
        collector: Buffers spans per trace and triggers rendering.
    """

    def __init__(
        self,
        collector: TraceCollector | None = None,
        config: ViewerConfig | None = None,
        console: Any = None,
    ) -> None:
        from spanview.config import ViewerConfig

        self.config = config or ViewerConfig()
        if collector is None:
            render = partial(
                render_trace,
                console=console,
                timeline_width=self.config.timeline_width,
                name_width=self.config.name_width,
                color=self.config.color,
            )
            collector = TraceCollector(render, delay_s=self.config.render_delay_s)
        self.collector = collector

    def on_start(self, span: Any, parent_context: Any = None) -> None:
        return None

    def _on_ending(self, span: Any) -> None:
        return None

    def on_end(self, span: Any) -> None:
        try:
            trace_id, data = span_from_readable(span, self.config)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning("Skipping malformed span %r: %s", getattr(span, "name", "?"), exc)
            return
        self.collector.add_span(trace_id, data)

    def shutdown(self) -> None:
        self.collector.flush()
        self.collector.close()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        self.collector.flush()
        return True


def install(provider: Any, **kwargs: Any) -> TimelineSpanProcessor:
    """Attach a new :class:`TimelineSpanProcessor` to *provider* and return it."""
    processor = TimelineSpanProcessor(**kwargs)
    provider.add_span_processor(processor)
    return processor
