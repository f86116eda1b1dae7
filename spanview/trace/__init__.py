"""Trace subpackage — span model, tree builder, timeline renderer, collector."""

from __future__ import annotations

__all__ = [
    "SpanData",
    "SpanTreeNode",
    "TimelineSpanProcessor",
    "TraceCollector",
    "build_span_tree",
    "format_trace",
    "load_jsonl",
    "render_timeline_bar",
    "render_trace",
]

from spanview.trace.collector import TraceCollector
from spanview.trace.loader import load_jsonl
from spanview.trace.otel import TimelineSpanProcessor
from spanview.trace.span import SpanData
from spanview.trace.timeline import format_trace, render_timeline_bar, render_trace
from spanview.trace.tree import SpanTreeNode, build_span_tree
