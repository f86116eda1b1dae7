"""spanview — terminal timelines for distributed traces."""

from __future__ import annotations

__version__ = "0.1.0"

from spanview.config import ViewerConfig, load_config
from spanview.trace.collector import TraceCollector
from spanview.trace.span import SpanData
from spanview.trace.timeline import format_trace, render_trace
from spanview.trace.tree import build_span_tree

__all__ = [
    "__version__",
    "SpanData",
    "TraceCollector",
    "ViewerConfig",
    "build_span_tree",
    "format_trace",
    "load_config",
    "render_trace",
]
