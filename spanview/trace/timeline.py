"""Trace timeline rendering — ANSI waterfall for terminal display.

Each span becomes one line: a fixed-width label column (tree guides, name,
first attributes, duration) and a proportional bar showing where the span
sits inside the trace.  Both columns share a colour picked from the span's
share of total trace time.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Mapping, Sequence

from rich.console import Console
from rich.text import Text

from spanview.trace.span import SpanData
from spanview.trace.tree import (
    BRANCH,
    LAST_BRANCH,
    SpanTreeNode,
    build_span_tree,
    iter_depth_first,
)

logger = logging.getLogger("spanview.trace")

DEFAULT_TIMELINE_WIDTH = 50
DEFAULT_NAME_WIDTH = 45
DEFAULT_BAR_WIDTH = 40

FILL = "·"
BLOCK = "█"
DIVIDER = "│"
ELLIPSIS = "…"

#: Fraction of total trace time below which a span counts as cheap / moderate.
LOW_THRESHOLD = 0.1
MID_THRESHOLD = 0.4

COLORS: dict[str, str] = {
    "reset": "\x1b[0m",
    "green": "\x1b[32m",
    "yellow": "\x1b[33m",
    "red": "\x1b[31m",
    "dim": "\x1b[2m",
    "cyan": "\x1b[36m",
    "bold": "\x1b[1m",
}

_NO_COLORS: dict[str, str] = {k: "" for k in COLORS}


def _palette(color: bool) -> dict[str, str]:
    return COLORS if color else _NO_COLORS


def _js_round(x: float) -> int:
    # Half-up rounding, not Python's banker's rounding.
    return math.floor(x + 0.5)


def _fixed(value: float, digits: int) -> str:
    """Format *value* with *digits* decimals, rounding halves up."""
    scale = 10**digits
    return f"{_js_round(value * scale) / scale:.{digits}f}"


def duration_tier(duration: float, total_duration: float) -> str:
    """Return ``"low"``, ``"mid"`` or ``"high"`` for a span's share of the trace."""
    if total_duration == 0:
        return "high"
    ratio = duration / total_duration
    if ratio < LOW_THRESHOLD:
        return "low"
    if ratio < MID_THRESHOLD:
        return "mid"
    return "high"


_TIER_COLORS = {"low": "green", "mid": "yellow", "high": "red"}


def duration_color(duration: float, total_duration: float, color: bool = True) -> str:
    """ANSI escape for the span's duration tier (empty when *color* is off)."""
    return _palette(color)[_TIER_COLORS[duration_tier(duration, total_duration)]]


def render_timeline_bar(
    start_time: float,
    duration: float,
    trace_start_time: float,
    total_duration: float,
    bar_width: int = DEFAULT_BAR_WIDTH,
) -> str:
    """Render a bar of exactly *bar_width* cells for one span.

    Cells before the span and after it are ``FILL``; the span itself is at
    least one ``BLOCK`` cell, even when it is too short to register.
    """
    if total_duration == 0:
        return BLOCK * bar_width

    start_offset = max(0.0, start_time - trace_start_time)
    start_ratio = min(start_offset / total_duration, 1.0)
    duration_ratio = min(duration / total_duration, 1.0 - start_ratio)

    start_pos = max(0, _js_round(start_ratio * bar_width))
    bar_length = max(1, _js_round(duration_ratio * bar_width))
    adjusted_start = min(start_pos, bar_width - 1)
    end_pos = min(bar_width, adjusted_start + bar_length)

    before = FILL * adjusted_start
    bar = BLOCK * max(1, end_pos - adjusted_start)
    after = FILL * max(0, bar_width - end_pos)
    return before + bar + after


def _display_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(_display_value(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def format_attributes(attributes: Mapping[str, Any] | None, limit: int = 2) -> str:
    """Format the first *limit* attributes as ``" [k1=v1 k2=v2]"``."""
    if not attributes:
        return ""
    pairs = [f"{k}={_display_value(v)}" for k, v in list(attributes.items())[:limit]]
    return f" [{' '.join(pairs)}]"


def fit_column(text: str, width: int) -> str:
    """Pad *text* to *width*, or cut it to ``width - 1`` chars plus an ellipsis."""
    if len(text) > width:
        return text[: width - 1] + ELLIPSIS
    return text.ljust(width)


def render_header(
    total_duration: float,
    name_width: int = DEFAULT_NAME_WIDTH,
    timeline_width: int = DEFAULT_TIMELINE_WIDTH,
    color: bool = True,
) -> str:
    """Two-column header: blank label column, then ``0ms`` ... ``<total>ms``."""
    c = _palette(color)
    gap = " " * (timeline_width - 7)
    return f"{' ' * name_width}{c['dim']}0ms{gap}{_fixed(total_duration, 0)}ms{c['reset']}"


def render_span_line(
    node: SpanTreeNode,
    prefix: str,
    is_last: bool,
    is_root: bool,
    total_duration: float,
    trace_start_time: float,
    timeline_width: int = DEFAULT_TIMELINE_WIDTH,
    name_width: int = DEFAULT_NAME_WIDTH,
    color: bool = True,
) -> str:
    c = _palette(color)
    connector = "" if is_root else (LAST_BRANCH if is_last else BRANCH)
    tint = duration_color(node.duration, total_duration, color=color)
    bar = render_timeline_bar(
        node.start_time, node.duration, trace_start_time, total_duration, timeline_width
    )
    label = f"{prefix}{connector}{node.name}{format_attributes(node.attributes)} ({_fixed(node.duration, 1)}ms)"
    label = fit_column(label, name_width)
    return (
        f"{tint}{label}{c['reset']}"
        f"{c['dim']}{DIVIDER}{c['reset']}"
        f"{tint}{bar}{c['reset']}"
        f"{c['dim']}{DIVIDER}{c['reset']}"
    )


def render_span_tree(
    root: SpanTreeNode,
    total_duration: float,
    trace_start_time: float,
    timeline_width: int = DEFAULT_TIMELINE_WIDTH,
    name_width: int = DEFAULT_NAME_WIDTH,
    color: bool = True,
) -> str:
    """Render the header plus one line per node, depth-first pre-order."""
    lines = [render_header(total_duration, name_width, timeline_width, color)]
    for node, prefix, is_last, is_root in iter_depth_first(root):
        lines.append(
            render_span_line(
                node,
                prefix,
                is_last,
                is_root,
                total_duration,
                trace_start_time,
                timeline_width=timeline_width,
                name_width=name_width,
                color=color,
            )
        )
    return "\n".join(lines)


def format_trace(
    trace_id: str,
    spans: Sequence[SpanData],
    timeline_width: int = DEFAULT_TIMELINE_WIDTH,
    name_width: int = DEFAULT_NAME_WIDTH,
    color: bool = True,
) -> str | None:
    """Build the full text block for one trace, or ``None`` if there are no spans."""
    tree = build_span_tree(spans)
    if tree is None:
        return None

    c = _palette(color)
    total_duration = tree.duration
    trace_start_time = tree.start_time
    title = (
        f"{c['bold']}{c['cyan']}Trace {trace_id[:8]}{c['reset']} "
        f"{c['dim']}({_fixed(total_duration, 1)}ms total, {len(spans)} spans){c['reset']}"
    )
    body = render_span_tree(
        tree,
        total_duration,
        trace_start_time,
        timeline_width=timeline_width,
        name_width=name_width,
        color=color,
    )
    return "\n".join(["", title, body, ""])


def render_trace(
    trace_id: str,
    spans: Sequence[SpanData],
    console: Any = None,
    timeline_width: int = DEFAULT_TIMELINE_WIDTH,
    name_width: int = DEFAULT_NAME_WIDTH,
    color: bool = True,
) -> str | None:
    """Write the trace block to *console* and return it.

    *console* may be a :class:`rich.console.Console` (the default) or any
    object with a ``write`` method.  Nothing is written for an empty span
    list.
    """
    block = format_trace(
        trace_id, spans, timeline_width=timeline_width, name_width=name_width, color=color
    )
    if block is None:
        logger.debug("trace.render skipped id=%s (no spans)", trace_id[:8])
        return None

    if console is None:
        console = Console()
    if isinstance(console, Console):
        # from_ansi drops a trailing empty line; print the separator on its own.
        console.print(Text.from_ansi(block.rstrip("\n")), soft_wrap=True)
        console.print()
    else:
        console.write(block + "\n")
    logger.debug("trace.render id=%s spans=%d", trace_id[:8], len(spans))
    return block
