"""JSON Lines span loader.

Each non-blank line holds one span record as produced by
:meth:`SpanData.to_dict`, plus an optional ``trace_id`` key.  Records
without a trace id land in the ``"default"`` trace.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import IO, Any, Iterable

from spanview.trace.span import SpanData

logger = logging.getLogger("spanview.trace")

DEFAULT_TRACE_ID = "default"


def group_by_trace(records: Iterable[tuple[str, SpanData]]) -> dict[str, list[SpanData]]:
    """Group ``(trace_id, span)`` pairs, keeping first-seen trace order."""
    groups: dict[str, list[SpanData]] = {}
    for trace_id, span in records:
        groups.setdefault(trace_id, []).append(span)
    return groups


def parse_record(data: Any) -> tuple[str, SpanData]:
    """Split one decoded JSON record into ``(trace_id, SpanData)``.

    Raises:
        ValueError: If the record is not an object or is not a valid span.
    """
    if not isinstance(data, dict):
        raise ValueError("record is not a JSON object")
    trace_id = data.get("trace_id", data.get("traceId")) or DEFAULT_TRACE_ID
    return str(trace_id), SpanData.from_dict(data)


def load_stream(stream: IO[str]) -> dict[str, list[SpanData]]:
    """Parse a JSONL stream, skipping malformed lines with a warning."""
    records: list[tuple[str, SpanData]] = []
    for line_num, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            records.append(parse_record(json.loads(line)))
        except ValueError as exc:
            # json.JSONDecodeError is a ValueError subclass
            logger.warning("Skipping malformed line %d: %s", line_num, exc)
    return group_by_trace(records)


def load_jsonl(path: str | Path) -> dict[str, list[SpanData]]:
    """Load a span file and group its spans by trace id."""
    with Path(path).open(encoding="utf-8") as f:
        return load_stream(f)


def export_jsonl(traces: dict[str, list[SpanData]], path: str | Path) -> Path:
    """Write spans as JSON Lines, one record per span with its ``trace_id``."""
    p = Path(path)
    with p.open("w", encoding="utf-8") as f:
        for trace_id, spans in traces.items():
            for s in spans:
                record = {"trace_id": trace_id, **s.to_dict()}
                f.write(json.dumps(record, default=str) + "\n")
    return p
