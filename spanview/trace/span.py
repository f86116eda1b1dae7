"""Span data model for spanview.

A deliberately small subset of OpenTelemetry's span model: just enough to
rebuild the hierarchy and lay spans out on a timeline.  Timestamps are
absolute milliseconds; producers that report other units convert with
:func:`hr_time_to_ms` or :func:`ns_to_ms` before handing spans over.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

#: Attribute prefixes hidden from the display by default (framework noise).
DEFAULT_HIDDEN_PREFIXES: tuple[str, ...] = ("next.",)

#: Attributes kept even when their prefix is hidden.
DEFAULT_KEPT_ATTRIBUTES: tuple[str, ...] = ("next.segment", "next.page", "next.route")


def hr_time_to_ms(hr_time: tuple[int, int] | list[int]) -> float:
    """Convert a ``(seconds, nanoseconds)`` pair to milliseconds."""
    seconds, nanos = hr_time
    return seconds * 1000 + nanos / 1_000_000


def ns_to_ms(nanos: int | float) -> float:
    """Convert integer nanoseconds to milliseconds."""
    return nanos / 1_000_000


def filter_attributes(
    attributes: Mapping[str, Any] | None,
    hidden_prefixes: Iterable[str] = DEFAULT_HIDDEN_PREFIXES,
    keep: Iterable[str] = DEFAULT_KEPT_ATTRIBUTES,
) -> dict[str, Any] | None:
    """Drop attributes whose key starts with a hidden prefix.

    Keys listed in *keep* survive regardless of prefix.  Returns ``None``
    when nothing is left so spans without useful attributes stay compact.
    """
    if not attributes:
        return None
    prefixes = tuple(hidden_prefixes)
    kept = set(keep)
    useful = {
        k: v for k, v in attributes.items()
        if k in kept or not k.startswith(prefixes)
    }
    return useful or None


@dataclass
class SpanData:
    """A single finished span.

    Attributes:
        span_id: Identifier, unique within one trace.
        parent_span_id: Owning span id; ``None`` or ``""`` for a root candidate.
        name: Human-readable label (e.g. ``"GET /api/users"``).
        start_time: Absolute start time in milliseconds.
        duration: Elapsed milliseconds (non-negative).
        attributes: Key-value metadata, used only for display.
    """

    span_id: str
    name: str
    start_time: float
    duration: float
    parent_span_id: str | None = None
    attributes: dict[str, Any] | None = None

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    @property
    def is_root_candidate(self) -> bool:
        return not self.parent_span_id

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "span_id": self.span_id,
            "parent_span_id": self.parent_span_id,
            "name": self.name,
            "start_time": self.start_time,
            "duration": self.duration,
            "attributes": self.attributes,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SpanData:
        """Build a span from a dict using snake_case or camelCase keys.

        Raises:
            ValueError: If ``span_id`` is missing or timing is not numeric.
        """
        span_id = data.get("span_id", data.get("spanId"))
        if not span_id:
            raise ValueError("span record is missing 'span_id'")

        parent = data.get("parent_span_id", data.get("parentSpanId"))
        start = data.get("start_time", data.get("startTime", 0))
        duration = data.get("duration", 0)
        try:
            start_ms = float(start)
            duration_ms = float(duration)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"span {span_id!r} has non-numeric timing: {exc}") from exc
        if duration_ms < 0:
            raise ValueError(f"span {span_id!r} has negative duration {duration_ms}")

        attributes = data.get("attributes")
        if attributes is not None and not isinstance(attributes, dict):
            raise ValueError(f"span {span_id!r} attributes must be an object")

        return cls(
            span_id=str(span_id),
            parent_span_id=str(parent) if parent else None,
            name=str(data.get("name", "?")),
            start_time=start_ms,
            duration=duration_ms,
            attributes=attributes or None,
        )
