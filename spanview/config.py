"""Viewer configuration — layout widths, render delay and attribute filtering."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from spanview.trace.collector import DEFAULT_RENDER_DELAY_S
from spanview.trace.span import DEFAULT_HIDDEN_PREFIXES, DEFAULT_KEPT_ATTRIBUTES
from spanview.trace.timeline import DEFAULT_NAME_WIDTH, DEFAULT_TIMELINE_WIDTH

logger = logging.getLogger("spanview.config")


@dataclass(frozen=True)
class ViewerConfig:
    """Settings shared by the renderer, the collector and the OTel bridge.

    Attributes:
        timeline_width: Bar width in character cells.
        name_width: Label column width in character cells.
        render_delay_s: Quiet period before a finished trace is rendered.
        color: Emit ANSI colour escapes.
        hidden_attribute_prefixes: Attribute key prefixes dropped from display.
        kept_attributes: Keys shown even when their prefix is hidden.
    """

    timeline_width: int = DEFAULT_TIMELINE_WIDTH
    name_width: int = DEFAULT_NAME_WIDTH
    render_delay_s: float = DEFAULT_RENDER_DELAY_S
    color: bool = True
    hidden_attribute_prefixes: tuple[str, ...] = DEFAULT_HIDDEN_PREFIXES
    kept_attributes: tuple[str, ...] = DEFAULT_KEPT_ATTRIBUTES

    def __post_init__(self) -> None:
        for name in ("timeline_width", "name_width"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if isinstance(self.render_delay_s, bool) or not isinstance(self.render_delay_s, (int, float)):
            raise ValueError(f"render_delay_s must be a number, got {self.render_delay_s!r}")
        if self.render_delay_s < 0:
            raise ValueError("render_delay_s must be >= 0")
        if not isinstance(self.color, bool):
            raise ValueError(f"color must be a boolean, got {self.color!r}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ViewerConfig:
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown config key: %s", key)
                continue
            if key in ("hidden_attribute_prefixes", "kept_attributes"):
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    raise ValueError(f"{key} must be a list of strings")
                value = tuple(value)
            kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timeline_width": self.timeline_width,
            "name_width": self.name_width,
            "render_delay_s": self.render_delay_s,
            "color": self.color,
            "hidden_attribute_prefixes": list(self.hidden_attribute_prefixes),
            "kept_attributes": list(self.kept_attributes),
        }


def load_config(path: str | Path | None = None) -> ViewerConfig:
    """Load a JSON config file; ``None`` returns the defaults.

    Raises:
        ValueError: On malformed JSON or invalid values.
    """
    if path is None:
        return ViewerConfig()
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {p}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{p} must contain a JSON object")
    logger.debug("Loaded config from %s", p)
    return ViewerConfig.from_dict(data)
