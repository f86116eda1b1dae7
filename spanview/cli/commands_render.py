"""CLI commands for rendering traces."""

from __future__ import annotations

import logging
import sys

import click
from rich.console import Console

from spanview.config import ViewerConfig, load_config
from spanview.trace.span import SpanData

logger = logging.getLogger("spanview.cli")

console = Console()


def _resolve_config(
    config_path: str | None,
    width: int | None,
    name_width: int | None,
    color: bool | None,
) -> ViewerConfig:
    try:
        cfg = load_config(config_path)
        overrides = cfg.to_dict()
        if width is not None:
            overrides["timeline_width"] = width
        if name_width is not None:
            overrides["name_width"] = name_width
        if color is not None:
            overrides["color"] = color
        return ViewerConfig.from_dict(overrides)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc


def _sample_trace() -> dict[str, list[SpanData]]:
    spans = [
        SpanData("a1", "GET /dashboard", 1000.0, 182.4, attributes={"http.method": "GET", "http.route": "/dashboard"}),
        SpanData("b1", "resolve page components", 1001.2, 8.3, parent_span_id="a1"),
        SpanData("c1", "fetch /api/user", 1010.5, 64.0, parent_span_id="a1", attributes={"http.status_code": 200}),
        SpanData("c2", "db.query users", 1014.0, 41.7, parent_span_id="c1", attributes={"db.system": "postgresql"}),
        SpanData("d1", "fetch /api/projects", 1012.0, 120.9, parent_span_id="a1"),
        SpanData("d2", "cache.get projects", 1013.1, 1.2, parent_span_id="d1", attributes={"hit": False}),
        SpanData("d3", "db.query projects", 1015.0, 96.4, parent_span_id="d1"),
        SpanData("e1", "render route (app) /dashboard", 1134.0, 47.1, parent_span_id="a1"),
    ]
    return {"4bf92f3577b34da6a3ce929d0e0e4736": spans}


def _output_console(force_color: bool | None) -> Console:
    if force_color:
        # --color must survive redirection to a file or pipe.
        return Console(force_terminal=True, color_system="standard", no_color=False)
    return console


def _render_all(
    traces: dict[str, list[SpanData]],
    cfg: ViewerConfig,
    force_color: bool | None = None,
) -> int:
    from spanview.trace.timeline import render_trace

    out = _output_console(force_color)
    rendered = 0
    for trace_id, spans in traces.items():
        block = render_trace(
            trace_id,
            spans,
            console=out,
            timeline_width=cfg.timeline_width,
            name_width=cfg.name_width,
            color=cfg.color,
        )
        if block is not None:
            rendered += 1
    return rendered


@click.command("render")
@click.argument("spans_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--trace", "-t", "trace_id", type=str, default=None,
              help="Only render the trace whose id starts with this prefix.")
@click.option("--width", "-w", type=int, default=None, help="Timeline bar width in cells.")
@click.option("--name-width", type=int, default=None, help="Label column width in cells.")
@click.option("--color/--no-color", default=None, help="Force ANSI colours on or off.")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="JSON viewer configuration file.")
def render(
    spans_file: str,
    trace_id: str | None,
    width: int | None,
    name_width: int | None,
    color: bool | None,
    config_path: str | None,
) -> None:
    """Render the traces in a JSON Lines span file as timelines."""
    from spanview.trace.loader import load_jsonl

    cfg = _resolve_config(config_path, width, name_width, color)
    traces = load_jsonl(spans_file)
    logger.debug("Loaded %d trace(s) from %s", len(traces), spans_file)

    if trace_id is not None:
        traces = {tid: spans for tid, spans in traces.items() if tid.startswith(trace_id)}
        if not traces:
            console.print(f"[red]Error:[/red] no trace matching {trace_id!r} in {spans_file}")
            sys.exit(1)

    if not traces:
        console.print("[yellow]No spans found.[/yellow]")
        return

    _render_all(traces, cfg, force_color=color)


@click.command("demo")
@click.option("--out", "-o", "output", type=click.Path(dir_okay=False), default=None,
              help="Also write the sample spans to this JSON Lines file.")
@click.option("--color/--no-color", default=None, help="Force ANSI colours on or off.")
def demo(output: str | None, color: bool | None) -> None:
    """Render a built-in sample trace."""
    traces = _sample_trace()
    cfg = _resolve_config(None, None, None, color)
    _render_all(traces, cfg, force_color=color)

    if output:
        from spanview.trace.loader import export_jsonl

        path = export_jsonl(traces, output)
        console.print(f"[green]✓[/green] Sample spans written: {path}")
