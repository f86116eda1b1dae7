"""Tests for the spanview command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from spanview.cli.main import cli


def _write_spans(path: Path, records: list[dict]) -> Path:
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")
    return path


def _two_traces(tmp_path: Path) -> Path:
    return _write_spans(
        tmp_path / "spans.jsonl",
        [
            {"trace_id": "abcdef1234", "span_id": "A", "name": "handler", "start_time": 0, "duration": 100},
            {"trace_id": "abcdef1234", "span_id": "B", "parent_span_id": "A", "name": "db", "start_time": 10, "duration": 20},
            {"trace_id": "abcdef1234", "span_id": "C", "parent_span_id": "A", "name": "render", "start_time": 50, "duration": 10},
            {"trace_id": "99887766aa", "span_id": "X", "name": "cron", "start_time": 0, "duration": 5},
        ],
    )


class TestRenderCommand:
    """``spanview render``."""

    def test_render_plain(self, tmp_path: Path) -> None:
        path = _two_traces(tmp_path)
        result = CliRunner().invoke(cli, ["render", str(path), "--no-color"])
        assert result.exit_code == 0, result.output
        assert "Trace abcdef12 (100.0ms total, 3 spans)" in result.output
        assert "Trace 99887766" in result.output
        assert "├─ db (20.0ms)" in result.output
        assert "└─ render (10.0ms)" in result.output
        assert "\x1b[" not in result.output

    def test_color_forced_when_redirected(self, tmp_path: Path) -> None:
        path = _two_traces(tmp_path)
        result = CliRunner().invoke(cli, ["render", str(path), "--trace", "9988", "--color"])
        assert result.exit_code == 0, result.output
        assert "\x1b[" in result.output
        assert "cron (5.0ms)" in result.output

    def test_trace_prefix_filter(self, tmp_path: Path) -> None:
        path = _two_traces(tmp_path)
        result = CliRunner().invoke(cli, ["render", str(path), "--trace", "9988", "--no-color"])
        assert result.exit_code == 0
        assert "Trace 99887766" in result.output
        assert "abcdef12" not in result.output

    def test_unknown_trace(self, tmp_path: Path) -> None:
        path = _two_traces(tmp_path)
        result = CliRunner().invoke(cli, ["render", str(path), "--trace", "ffff"])
        assert result.exit_code == 1
        assert "no trace matching" in result.output

    def test_widths(self, tmp_path: Path) -> None:
        path = _two_traces(tmp_path)
        result = CliRunner().invoke(
            cli, ["render", str(path), "--trace", "abcd", "--width", "20", "--name-width", "30", "--no-color"]
        )
        assert result.exit_code == 0
        span_lines = [line for line in result.output.splitlines() if line.endswith("│")]
        assert len(span_lines) == 3
        assert all(len(line) == 30 + 1 + 20 + 1 for line in span_lines)

    def test_malformed_lines_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "mixed.jsonl"
        path.write_text(
            'garbage\n{"span_id": "only", "name": "solo", "start_time": 0, "duration": 3}\n',
            encoding="utf-8",
        )
        result = CliRunner().invoke(cli, ["render", str(path), "--no-color"])
        assert result.exit_code == 0
        assert "solo (3.0ms)" in result.output

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.jsonl"
        path.write_text("", encoding="utf-8")
        result = CliRunner().invoke(cli, ["render", str(path)])
        assert result.exit_code == 0
        assert "No spans found" in result.output

    def test_config_file_applies(self, tmp_path: Path) -> None:
        path = _two_traces(tmp_path)
        cfg = tmp_path / "spanview.json"
        cfg.write_text(json.dumps({"timeline_width": 10, "name_width": 25, "color": False}), encoding="utf-8")
        result = CliRunner().invoke(cli, ["render", str(path), "--config", str(cfg), "--trace", "9988"])
        assert result.exit_code == 0
        span_lines = [line for line in result.output.splitlines() if line.endswith("│")]
        assert span_lines == ["cron (5.0ms)".ljust(25) + "│" + "█" * 10 + "│"]

    def test_invalid_config(self, tmp_path: Path) -> None:
        path = _two_traces(tmp_path)
        cfg = tmp_path / "bad.json"
        cfg.write_text(json.dumps({"timeline_width": -3}), encoding="utf-8")
        result = CliRunner().invoke(cli, ["render", str(path), "--config", str(cfg)])
        assert result.exit_code == 1

    def test_missing_file(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["render", str(tmp_path / "nope.jsonl")])
        assert result.exit_code != 0


class TestDemoCommand:
    """``spanview demo``."""

    def test_demo_renders(self) -> None:
        result = CliRunner().invoke(cli, ["demo", "--no-color"])
        assert result.exit_code == 0
        assert "Trace 4bf92f35" in result.output
        assert "GET /dashboard [http.method=GET" in result.output
        assert "│  └─ db.query users [db.system=postgresql]" in result.output

    def test_demo_writes_spans(self, tmp_path: Path) -> None:
        out = tmp_path / "sample.jsonl"
        result = CliRunner().invoke(cli, ["demo", "--no-color", "--out", str(out)])
        assert result.exit_code == 0
        lines = out.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 8
        assert json.loads(lines[0])["trace_id"] == "4bf92f3577b34da6a3ce929d0e0e4736"

    def test_verbose_flag(self) -> None:
        result = CliRunner().invoke(cli, ["-v", "demo", "--no-color"])
        assert result.exit_code == 0
