"""Tests for serverstats.display."""

from __future__ import annotations

import io

import pytest

from serverstats.display import (
    ALT_SCREEN_OFF,
    ALT_SCREEN_ON,
    BANNER,
    BORDER,
    CURSOR_HIDE,
    CURSOR_HOME,
    CURSOR_SHOW,
    GREEN,
    NC,
    YELLOW,
    TerminalScreen,
    render_frame,
    stat_rows,
)
from serverstats.metrics import Snapshot


def _snapshot(**overrides: object) -> Snapshot:
    fields: dict[str, object] = {
        "uptime_seconds": 90061,
        "uptime_readable": "1 Days, 1 Hours, 1 Minutes and 1 Seconds",
        "cpu_model": "Intel(R) Xeon(R) CPU @ 2.20GHz",
        "cpu_cores": 8,
        "load_avg": (0.5, 1.25, 2.0),
        "load_avg_readable": "0.50000000, 1.25000000, 2.00000000",
        "mem_total": "16.00 GB",
        "mem_free": "4.00 GB",
        "mem_avail": "10.00 GB",
        "swap_total": "2.00 GB",
        "swap_free": "2.00 GB",
        "swap_used": "0 B",
        "disk_total": "500.00 GB",
        "disk_used": "150.00 GB",
        "disk_free": "350.00 GB",
        "timestamp": "13:04:05",
    }
    fields.update(overrides)
    return Snapshot(**fields)  # type: ignore[arg-type]


# ── render_frame ──────────────────────────────────────────────────────────


class TestRenderFrame:
    def test_border_widths(self) -> None:
        assert BORDER == (
            "+--------------------------+----------------------------------------------+"
        )

    def test_plain_layout(self) -> None:
        lines = render_frame(_snapshot(), color=False, banner=False).splitlines()
        assert lines[0] == "[Server Stats - 13:04:05]"
        assert lines[1] == ""
        assert lines[2] == BORDER
        assert lines[3] == (
            "| Uptime" + " " * 18 + " | 1 Days, 1 Hours, 1 Minutes and 1 Seconds" + " " * 4 + " |"
        )
        assert lines[-1] == BORDER
        # header, blank, 2 borders, 13 stat rows
        assert len(lines) == 17

    def test_rows_share_width(self) -> None:
        lines = render_frame(_snapshot(), color=False, banner=False).splitlines()
        assert {len(line) for line in lines[2:]} == {len(BORDER)}

    def test_row_order(self) -> None:
        labels = [label for label, _ in stat_rows(_snapshot())]
        assert labels == [
            "Uptime", "CPU Model", "CPU Cores", "Load Average",
            "Memory Total", "Memory Free", "Memory Avail",
            "Swap Total", "Swap Free", "Swap Used",
            "Disk Total", "Disk Free", "Disk Used",
        ]

    def test_shorter_value_padded_over_longer(self) -> None:
        long = render_frame(_snapshot(), color=False, banner=False).splitlines()
        short = render_frame(
            _snapshot(uptime_readable="5 Seconds"), color=False, banner=False
        ).splitlines()
        assert len(short[3]) == len(long[3])

    def test_missing_cores_placeholder(self) -> None:
        rows = dict(stat_rows(_snapshot(cpu_cores=None)))
        assert rows["CPU Cores"] == "n/a"

    def test_overlong_value_not_truncated(self) -> None:
        model = "X" * 60
        frame = render_frame(_snapshot(cpu_model=model), color=False, banner=False)
        assert f"| {model} |" in frame

    def test_colour_on_decorations_only(self) -> None:
        frame = render_frame(_snapshot(), color=True, banner=False)
        assert f"{GREEN}[Server Stats - 13:04:05]{NC}" in frame
        assert f"| {YELLOW}{'Memory Total':<24}{NC} | {'16.00 GB':<44} |" in frame

    def test_no_colour_has_no_escapes(self) -> None:
        frame = render_frame(_snapshot(), color=False, banner=True)
        assert "\033" not in frame

    def test_banner_precedes_header(self) -> None:
        frame = render_frame(_snapshot(), color=False, banner=True)
        assert frame.index("██████") < frame.index("[Server Stats")

    def test_banner_keeps_trailing_spaces(self) -> None:
        banner_lines = BANNER.splitlines()
        assert banner_lines[4].endswith("╚████╔╝ ")
        assert banner_lines[5].endswith("╚═══╝  ")
        frame = render_frame(_snapshot(), color=False, banner=True)
        assert "\n" + banner_lines[5] + "\n" in frame


# ── TerminalScreen ────────────────────────────────────────────────────────


class TestTerminalScreen:
    def test_enter_and_restore(self) -> None:
        out = io.StringIO()
        screen = TerminalScreen(out)
        assert not screen.active
        screen.enter()
        assert screen.active
        assert out.getvalue() == ALT_SCREEN_ON + CURSOR_HIDE
        screen.restore()
        assert not screen.active
        assert out.getvalue().endswith(ALT_SCREEN_OFF + CURSOR_SHOW)

    def test_restore_runs_once(self) -> None:
        out = io.StringIO()
        screen = TerminalScreen(out)
        screen.enter()
        screen.restore()
        screen.restore()
        assert out.getvalue().count(ALT_SCREEN_OFF) == 1
        assert out.getvalue().count(CURSOR_SHOW) == 1

    def test_restore_without_enter_is_noop(self) -> None:
        out = io.StringIO()
        TerminalScreen(out).restore()
        assert out.getvalue() == ""

    def test_paint_homes_cursor_without_clearing(self) -> None:
        out = io.StringIO()
        TerminalScreen(out).paint("frame\n")
        assert out.getvalue() == CURSOR_HOME + "frame\n"
        assert "\033[2J" not in out.getvalue()

    def test_context_manager_restores_on_error(self) -> None:
        out = io.StringIO()
        with pytest.raises(RuntimeError):
            with TerminalScreen(out) as screen:
                screen.paint("half a fr")
                raise RuntimeError("boom")
        assert out.getvalue().endswith(ALT_SCREEN_OFF + CURSOR_SHOW)
        assert out.getvalue().count(ALT_SCREEN_OFF) == 1
