"""Terminal rendering for the serverstats dashboard.

Frames are plain strings built by ``render_frame``; ``TerminalScreen`` owns
the alternate screen and cursor state and paints frames in place.
"""

from __future__ import annotations

import sys
from typing import TextIO

from serverstats.metrics import PLACEHOLDER, Snapshot

# ── ANSI helpers ────────────────────────────────────────────────────────────

GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
BLUE = "\033[0;34m"
NC = "\033[0m"

ALT_SCREEN_ON = "\033[?1049h"
ALT_SCREEN_OFF = "\033[?1049l"
CURSOR_HIDE = "\033[?25l"
CURSOR_SHOW = "\033[?25h"
CURSOR_HOME = "\033[H"

LABEL_WIDTH = 24
VALUE_WIDTH = 44
BORDER = f"+{'-' * (LABEL_WIDTH + 2)}+{'-' * (VALUE_WIDTH + 2)}+"

BANNER = """\
 ██████╗ ██╗███╗   ██╗ ██████╗ ███████╗██████╗ ██████╗ ███████╗██╗   ██╗
██╔════╝ ██║████╗  ██║██╔════╝ ██╔════╝██╔══██╗██╔══██╗██╔════╝██║   ██║
██║  ███╗██║██╔██╗ ██║██║  ███╗█████╗  ██████╔╝██║  ██║█████╗  ██║   ██║
██║   ██║██║██║╚██╗██║██║   ██║██╔══╝  ██╔══██╗██║  ██║██╔══╝  ╚██╗ ██╔╝
╚██████╔╝██║██║ ╚████║╚██████╔╝███████╗██║  ██║██████╔╝███████╗ ╚████╔╝ 
 ╚═════╝ ╚═╝╚═╝  ╚═══╝ ╚═════╝ ╚══════╝╚═╝  ╚═╝╚═════╝ ╚══════╝  ╚═══╝  
"""


def _paint(text: str, code: str, color: bool) -> str:
    return f"{code}{text}{NC}" if color else text


def stat_rows(snap: Snapshot) -> list[tuple[str, str]]:
    """Label/value pairs in display order."""
    cores = str(snap.cpu_cores) if snap.cpu_cores is not None else PLACEHOLDER
    return [
        ("Uptime", snap.uptime_readable),
        ("CPU Model", snap.cpu_model),
        ("CPU Cores", cores),
        ("Load Average", snap.load_avg_readable),
        ("Memory Total", snap.mem_total),
        ("Memory Free", snap.mem_free),
        ("Memory Avail", snap.mem_avail),
        ("Swap Total", snap.swap_total),
        ("Swap Free", snap.swap_free),
        ("Swap Used", snap.swap_used),
        ("Disk Total", snap.disk_total),
        ("Disk Free", snap.disk_free),
        ("Disk Used", snap.disk_used),
    ]


def render_frame(snap: Snapshot, color: bool = True, banner: bool = True) -> str:
    """Build one full dashboard frame.

    Every row is padded to the fixed column widths so a repaint over the
    previous frame leaves no stale characters. Values wider than the value
    column are not truncated.
    """
    lines: list[str] = []
    if banner:
        # The banner block opens and closes its colour on lines of its own.
        lines.append(BLUE if color else "")
        lines.extend(BANNER.splitlines())
        lines.append(NC if color else "")
    lines.append(_paint(f"[Server Stats - {snap.timestamp}]", GREEN, color))
    lines.append("")
    lines.append(BORDER)
    for label, value in stat_rows(snap):
        cell = _paint(f"{label:<{LABEL_WIDTH}s}", YELLOW, color)
        lines.append(f"| {cell} | {value:<{VALUE_WIDTH}s} |")
    lines.append(BORDER)
    return "\n".join(lines) + "\n"


# ── Terminal state ──────────────────────────────────────────────────────────


class TerminalScreen:
    """Alternate-screen handle: enter once, paint in place, restore once.

    Use as a context manager so the normal screen and cursor come back on
    every exit path.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def _write(self, text: str) -> None:
        self._stream.write(text)
        self._stream.flush()

    def enter(self) -> None:
        if self._active:
            return
        self._write(ALT_SCREEN_ON + CURSOR_HIDE)
        self._active = True

    def paint(self, frame: str) -> None:
        """Move to the top-left corner and overwrite without clearing."""
        self._write(CURSOR_HOME + frame)

    def restore(self) -> None:
        if not self._active:
            return
        self._active = False
        self._write(ALT_SCREEN_OFF + CURSOR_SHOW)

    def __enter__(self) -> TerminalScreen:
        self.enter()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.restore()
