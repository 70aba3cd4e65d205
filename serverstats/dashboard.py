"""Live server stats dashboard.

Samples uptime, CPU, load, memory, swap and root-disk figures every few
seconds and repaints them as a coloured table on the terminal's alternate
screen. Ctrl+C (or SIGTERM) restores the terminal and exits.

Usage:
    uv run serverstats -s 5
    uv run serverstats -s 2 --config path/to/config.toml
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, NoReturn

from serverstats.config import ConfigError, dump_default_config, load_config, parse_interval
from serverstats.display import TerminalScreen, render_frame
from serverstats.metrics import MetricsSource, collect_snapshot, default_source

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


# ── Cancellation ───────────────────────────────────────────────────────────


class StopToken:
    """Stop flag set from a signal handler and checked once per tick."""

    def __init__(self, poll: float = 0.1) -> None:
        self._stopped = False
        self._poll = poll

    def set(self, *_: object) -> None:
        # Accepts (signum, frame) so it can be installed as a signal handler.
        self._stopped = True

    def is_set(self) -> bool:
        return self._stopped

    def wait(self, timeout: float) -> bool:
        """Sleep up to *timeout* seconds, returning early once stopped."""
        deadline = time.monotonic() + timeout
        while not self._stopped:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            time.sleep(min(self._poll, remaining))
        return self._stopped


@contextmanager
def handle_signals(
    stop: StopToken,
    signals: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM),
) -> Iterator[StopToken]:
    """Route *signals* to ``stop.set`` and reinstate the old handlers after."""
    previous: dict[signal.Signals, Any] = {}
    for sig in signals:
        previous[sig] = signal.signal(sig, stop.set)
    try:
        yield stop
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


# ── Main loop ──────────────────────────────────────────────────────────────


def run_dashboard(
    source: MetricsSource,
    screen: TerminalScreen,
    interval: float,
    stop: StopToken,
    *,
    disk_path: str = "/",
    color: bool = True,
    banner: bool = True,
    sleep: Callable[[float], object] | None = None,
) -> int:
    """Collect, render and sleep until *stop* is set. Returns the tick count."""
    wait = sleep if sleep is not None else stop.wait
    ticks = 0
    while not stop.is_set():
        snap = collect_snapshot(source, disk_path)
        screen.paint(render_frame(snap, color=color, banner=banner))
        ticks += 1
        wait(interval)
    return ticks


# ── Logging ────────────────────────────────────────────────────────────────


def setup_logging(log_file: str, level: str) -> None:
    """Send package logs to *log_file*, or discard them.

    Nothing may reach the terminal while the dashboard owns it.
    """
    pkg_logger = logging.getLogger("serverstats")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()
    pkg_logger.propagate = False

    try:
        pkg_logger.setLevel(level.upper())
    except ValueError as e:
        raise ConfigError(f"invalid log level: {level!r}") from e

    if not log_file:
        pkg_logger.addHandler(logging.NullHandler())
        return
    try:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot open log file {log_file}: {e}") from e
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    pkg_logger.addHandler(file_handler)


# ── CLI entry point ────────────────────────────────────────────────────────


class _ArgumentParser(argparse.ArgumentParser):
    """Parser that reports bad arguments as ConfigError instead of exiting 2."""

    def error(self, message: str) -> NoReturn:
        raise ConfigError(message[0].upper() + message[1:] + ".")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="serverstats",
        description="Display live system statistics with colour and auto-update interval.",
        epilog="Example:\n  serverstats -s 5",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-s",
        dest="interval",
        metavar="SECONDS",
        default=None,
        help="Set the update interval in seconds (required)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to TOML config file",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        metavar="PATH",
        help="Write log messages to this file",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable coloured output",
    )
    parser.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the default config as TOML and exit",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        if args.dump_config:
            print(dump_default_config(), end="")
            return 0
        interval = parse_interval(args.interval)
        config = load_config(args.config)
        log_file = args.log_file if args.log_file is not None else config["log_file"]
        setup_logging(log_file, config["log_level"])
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        parser.print_help(sys.stderr)
        return 1

    source = default_source()
    stop = StopToken()
    logger.info("starting with %ss interval using %s", interval, type(source).__name__)
    with handle_signals(stop), TerminalScreen() as screen:
        try:
            ticks = run_dashboard(
                source,
                screen,
                interval,
                stop,
                disk_path=config["disk_path"],
                color=config["color"] and not args.no_color,
                banner=config["banner"],
            )
            logger.info("stopped after %d ticks", ticks)
        except KeyboardInterrupt:
            logger.info("interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
