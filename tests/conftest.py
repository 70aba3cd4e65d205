"""Shared fixtures."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

import pytest

from serverstats.metrics import (
    DiskFigures,
    MemoryFigures,
    MetricReadError,
    MetricsSource,
    SwapFigures,
)

GIB = 1024**3


class FakeSource(MetricsSource):
    """In-memory source; names listed in *broken* raise MetricReadError."""

    def __init__(self, broken: tuple[str, ...] = ()) -> None:
        self.broken = broken
        self.disk_paths: list[str] = []

    def _check(self, name: str) -> None:
        if name in self.broken:
            raise MetricReadError(f"{name} unavailable")

    def uptime_seconds(self) -> int:
        self._check("uptime")
        return 90061

    def cpu_model(self) -> str:
        self._check("cpu_model")
        return "Intel(R) Xeon(R) CPU @ 2.20GHz"

    def cpu_cores(self) -> int:
        self._check("cpu_cores")
        return 8

    def load_average(self) -> tuple[float, float, float]:
        self._check("load")
        return (0.5, 1.25, 2.0)

    def memory(self) -> MemoryFigures:
        self._check("memory")
        return MemoryFigures(total=16 * GIB, free=4 * GIB, available=10 * GIB)

    def swap(self) -> SwapFigures:
        self._check("swap")
        return SwapFigures(total=2 * GIB, used=0, free=2 * GIB)

    def disk_usage(self, path: str) -> DiskFigures:
        self._check("disk")
        self.disk_paths.append(path)
        return DiskFigures(total=500 * GIB, used=150 * GIB, free=350 * GIB)


@pytest.fixture
def fake_source() -> Callable[..., FakeSource]:
    return FakeSource


@pytest.fixture(autouse=True)
def _restore_package_logger() -> Iterator[None]:
    # main() detaches the package logger from the root; undo that between tests
    pkg_logger = logging.getLogger("serverstats")
    handlers = list(pkg_logger.handlers)
    level, propagate = pkg_logger.level, pkg_logger.propagate
    yield
    for handler in list(pkg_logger.handlers):
        if handler not in handlers:
            pkg_logger.removeHandler(handler)
            handler.close()
    pkg_logger.setLevel(level)
    pkg_logger.propagate = propagate
