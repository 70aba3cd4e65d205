"""Metric collection for the serverstats dashboard.

Raw figures come from a ``MetricsSource``; ``collect_snapshot`` turns them
into display-ready strings. A field whose read fails is shown as a
placeholder so the dashboard keeps refreshing.
"""

from __future__ import annotations

import logging
import os
import platform
import subprocess
import sys
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

import psutil

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ── Constants ───────────────────────────────────────────────────────────────

GIB = 1024**3
PLACEHOLDER = "n/a"


class MetricReadError(Exception):
    """A single OS read failed or is unavailable on this host."""


# ── Data types ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MemoryFigures:
    total: int
    free: int
    available: int


@dataclass(frozen=True)
class SwapFigures:
    total: int
    used: int
    free: int


@dataclass(frozen=True)
class DiskFigures:
    total: int
    used: int
    free: int


@dataclass(frozen=True)
class Snapshot:
    """Formatted metrics for one dashboard tick."""

    uptime_seconds: int | None
    uptime_readable: str
    cpu_model: str
    cpu_cores: int | None
    load_avg: tuple[float, float, float] | None
    load_avg_readable: str
    mem_total: str
    mem_free: str
    mem_avail: str
    swap_total: str
    swap_free: str
    swap_used: str
    disk_total: str
    disk_used: str
    disk_free: str
    timestamp: str


# ── Formatting helpers ──────────────────────────────────────────────────────


def split_uptime(total_seconds: int) -> tuple[int, int, int, int]:
    """Decompose seconds into (days, hours, minutes, seconds)."""
    days = total_seconds // 86400
    hours = (total_seconds % 86400) // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return days, hours, minutes, seconds


def format_uptime(total_seconds: int) -> str:
    """Human-readable uptime, e.g. ``1 Days, 1 Hours, 1 Minutes and 1 Seconds``.

    Zero-valued units are omitted, so 0 gives an empty string.
    """
    days, hours, minutes, seconds = split_uptime(total_seconds)
    text = ""
    if days > 0:
        text += f"{days} Days, "
    if hours > 0:
        text += f"{hours} Hours, "
    if minutes > 0:
        text += f"{minutes} Minutes"
    if seconds > 0:
        if minutes > 0:
            text += f" and {seconds} Seconds"
        else:
            text += f"{seconds} Seconds"
    return text


def bytes_to_gb(n: int | float) -> str:
    """Byte count as gigabytes with two decimals."""
    return f"{n / GIB:.2f} GB"


def format_swap_used(n: int | float) -> str:
    if n == 0:
        return "0 B"
    return bytes_to_gb(n)


def format_load_avg(load1: float, load5: float, load15: float) -> str:
    return f"{load1:.8f}, {load5:.8f}, {load15:.8f}"


def parse_cpu_model(cpuinfo: str) -> str:
    """Return the first ``model name`` value from /proc/cpuinfo text."""
    for line in cpuinfo.splitlines():
        if "model name" not in line or ":" not in line:
            continue
        value = line.split(":", 1)[1]
        return value[1:] if value.startswith(" ") else value
    return ""


# ── Metric sources ──────────────────────────────────────────────────────────


class MetricsSource(ABC):
    """Raw system figures. Every method raises MetricReadError on failure."""

    @abstractmethod
    def uptime_seconds(self) -> int: ...

    @abstractmethod
    def cpu_model(self) -> str: ...

    @abstractmethod
    def cpu_cores(self) -> int: ...

    @abstractmethod
    def load_average(self) -> tuple[float, float, float]: ...

    @abstractmethod
    def memory(self) -> MemoryFigures: ...

    @abstractmethod
    def swap(self) -> SwapFigures: ...

    @abstractmethod
    def disk_usage(self, path: str) -> DiskFigures: ...


_READ_ERRORS = (OSError, ValueError, IndexError, psutil.Error)


class PsutilSource(MetricsSource):
    """Portable source backed by psutil."""

    def uptime_seconds(self) -> int:
        try:
            boot_time = psutil.boot_time()
        except _READ_ERRORS as e:
            raise MetricReadError(f"boot time: {e}") from e
        return max(0, int(time.time() - boot_time))

    def cpu_model(self) -> str:
        model = platform.processor()
        if not model:
            raise MetricReadError("processor name unavailable")
        return model

    def cpu_cores(self) -> int:
        try:
            count = psutil.cpu_count(logical=True)
        except _READ_ERRORS as e:
            raise MetricReadError(f"cpu count: {e}") from e
        if not count:
            raise MetricReadError("cpu count unavailable")
        return count

    def load_average(self) -> tuple[float, float, float]:
        try:
            la = psutil.getloadavg()
        except _READ_ERRORS as e:
            raise MetricReadError(f"load average: {e}") from e
        return (la[0], la[1], la[2])

    def memory(self) -> MemoryFigures:
        try:
            ram = psutil.virtual_memory()
        except _READ_ERRORS as e:
            raise MetricReadError(f"virtual memory: {e}") from e
        return MemoryFigures(total=ram.total, free=ram.free, available=ram.available)

    def swap(self) -> SwapFigures:
        try:
            sw = psutil.swap_memory()
        except _READ_ERRORS as e:
            raise MetricReadError(f"swap memory: {e}") from e
        return SwapFigures(total=sw.total, used=sw.used, free=sw.free)

    def disk_usage(self, path: str) -> DiskFigures:
        try:
            disk = psutil.disk_usage(path)
        except _READ_ERRORS as e:
            raise MetricReadError(f"disk usage of {path}: {e}") from e
        return DiskFigures(total=disk.total, used=disk.used, free=disk.free)


class ProcSource(PsutilSource):
    """Linux source reading /proc directly; memory and disk still use psutil."""

    def __init__(self, proc_root: str | Path = "/proc") -> None:
        self._proc = Path(proc_root)

    def _read(self, name: str) -> str:
        try:
            return (self._proc / name).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise MetricReadError(f"{self._proc / name}: {e}") from e

    def uptime_seconds(self) -> int:
        text = self._read("uptime")
        try:
            return int(float(text.split()[0]))
        except (ValueError, IndexError) as e:
            raise MetricReadError(f"malformed uptime: {text!r}") from e

    def cpu_model(self) -> str:
        model = parse_cpu_model(self._read("cpuinfo"))
        if not model:
            raise MetricReadError("no 'model name' in cpuinfo")
        return model

    def cpu_cores(self) -> int:
        # Same count nproc reports: CPUs this process may run on.
        try:
            return len(os.sched_getaffinity(0))
        except (AttributeError, OSError):
            return super().cpu_cores()

    def load_average(self) -> tuple[float, float, float]:
        text = self._read("loadavg")
        try:
            parts = text.split()
            return (float(parts[0]), float(parts[1]), float(parts[2]))
        except (ValueError, IndexError) as e:
            raise MetricReadError(f"malformed loadavg: {text!r}") from e


class DarwinSource(PsutilSource):
    """macOS source: CPU brand string from sysctl, everything else psutil."""

    def cpu_model(self) -> str:
        try:
            result = subprocess.run(
                ["sysctl", "-n", "machdep.cpu.brand_string"],
                capture_output=True,
                text=True,
                timeout=3,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return super().cpu_model()
        brand = result.stdout.strip()
        if result.returncode != 0 or not brand:
            return super().cpu_model()
        return brand


def default_source() -> MetricsSource:
    """Pick the /proc source on Linux, sysctl on macOS, psutil elsewhere."""
    if os.path.isdir("/proc") and os.path.isfile("/proc/uptime"):
        return ProcSource()
    if sys.platform == "darwin":
        return DarwinSource()
    return PsutilSource()


# ── Snapshot collection ─────────────────────────────────────────────────────


def _read_field(name: str, read: Callable[[], T]) -> T | None:
    try:
        return read()
    except MetricReadError as e:
        logger.warning("could not read %s: %s", name, e)
        return None


def collect_snapshot(
    source: MetricsSource,
    disk_path: str = "/",
    clock: Callable[[], time.struct_time] = time.localtime,
) -> Snapshot:
    """Gather every metric the dashboard shows in one pass."""
    captured_at = clock()
    uptime = _read_field("uptime", source.uptime_seconds)
    model = _read_field("cpu model", source.cpu_model)
    cores = _read_field("cpu cores", source.cpu_cores)
    load = _read_field("load average", source.load_average)
    mem = _read_field("memory", source.memory)
    sw = _read_field("swap", source.swap)
    disk = _read_field("disk usage", lambda: source.disk_usage(disk_path))

    return Snapshot(
        uptime_seconds=uptime,
        uptime_readable=format_uptime(uptime) if uptime is not None else PLACEHOLDER,
        cpu_model=model if model is not None else PLACEHOLDER,
        cpu_cores=cores,
        load_avg=load,
        load_avg_readable=format_load_avg(*load) if load is not None else PLACEHOLDER,
        mem_total=bytes_to_gb(mem.total) if mem else PLACEHOLDER,
        mem_free=bytes_to_gb(mem.free) if mem else PLACEHOLDER,
        mem_avail=bytes_to_gb(mem.available) if mem else PLACEHOLDER,
        swap_total=bytes_to_gb(sw.total) if sw else PLACEHOLDER,
        swap_free=bytes_to_gb(sw.free) if sw else PLACEHOLDER,
        swap_used=format_swap_used(sw.used) if sw else PLACEHOLDER,
        disk_total=bytes_to_gb(disk.total) if disk else PLACEHOLDER,
        disk_used=bytes_to_gb(disk.used) if disk else PLACEHOLDER,
        disk_free=bytes_to_gb(disk.free) if disk else PLACEHOLDER,
        timestamp=time.strftime("%H:%M:%S", captured_at),
    )
