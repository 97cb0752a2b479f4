"""Host metric readers: uptime, CPU temperature, disk, RAM.

Each reader reads one OS source, parses it and returns the formatted reply
line. Any failure is raised as MetricsError with the original exception
chained as ``__cause__`` so callers can log the detail and show a generic
message instead.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

import psutil

UPTIME_PATH = "/proc/uptime"
CPU_TEMP_PATH = "/sys/class/thermal/thermal_zone0/temp"
MEMINFO_PATH = "/proc/meminfo"
DISK_MOUNT = "/"

_GIB = 1024 ** 3


class MetricsError(Exception):
    """A metric source could not be read or parsed."""


@dataclass
class DiskUsage:
    total_gb: int
    used_gb: int
    free_gb: int


@dataclass
class MemUsage:
    total_mb: int
    used_mb: int
    free_mb: int


def _read_text(path: str) -> str:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise MetricsError(f"cannot read {path}") from e


# ── uptime ───────────────────────────────────────────────────────────────────
def split_duration(seconds: float) -> tuple[int, int, int]:
    """Split elapsed seconds into (days, hours, minutes), truncating."""
    total = int(seconds)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    return days, hours, minutes


def format_uptime(seconds: float) -> str:
    days, hours, minutes = split_duration(seconds)
    return f"⏱️ Uptime: {days}d {hours}h {minutes}m"


def read_uptime(path: str = UPTIME_PATH) -> str:
    text = _read_text(path)
    fields = text.split()
    if not fields:
        raise MetricsError(f"{path} is empty")
    try:
        seconds = float(fields[0])
    except ValueError as e:
        raise MetricsError(f"bad uptime value {fields[0]!r}") from e
    if not math.isfinite(seconds) or seconds < 0:
        raise MetricsError(f"bad uptime value {fields[0]!r}")
    return format_uptime(seconds)


# ── CPU temperature ──────────────────────────────────────────────────────────
def format_cpu_temp(millidegrees: int) -> str:
    return f"🌡️ CPU temperature: {millidegrees / 1000.0:.1f}°C"


def read_cpu_temp(path: str = CPU_TEMP_PATH) -> str:
    raw = _read_text(path).strip()
    try:
        milli = int(raw)
    except ValueError as e:
        raise MetricsError(f"bad temperature value {raw!r}") from e
    return format_cpu_temp(milli)


# ── disk ─────────────────────────────────────────────────────────────────────
def disk_usage(mount: str = DISK_MOUNT) -> DiskUsage:
    """Usage of the filesystem holding ``mount``, in whole GiB.

    Free space counts all free blocks, including those reserved for root,
    so it is total - used rather than psutil's ``free`` (available to users).
    """
    try:
        du = psutil.disk_usage(mount)
    except OSError as e:
        raise MetricsError(f"disk_usage({mount}) failed") from e
    total = du.total
    used = du.used
    free = total - used
    return DiskUsage(total_gb=total // _GIB, used_gb=used // _GIB, free_gb=free // _GIB)


def format_disk(usage: DiskUsage) -> str:
    return (
        "💾 Disk:\n"
        f"Used: {usage.used_gb} GB\n"
        f"Free: {usage.free_gb} GB\n"
        f"Total: {usage.total_gb} GB"
    )


def read_disk(mount: str = DISK_MOUNT) -> str:
    return format_disk(disk_usage(mount))


# ── RAM ──────────────────────────────────────────────────────────────────────
def parse_meminfo(text: str) -> dict[str, int]:
    """Parse ``Key: value [unit]`` lines. Unparsable values count as 0."""
    mem: dict[str, int] = {}
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 2:
            continue
        try:
            value = int(fields[1])
        except ValueError:
            value = 0
        mem[fields[0].rstrip(":")] = value
    return mem


def mem_usage(meminfo: dict[str, int]) -> MemUsage:
    total = meminfo.get("MemTotal", 0) // 1024
    free = meminfo.get("MemAvailable", 0) // 1024
    return MemUsage(total_mb=total, used_mb=total - free, free_mb=free)


def format_ram(usage: MemUsage) -> str:
    return (
        "🧠 RAM:\n"
        f"Used: {usage.used_mb} MB\n"
        f"Free: {usage.free_mb} MB\n"
        f"Total: {usage.total_mb} MB"
    )


def read_ram(path: str = MEMINFO_PATH) -> str:
    return format_ram(mem_usage(parse_meminfo(_read_text(path))))
