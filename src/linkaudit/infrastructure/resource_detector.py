"""Container-aware CPU detection via cgroup v2/v1 filesystem.

Reads the CPU quota from Linux cgroups (the mechanism behind Docker
``--cpus`` and Kubernetes CPU limits) and derives the default number of
concurrent link probes from it.

Detection order:
    1. cgroup v2:  ``/sys/fs/cgroup/cpu.max``
    2. cgroup v1:  ``cpu.cfs_quota_us``/``cpu.cfs_period_us``
    3. Fallback:   ``os.cpu_count()``
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import structlog

log = structlog.get_logger(__name__)

# cgroup v2 path (unified hierarchy)
_CGROUP_V2_CPU = Path("/sys/fs/cgroup/cpu.max")

# cgroup v1 paths (legacy hierarchy)
_CGROUP_V1_CPU_QUOTA = Path("/sys/fs/cgroup/cpu/cpu.cfs_quota_us")
_CGROUP_V1_CPU_PERIOD = Path("/sys/fs/cgroup/cpu/cpu.cfs_period_us")

# Probes are I/O bound: several in flight per core, within sane bounds.
_PROBES_PER_CORE = 4
_MIN_CONCURRENT = 4
_MAX_CONCURRENT = 64

CpuSource = Literal["cgroup_v2", "cgroup_v1", "os_fallback"]


@dataclass(frozen=True)
class DetectedCpu:
    cpu_cores: int  # Available CPU cores (≥1)
    source: CpuSource


def _read_file(path: Path) -> str | None:
    """Read a cgroup pseudo-file, returning None on any error."""
    try:
        return path.read_text().strip()
    except OSError:
        return None


def _detect_cpu_v2() -> int | None:
    """Detect CPU cores from cgroup v2 ``cpu.max``.

    Format: ``"QUOTA PERIOD"`` (e.g. ``"200000 100000"`` = 2 cores).
    ``"max PERIOD"`` means unlimited.
    """
    content = _read_file(_CGROUP_V2_CPU)
    if content is None:
        return None

    parts = content.split()
    if len(parts) != 2:
        return None

    quota_str, period_str = parts
    if quota_str == "max":
        return None  # unlimited

    try:
        quota = int(quota_str)
        period = int(period_str)
    except ValueError:
        return None

    if quota <= 0 or period <= 0:
        return None

    return max(1, math.ceil(quota / period))


def _detect_cpu_v1() -> int | None:
    """Detect CPU cores from cgroup v1 ``cpu.cfs_quota_us / cpu.cfs_period_us``.

    Quota of ``-1`` means unlimited.
    """
    quota_str = _read_file(_CGROUP_V1_CPU_QUOTA)
    period_str = _read_file(_CGROUP_V1_CPU_PERIOD)

    if quota_str is None or period_str is None:
        return None

    try:
        quota = int(quota_str)
        period = int(period_str)
    except ValueError:
        return None

    if quota <= 0 or period <= 0:
        return None  # unlimited or invalid

    return max(1, math.ceil(quota / period))


def _fallback_cpu() -> int:
    return os.cpu_count() or 2


def detect_cpu() -> DetectedCpu:
    """Detect available CPU cores from cgroups or the OS."""
    v2_cpu = _detect_cpu_v2()
    if v2_cpu is not None:
        return DetectedCpu(cpu_cores=v2_cpu, source="cgroup_v2")

    v1_cpu = _detect_cpu_v1()
    if v1_cpu is not None:
        return DetectedCpu(cpu_cores=v1_cpu, source="cgroup_v1")

    return DetectedCpu(cpu_cores=_fallback_cpu(), source="os_fallback")


def default_max_concurrent() -> int:
    """Default bound on concurrent probes: ``clamp(cores * 4, 4, 64)``."""
    detected = detect_cpu()
    result = max(
        _MIN_CONCURRENT,
        min(detected.cpu_cores * _PROBES_PER_CORE, _MAX_CONCURRENT),
    )
    log.debug(
        "auto_concurrency",
        cpu_cores=detected.cpu_cores,
        cpu_source=detected.source,
        result=result,
    )
    return result
