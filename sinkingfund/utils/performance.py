"""
Process health snapshot for the performance endpoint.
"""

from __future__ import annotations

import threading
from typing import Optional

import psutil

_BYTES_PER_MB = 1024 * 1024

# Thread-safe store for the most recent schedule build
_last_build_lock = threading.Lock()
_last_build: Optional[dict] = None


def get_process_memory_mb() -> float:
    """Resident memory of this process in megabytes (via :mod:`psutil`)."""
    return psutil.Process().memory_info().rss / _BYTES_PER_MB


def get_active_thread_count() -> int:
    return threading.active_count()


def record_build(segment_count: int, elapsed_ms: float) -> None:
    """Remember how many segments the last successful build produced and how long it took."""
    global _last_build
    with _last_build_lock:
        _last_build = {"segments": segment_count, "time": f"{elapsed_ms:.4f} ms"}


def get_last_build() -> Optional[dict]:
    with _last_build_lock:
        return dict(_last_build) if _last_build is not None else None


def collect_performance_snapshot(last_request_ms: float) -> dict:
    """
    ``{"time": "...", "memory": "...", "threads": int, "lastBuild": ...}``
    for the most recently completed request taking *last_request_ms*
    milliseconds. ``lastBuild`` is ``None`` until a schedule has been built.
    """
    return {
        "time": f"{last_request_ms:.4f} ms",
        "memory": f"{get_process_memory_mb():.2f} MB",
        "threads": get_active_thread_count(),
        "lastBuild": get_last_build(),
    }
