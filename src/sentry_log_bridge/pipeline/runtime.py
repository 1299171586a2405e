"""Interpreter, memory, and cache-backend probes.

Every probe degrades to ``None`` or ``False`` when the platform does not
expose the underlying facility.
"""

from __future__ import annotations

import importlib.util
import platform
import sys
from pathlib import Path

try:
    import resource
except ImportError:  # pragma: no cover - not available on Windows
    resource = None  # type: ignore[assignment]

_STATUS_PATH = Path("/proc/self/status")

# Client libraries whose presence means the backend can be used.
CACHE_BACKENDS: dict[str, tuple[str, ...]] = {
    "redis": ("redis",),
    "memcached": ("pymemcache", "pylibmc", "memcache"),
}


def interpreter_version() -> str:
    return platform.python_version()


def interpreter_implementation() -> str:
    return platform.python_implementation()


def memory_limit() -> str | None:
    """Return the address-space limit of the process, or ``None``.

    ``"unlimited"`` is reported when no limit is set.
    """
    if resource is None:
        return None
    try:
        soft, _hard = resource.getrlimit(resource.RLIMIT_AS)
    except (OSError, ValueError, AttributeError):
        return None
    if soft == resource.RLIM_INFINITY:
        return "unlimited"
    return str(soft)


def _status_bytes(field: str) -> int | None:
    try:
        text = _STATUS_PATH.read_text(encoding="ascii")
    except OSError:
        return None
    for line in text.splitlines():
        if line.startswith(f"{field}:"):
            parts = line.split()
            if len(parts) >= 2 and parts[1].isdigit():
                return int(parts[1]) * 1024
    return None


def peak_memory() -> int | None:
    """Peak resident set size of the process in bytes."""
    peak = _status_bytes("VmHWM")
    if peak is not None:
        return peak
    if resource is None:
        return None
    maxrss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # macOS reports bytes, Linux reports kilobytes.
    return maxrss if sys.platform == "darwin" else maxrss * 1024


def current_memory() -> int | None:
    """Current resident set size in bytes, falling back to the peak."""
    current = _status_bytes("VmRSS")
    if current is not None:
        return current
    return peak_memory()


def backend_available(backend: str) -> bool:
    """Whether a client library for *backend* is importable."""
    for module in CACHE_BACKENDS.get(backend, ()):
        if importlib.util.find_spec(module) is not None:
            return True
    return False
