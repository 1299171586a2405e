"""Best-effort inference of the file that issued a log call.

Walks the call stack outward and returns the basename of the first frame whose
path contains none of the internal substrings.  Callers that know their source
should pass it explicitly instead.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable

UNKNOWN_SOURCE = "unknown"

# Frames from the bridge itself, the host logging machinery, and the SDK.
INTERNAL_PATHS: tuple[str, ...] = (
    f"{os.sep}sentry_log_bridge{os.sep}",
    f"{os.sep}logging{os.sep}",
    f"{os.sep}structlog{os.sep}",
    f"{os.sep}structlog_sentry{os.sep}",
    f"{os.sep}sentry_sdk{os.sep}",
)


def infer_source(skip: Iterable[str] = INTERNAL_PATHS) -> str:
    """Return the basename of the nearest non-internal caller.

    Args:
        skip: Path substrings identifying internal frames.

    Returns:
        A file basename such as ``"orders.py"``, or ``"unknown"`` when no
        frame qualifies or stack inspection is unavailable.
    """
    needles = [needle for needle in skip if needle]
    try:
        frame = sys._getframe(1)
    except (AttributeError, ValueError):
        return UNKNOWN_SOURCE

    while frame is not None:
        filename = frame.f_code.co_filename
        if filename and not filename.startswith("<"):
            if not any(needle in filename for needle in needles):
                return os.path.basename(filename)
        frame = frame.f_back

    return UNKNOWN_SOURCE
