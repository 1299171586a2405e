"""Message formatting: placeholder substitution and human-readable sizes."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from sentry_log_bridge.pipeline.serializers import is_scalar

_PLACEHOLDER = re.compile(r"\{([^{}]*)\}")

BYTE_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB", "TB", "PB")


def format_message(message: str, context: Mapping[str, Any] | None = None) -> str:
    """Substitute ``{key}`` placeholders in *message* from *context*.

    Substitution is single-pass: replacement text is never scanned again.
    Only scalar values (and ``None``, rendered as an empty string) are
    substituted; placeholders for containers or missing keys stay literally
    in the output.

    Args:
        message: The message template.
        context: Values for the placeholders.

    Returns:
        The formatted message.
    """
    if not context:
        return message

    replacements: dict[str, str] = {}
    for key, value in context.items():
        if value is None:
            replacements[str(key)] = ""
        elif is_scalar(value):
            replacements[str(key)] = str(value)

    if not replacements:
        return message

    def _substitute(match: re.Match[str]) -> str:
        return replacements.get(match.group(1), match.group(0))

    return _PLACEHOLDER.sub(_substitute, message)


def format_bytes(num_bytes: float) -> str:
    """Render a byte count with binary units and two decimals.

    ``1536`` renders as ``"1.50 KB"``.  Negative input is clamped to zero and
    sizes beyond the largest unit stay in petabytes.
    """
    value = max(0.0, float(num_bytes))
    power = 0
    while value >= 1024 and power < len(BYTE_UNITS) - 1:
        value /= 1024
        power += 1
    return f"{value:.2f} {BYTE_UNITS[power]}"
