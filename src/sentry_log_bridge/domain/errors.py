"""Domain-specific exception classes for the log bridge."""

from pathlib import Path


class BridgeError(Exception):
    """Base class for all domain errors in the log bridge."""


class PolicyConfigError(BridgeError):
    """Raised when a PII rules file does not match the expected schema.

    Attributes:
        path: The rules file that failed validation.
        errors: The structured validation errors.
    """

    def __init__(self, path: Path, errors: list[dict[str, object]]) -> None:
        self.path = path
        self.errors = errors
        super().__init__(f"Invalid PII rules in '{path}': {len(errors)} error(s)")
