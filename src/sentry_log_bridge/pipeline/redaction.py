"""PII classification and the per-field redaction policy.

A field is either PII or not.  Non-PII fields are always sent.  PII fields are
sent only when PII sending is enabled globally, and even then a caller rule
may still veto an individual field.

Rules beyond the canonical classification come from settings and from an
optional YAML file::

    pii_fields: [customer_phone]     # classify extra names as PII
    allowed_fields: [user_roles]     # declassify canonical names
    excluded_fields: [user_email]    # never send, even with PII enabled
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sentry_log_bridge.domain.errors import PolicyConfigError

if TYPE_CHECKING:
    from sentry_log_bridge.config import Settings

logger = logging.getLogger(__name__)

V = TypeVar("V")

PII_FIELDS: frozenset[str] = frozenset(
    {
        "user_login",
        "user_email",
        "user_display_name",
        "user_registered",
        "user_roles",
        "user_level",
        "remote_addr",
        "x_forwarded_for",
        "x_real_ip",
        "request_uri",
        "user_agent",
        "server_software",
    }
)


class PiiRules(BaseModel):
    """Extra classification rules loaded from the YAML rules file."""

    model_config = ConfigDict(extra="forbid")

    pii_fields: list[str] = Field(default_factory=list)
    allowed_fields: list[str] = Field(default_factory=list)
    excluded_fields: list[str] = Field(default_factory=list)


class RedactionPolicy(BaseModel):
    """Redaction decisions for one event.

    Attributes:
        send_pii: Global switch; when ``False`` no PII field is ever sent.
        overrides: PII fields excluded even when ``send_pii`` is ``True``.
        extra_allowed: Names removed from the PII classification.
        extra_pii: Names added to the PII classification.
        veto: Optional caller rule; returning ``True`` excludes a PII field.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    send_pii: bool = False
    overrides: frozenset[str] = frozenset()
    extra_allowed: frozenset[str] = frozenset()
    extra_pii: frozenset[str] = frozenset()
    veto: Callable[[str], bool] | None = None

    @property
    def pii_fields(self) -> frozenset[str]:
        """The effective PII classification."""
        return (PII_FIELDS | self.extra_pii) - self.extra_allowed

    def is_pii(self, field_name: str) -> bool:
        """Whether *field_name* is classified as PII under this policy."""
        return field_name in self.pii_fields


def should_include(field_name: str, policy: RedactionPolicy) -> bool:
    """Decide whether *field_name* may appear in the emitted attributes.

    Args:
        field_name: The attribute key.
        policy: The active redaction policy.

    Returns:
        ``True`` for every non-PII field.  For PII fields, ``False`` whenever
        ``policy.send_pii`` is off; otherwise ``True`` unless the field is in
        ``policy.overrides`` or vetoed by ``policy.veto``.
    """
    if not policy.is_pii(field_name):
        return True

    if not policy.send_pii:
        return False

    if field_name in policy.overrides:
        return False

    if policy.veto is not None and policy.veto(field_name):
        return False

    return True


def redact(attributes: Mapping[str, V], policy: RedactionPolicy) -> dict[str, V]:
    """Return a copy of *attributes* without the keys *policy* excludes.

    Insertion order of the surviving keys is preserved.
    """
    return {key: value for key, value in attributes.items() if should_include(key, policy)}


def load_pii_rules(path: Path) -> PiiRules:
    """Load and validate PII rules from a YAML file.

    Args:
        path: Path to the YAML rules file.

    Returns:
        Validated rules.  Falls back to empty rules if the file is missing,
        empty, or contains invalid YAML.

    Raises:
        PolicyConfigError: If the YAML parses but does not match the schema.
    """
    if not path.exists():
        return PiiRules()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError:
        logger.warning("Invalid YAML in %s, using default PII rules", path)
        return PiiRules()

    if raw is None:
        return PiiRules()

    try:
        return PiiRules.model_validate(raw)
    except ValidationError as exc:
        raise PolicyConfigError(path, exc.errors()) from exc


def build_policy(
    settings: Settings,
    rules: PiiRules | None = None,
    veto: Callable[[str], bool] | None = None,
) -> RedactionPolicy:
    """Combine settings and file rules into a :class:`RedactionPolicy`.

    Args:
        settings: Application settings.
        rules: Rules loaded from the YAML file, if any.
        veto: Optional caller rule that may exclude individual PII fields.

    Returns:
        The redaction policy.
    """
    rules = rules or PiiRules()
    return RedactionPolicy(
        send_pii=settings.send_default_pii,
        overrides=frozenset(settings.pii_excluded_fields) | frozenset(rules.excluded_fields),
        extra_allowed=frozenset(settings.pii_allowed_fields) | frozenset(rules.allowed_fields),
        extra_pii=frozenset(settings.pii_fields) | frozenset(rules.pii_fields),
        veto=veto,
    )
