"""Enrichment and redaction pipeline.

Formats messages, collects context attributes, and applies the PII policy.
"""

from sentry_log_bridge.pipeline.collector import ContextCollector
from sentry_log_bridge.pipeline.formatter import format_bytes, format_message
from sentry_log_bridge.pipeline.redaction import (
    PII_FIELDS,
    PiiRules,
    RedactionPolicy,
    build_policy,
    load_pii_rules,
    redact,
    should_include,
)
from sentry_log_bridge.pipeline.serializers import encode_value
from sentry_log_bridge.pipeline.source import infer_source

__all__ = [
    "PII_FIELDS",
    "ContextCollector",
    "PiiRules",
    "RedactionPolicy",
    "build_policy",
    "encode_value",
    "format_bytes",
    "format_message",
    "infer_source",
    "load_pii_rules",
    "redact",
    "should_include",
]
