"""Bridge host log records to Sentry structured logs.

The handler formats each record, enriches it with platform, runtime, user, and
commerce context, drops PII fields the redaction policy excludes, and emits
the result to a telemetry sink.
"""

__version__ = "1.0.0"
