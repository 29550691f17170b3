"""Logging Hardening and Redaction.

This module provides filters to prevent encrypted blobs, secure tokens and
plaintext password assignments from appearing in logs.
"""
import logging
import re

SECRET_PATTERNS = [
    # <iv hex>:<ciphertext hex>
    (re.compile(r'\b[0-9a-f]{32}:[0-9a-f]{32,}\b'), '[REDACTED]'),
    # <base64 payload>.<hex hmac>
    (re.compile(r'[A-Za-z0-9+/]{16,}={0,2}\.[0-9a-f]{64}\b'), '[REDACTED]'),
    # Keyword-based assignments
    (re.compile(r'((?:password|api_?key|secret|token)\s*[=:]\s*)[^\s,;]+', re.IGNORECASE), r'\1[REDACTED]'),
]


def redact(text: str) -> str:
    for pattern, replacement in SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactionFilter(logging.Filter):
    """Filter that redacts secret-like patterns from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(redact(arg) if isinstance(arg, str) else arg for arg in record.args)

        return True


def setup_logging_redaction() -> None:
    """Apply the SecretRedactionFilter to the root logger's handlers."""
    redact_filter = SecretRedactionFilter()
    root_logger = logging.getLogger()

    # Logger-level filters do not apply to records from child loggers,
    # so attach to handlers as well
    for target in [root_logger, *root_logger.handlers]:
        for f in target.filters[:]:
            if isinstance(f, SecretRedactionFilter):
                target.removeFilter(f)
        target.addFilter(redact_filter)

    logging.getLogger(__name__).debug("Logging redaction filters active.")
