"""
Custom logging filters.
"""
import logging
import re


class SensitiveDataFilter(logging.Filter):
    """Redact credentials from log messages."""

    SENSITIVE_PATTERNS = [
        (re.compile(r'(authorization["\']?\s*[:=]\s*["\']?)(bearer|token)?\s*[^"\'\s,}]+', re.IGNORECASE), r'\1***'),
        (re.compile(r'password["\']?\s*[:=]\s*["\']?([^"\'\s,}]+)', re.IGNORECASE), 'password=***'),
        (re.compile(r'token["\']?\s*[:=]\s*["\']?([^"\'\s,}]+)', re.IGNORECASE), 'token=***'),
    ]

    def filter(self, record):
        message = record.getMessage()

        for pattern, replacement in self.SENSITIVE_PATTERNS:
            message = pattern.sub(replacement, message)

        record.msg = message
        record.args = None
        return True
