"""Logging filters that scrub sensitive content."""

from __future__ import annotations

import logging
import re

_SENSITIVE_PATTERN = re.compile(
    r"(X-Actor-(?:Id|Role)\s*[:=]\s*[\w-]+"
    r"|\"x-actor-(?:id|role)\"\s*:\s*\"[^\"]+\""
    r"|Authorization: Bearer\s+[\w\.-]+)",
    re.IGNORECASE,
)
_EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")


def scrub(message: str) -> str:
    """Return ``message`` with actor headers and e-mail addresses redacted."""
    message = _SENSITIVE_PATTERN.sub("**REDACTED**", message)
    return _EMAIL_PATTERN.sub("**EMAIL**", message)


class SensitiveFilter(logging.Filter):
    """Replace sensitive tokens in log messages with a redaction marker."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = scrub(record.msg)
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                scrub(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True


__all__ = ["SensitiveFilter", "scrub"]
