"""Scrub credentials and check-in codes out of log records."""

from __future__ import annotations

import logging
import re

REDACTED = "**REDACTED**"

_PATTERNS = (
    re.compile(r"Bearer\s+[\w\.-]+", re.IGNORECASE),
    re.compile(
        r"(?P<key>access_token|password|verification_code)"
        r"(?P<sep>\"?\s*[:=]\s*\"?)[^\"&,\s}]+",
        re.IGNORECASE,
    ),
)


def redact(text: str) -> str:
    """Mask bearer tokens, passwords and verification codes in ``text``."""
    text = _PATTERNS[0].sub(f"Bearer {REDACTED}", text)
    return _PATTERNS[1].sub(lambda m: f"{m['key']}{m['sep']}{REDACTED}", text)


class SensitiveFilter(logging.Filter):
    """Apply :func:`redact` to the message and any string arguments."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                redact(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True


__all__ = ["REDACTED", "SensitiveFilter", "redact"]
