"""Redaction of credentials in error text surfaced to transcripts."""

from __future__ import annotations

import os
import re

_PATTERNS = [
    (re.compile(r"sk-ant-[a-zA-Z0-9_-]+"), "[REDACTED_KEY]"),
    (re.compile(r"sk-(?:proj-)?[a-zA-Z0-9_-]{20,}"), "[REDACTED_KEY]"),
    (re.compile(r"Bearer\s+\S+"), "Bearer [REDACTED]"),
    (re.compile(r"(x-api-key|api-key|Authorization):\s*\S+", re.IGNORECASE), r"\1: [REDACTED]"),
]

MAX_ERROR_LENGTH = 500


def sanitize_error(message: str, max_length: int = MAX_ERROR_LENGTH) -> str:
    """Strip API keys and home paths, and cap very long provider bodies."""
    if not message:
        return message

    sanitized = message
    for pattern, replacement in _PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)

    home = os.environ.get("USERPROFILE") or os.environ.get("HOME") or ""
    if home and home != "/":
        sanitized = sanitized.replace(home, "[USER_HOME]")

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."
    return sanitized
