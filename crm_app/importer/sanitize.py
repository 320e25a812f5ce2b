"""
Masking helpers that keep contact e-mail addresses out of log output.
"""

from __future__ import annotations

from typing import Any, Mapping

INVALID_EMAIL = "[invalid email]"
INVALID_EMAIL_FORMAT = "[invalid email format]"


def mask_email(value: object) -> str:
    """
    Mask the local part of an e-mail address.

    ``jane.doe@example.com`` becomes ``j***e@example.com``; local parts of two
    characters or fewer collapse to ``***``. Values that are not a two-part
    address are replaced with a fixed sentinel.
    """

    if not value or not isinstance(value, str):
        return INVALID_EMAIL
    parts = value.split("@")
    if len(parts) != 2:
        return INVALID_EMAIL_FORMAT
    local, domain = parts
    masked_local = f"{local[0]}***{local[-1]}" if len(local) > 2 else "***"
    return f"{masked_local}@{domain}"


def sanitize_data(value: Any) -> Any:
    """Return a structurally identical copy of ``value`` with every ``email`` field masked."""

    if isinstance(value, Mapping):
        sanitized: dict[Any, Any] = {}
        for key, item in value.items():
            if key == "email" and item:
                sanitized[key] = mask_email(item)
            else:
                sanitized[key] = sanitize_data(item)
        return sanitized
    if isinstance(value, (list, tuple)):
        return [sanitize_data(item) for item in value]
    return value
