"""
Contact Detail Redaction
========================

Strips contact details out of message text before it is folded into a
request to the third-party completion service, and masks secrets before
anything reaches the logs. Redaction is lossy and irreversible.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Tuple

EMAIL_PLACEHOLDER = "[EMAIL]"
PHONE_PLACEHOLDER = "[PHONE]"
LINK_PLACEHOLDER = "[LINK]"

# Applied in order: emails, then phone numbers, then URLs
CONTACT_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"[\w.-]+@[\w.-]+\.\w+"), EMAIL_PLACEHOLDER),
    (re.compile(r"(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}"), PHONE_PLACEHOLDER),
    (re.compile(r"https?://[^\s]+"), LINK_PLACEHOLDER),
]

SECRET_FIELD_NAMES = {
    "api_key", "apikey", "x-api-key", "x_api_key",
    "claude_api_key", "authorization", "token", "secret",
}

REDACTED = "[REDACTED]"


def sanitize_content(text: str) -> str:
    """
    Replace emails, phone numbers and URLs with placeholders.

    Args:
        text: Raw message text

    Returns:
        Trimmed text with contact details replaced
    """
    result = text or ""
    for pattern, placeholder in CONTACT_PATTERNS:
        result = pattern.sub(placeholder, result)
    return result.strip()


def mask_secret(value: str) -> str:
    """Keep only the last four characters of a secret."""
    if not value:
        return ""
    if len(value) <= 8:
        return REDACTED
    return f"{REDACTED}...{value[-4:]}"


def redact_headers(headers: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a header/settings dict with secret values masked."""
    result: Dict[str, Any] = {}
    for key, value in headers.items():
        if key.lower().replace(" ", "_") in SECRET_FIELD_NAMES:
            result[key] = mask_secret(str(value))
        else:
            result[key] = value
    return result


def preview(text: str, limit: int = 80) -> str:
    """Sanitized, truncated text suitable for debug logs."""
    cleaned = " ".join(sanitize_content(text).split())
    if len(cleaned) > limit:
        return cleaned[: limit - 3] + "..."
    return cleaned
