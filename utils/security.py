"""Redaction helpers for text that may carry provider credentials."""

import re

_REDACTIONS = [
    (r"(api_key=)[^&\s]+", r"\1[REDACTED]"),
    (r"([?&]key=)[^&\s]+", r"\1[REDACTED]"),
    (r"(token=)[^&\s]+", r"\1[REDACTED]"),
    (r"(Authorization: Bearer)\s+[^\s]+", r"\1 [REDACTED]"),
]


def redact_secrets_from_text(text: str) -> str:
    """
    Redact secrets from plain text such as provider error messages.

    httpx errors embed the full request URL, which for keyed APIs includes
    the ``key=`` query parameter.
    """
    if not text:
        return text

    out = text
    for pattern, repl in _REDACTIONS:
        out = re.sub(pattern, repl, out, flags=re.IGNORECASE)
    return out
