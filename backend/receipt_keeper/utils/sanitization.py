"""
Input sanitization utilities for API payloads.
Provides functions to clean string inputs before they reach the services.
"""

import re
from typing import Optional

_CONTROL_CHARS = re.compile(r"[\x00-\x1F\x7F]")


def sanitize_string(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    # Remove leading/trailing whitespace and control characters
    value = _CONTROL_CHARS.sub("", value.strip())
    # Escape HTML
    return value.replace("<", "&lt;").replace(">", "&gt;")


def none_if_blank(value: Optional[str]) -> Optional[str]:
    """Map ``None`` and empty/whitespace-only strings to ``None``.

    Nullable text columns store NULL rather than an empty string.
    """
    if value is None or not value.strip():
        return None
    return value
