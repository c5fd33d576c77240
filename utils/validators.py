"""
Input clean-up helpers used at the HTTP boundary.
"""

from __future__ import annotations

import re
from typing import Any, Optional

_ZERO_WIDTH_RE = re.compile(r"[\u200B-\u200D\uFEFF]")


def strip_zero_width(value: str) -> str:
    """Remove zero-width characters (common in copy-pasted secrets) and trim."""
    return _ZERO_WIDTH_RE.sub("", value).strip()


def clean_secret(value: Any) -> Optional[str]:
    """
    Normalise a client id / secret coming from a request body.

    Non-strings and strings that are empty after clean-up become ``None``.
    """
    if not isinstance(value, str):
        return None
    cleaned = strip_zero_width(value)
    return cleaned or None
