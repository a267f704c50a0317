"""
Whitelist validation for key cells read from untrusted input tables.

A key is either accepted as-is (after trimming) or rejected; nothing is
rewritten into an acceptable shape.  Accepted keys are still passed through
:func:`escape_literal` before being placed inside a SQL string literal.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional, Pattern

CHARSETS: Dict[str, Pattern[str]] = {
    "strict": re.compile(r"[A-Za-z0-9_\-]+"),
    "relaxed": re.compile(r"[A-Za-z0-9_\-. ]+"),
}

DEFAULT_MAX_LENGTH = 50


class SanitizedKey(str):
    """A key string that passed :class:`KeySanitizer` validation."""

    __slots__ = ()


class KeySanitizer:
    def __init__(self, charset: str = "strict", max_length: int = DEFAULT_MAX_LENGTH) -> None:
        charset_name = str(charset).strip().lower()
        if charset_name not in CHARSETS:
            raise ValueError(f"Unsupported sanitizer charset: {charset}")
        if int(max_length) < 1:
            raise ValueError("sanitizer max_length must be a positive integer")
        self.charset = charset_name
        self.max_length = int(max_length)
        self._pattern = CHARSETS[charset_name]

    def validate(self, raw: Any) -> Optional[SanitizedKey]:
        if raw is None:
            return None
        value = str(raw).strip()
        if not value or len(value) > self.max_length:
            return None
        if self._pattern.fullmatch(value) is None:
            return None
        return SanitizedKey(value)


def escape_literal(value: str) -> str:
    """Escape ``value`` for use inside a single-quoted SQL literal."""

    cleaned = "".join(ch for ch in str(value) if ch.isprintable())
    return cleaned.replace("\\", "\\\\").replace("'", "''")


__all__ = ["CHARSETS", "DEFAULT_MAX_LENGTH", "KeySanitizer", "SanitizedKey", "escape_literal"]
