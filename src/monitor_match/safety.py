"""Guards for user-supplied search patterns.

Every regular expression built from monitor input goes through
``compile_literal_pattern`` or ``compile_loose_pattern`` so a hostile query
can neither inject regex syntax nor make a single evaluation arbitrarily
expensive.
"""

from __future__ import annotations

import re
from functools import lru_cache

MAX_QUERY_LENGTH = 500
MAX_TERM_LENGTH = 200
MAX_OPERANDS = 64
MAX_NESTING_DEPTH = 8
MAX_PATTERN_LENGTH = 500

_DANGEROUS_PATTERNS = (
    re.compile(r"([+*?])\1{2,}"),
    re.compile(r"\([^)]*\+[^)]*\)\+"),
    re.compile(r"\([^)]*\*[^)]*\)\*"),
    re.compile(r"\([^)]*\+[^)]*\)\*"),
    re.compile(r"\([^)]*\*[^)]*\)\+"),
    re.compile(r"\{\d+,\d*\}\s*\{\d+,\d*\}"),
)


def is_safe_pattern(pattern: str) -> bool:
    if not pattern:
        return True
    if len(pattern) > MAX_PATTERN_LENGTH:
        return False
    return not any(dangerous.search(pattern) for dangerous in _DANGEROUS_PATTERNS)


def escape_pattern(value: str | None) -> str:
    if not value:
        return ""
    return re.escape(value)


def _compile_words(text: str, separator: str) -> re.Pattern[str]:
    words = text.split()
    if not words:
        raise ValueError("empty pattern")
    if len(text) > MAX_TERM_LENGTH:
        raise ValueError(f"pattern longer than {MAX_TERM_LENGTH} characters")
    pattern = separator.join(escape_pattern(word) for word in words)
    if not is_safe_pattern(pattern):
        raise ValueError("pattern rejected as too complex")
    return re.compile(pattern, re.IGNORECASE)


@lru_cache(maxsize=1024)
def compile_literal_pattern(text: str) -> re.Pattern[str]:
    """Case-insensitive pattern matching ``text`` word by word, any whitespace between words."""
    return _compile_words(text, r"\s+")


@lru_cache(maxsize=1024)
def compile_loose_pattern(text: str) -> re.Pattern[str]:
    """Like :func:`compile_literal_pattern`, but words may be joined by punctuation or nothing.

    The first and last words must sit on word boundaries, so "acme" does not
    match inside "bac meat".
    """
    inner = _compile_words(text, r"[\W_]*")
    return re.compile(rf"(?<![^\W_]){inner.pattern}(?![^\W_])", re.IGNORECASE)
