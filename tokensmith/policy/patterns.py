"""Cached compilation of stored regex sources."""

import re
from functools import lru_cache

PATTERN_CACHE_SIZE = 256


@lru_cache(maxsize=PATTERN_CACHE_SIZE)
def compile_pattern(source: str) -> re.Pattern[str]:
    """Compile a pattern once per distinct source string."""
    return re.compile(source)


def check_pattern(source: str) -> str:
    """Return the source unchanged if it compiles, else raise ValueError."""
    try:
        compile_pattern(source)
    except re.error as exc:
        raise ValueError(f"invalid regular expression {source!r}: {exc}") from exc
    return source


def pattern_matches(source: str, value: str) -> bool:
    """Unanchored match; anchor with ^...$ in the pattern for a full match."""
    return compile_pattern(source).search(value) is not None
