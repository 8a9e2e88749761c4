"""
Case-insensitive wildcard matching for archive entry names.

Only ``*`` (any run of characters, possibly empty) and ``?`` (exactly one
character) are special. Unlike ``fnmatch``, square brackets are literal, and
``*`` crosses ``/`` so a pattern applies to the full stored entry path.
"""

import re
from functools import lru_cache
from typing import Pattern


@lru_cache(maxsize=512)
def compile_wildcard(pattern: str) -> Pattern[str]:
    """
    Translate a wildcard pattern into a compiled, anchored regular expression.
    """
    parts = []
    for char in pattern:
        if char == "*":
            # collapse runs of '*' so the regex stays linear
            if parts and parts[-1] == ".*":
                continue
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def wildcard_match(name: str, pattern: str) -> bool:
    """Return True if the whole of ``name`` matches ``pattern``."""
    return compile_wildcard(pattern).fullmatch(name) is not None
