# Helpers for turning client-supplied identifiers into primary keys

import re
from typing import Any, Optional

__all__ = ["parse_id"]

# Upper bound of a signed 32-bit INT primary key
MAX_ID = 2**31 - 1

_DIGITS = re.compile(r"[0-9]+")


def parse_id(raw: Any) -> Optional[int]:
    """Parse a path or body identifier into a primary key.

    Accepts positive ints and strings of ASCII digits (surrounding whitespace
    ignored). Anything else, including 0, negatives, bools, floats and values
    beyond the INT range, is malformed and yields None. Callers treat None
    exactly like an id that does not exist.

    >>> parse_id("42")
    42
    >>> parse_id("abc") is None
    True
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and _DIGITS.fullmatch(raw.strip()):
        value = int(raw.strip())
    else:
        return None

    if value < 1 or value > MAX_ID:
        return None
    return value
