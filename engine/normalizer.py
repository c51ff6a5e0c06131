"""Postcode district normalisation. The result is the join key between signals and geography."""

import re
from typing import Iterable, List, Optional

_WHITESPACE = re.compile(r"\s+")


def normalize_district(raw: Optional[str]) -> str:
    """Trim, uppercase and strip all whitespace. Idempotent; None maps to ""."""
    if raw is None:
        return ""
    return _WHITESPACE.sub("", str(raw).strip().upper())


def normalize_districts(raw_codes: Iterable[Optional[str]]) -> List[str]:
    """Normalise, drop blanks and de-duplicate while keeping first-seen order."""
    seen = set()
    out = []
    for raw in raw_codes:
        d = normalize_district(raw)
        if d and d not in seen:
            seen.add(d)
            out.append(d)
    return out
