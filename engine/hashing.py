"""Deterministic string hashing used for reproducible per-unit variation.

``string_hash`` is specified bit-for-bit so other implementations can
reproduce scores exactly:

    h = 0
    for each UTF-16 code unit c of s:
        h = int32(h * 31 + c)
    return abs(h)

The result lies in [0, 2**31].
"""

_MASK = 0xFFFFFFFF


def _utf16_units(s: str):
    data = s.encode("utf-16-le")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def string_hash(s: str) -> int:
    h = 0
    for unit in _utf16_units(s):
        h = (h * 31 + unit) & _MASK
    if h & 0x80000000:
        h -= 1 << 32
    return abs(h)


def hash_mod(seed: str, modulus: int = 100) -> int:
    return string_hash(seed) % modulus


def hash_fraction(seed: str) -> float:
    """Stable value in [0, 0.99] derived from ``hash(seed) % 100``."""
    return hash_mod(seed, 100) / 100
