"""
Deterministic 32-bit integer hashing.

All pseudo-randomness in the engine is derived from these pure functions
over explicit keys, so results are identical across runs and platforms.
Arithmetic is masked to 32 bits to match int32/uint32 semantics.
"""

MASK32 = 0xFFFFFFFF

FNV_OFFSET = 2166136261
FNV_PRIME = 16777619


def to_uint32(value: int) -> int:
    return value & MASK32


def to_int32(value: int) -> int:
    """Wrap an integer to a signed 32-bit value (two's complement)."""
    value &= MASK32
    if value & 0x80000000:
        return value - 0x100000000
    return value


def fmix32(h: int) -> int:
    """Murmur3 finaliser: avalanche all bits of a 32-bit seed."""
    h = to_uint32(h)
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & MASK32
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & MASK32
    h ^= h >> 16
    return h


def fnv1a32(key: str) -> int:
    """FNV-1a over the key's UTF-16 code units."""
    h = FNV_OFFSET
    for unit in _utf16_units(key):
        h ^= unit
        h = (h * FNV_PRIME) & MASK32
    return h


def hash32(key: str) -> int:
    """FNV-1a followed by the murmur3 finaliser."""
    return fmix32(fnv1a32(key))


def rand01_keyed(key: str) -> float:
    """Map a string key to a reproducible float in [0, 1]."""
    h = hash32(key)
    return ((h >> 8) & 0xFFFF) / 0xFFFF


def default_salt(rows: int, cols: int) -> int:
    """Salt derived from grid shape when the caller supplies none."""
    return to_int32(rows * 73856093) ^ to_int32(cols * 19349663)


def _utf16_units(key: str):
    for ch in key:
        code = ord(ch)
        if code > 0xFFFF:
            code -= 0x10000
            yield 0xD800 + (code >> 10)
            yield 0xDC00 + (code & 0x3FF)
        else:
            yield code
