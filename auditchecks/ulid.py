"""Monotonic ULID generation."""

from __future__ import annotations

import secrets
import threading
import time

_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_RANDOM_BITS = 80
_MAX_TIMESTAMP = (1 << 48) - 1
_MAX_INCREMENT = (1 << 32) - 1


def _encode(value: int) -> str:
    """Encode a 128-bit integer as 26 Crockford base32 characters."""
    chars = []
    for _ in range(26):
        chars.append(_ALPHABET[value & 0x1F])
        value >>= 5
    return "".join(reversed(chars))


class _MonotonicEntropy:
    """Random component that grows strictly within the same millisecond."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ms = -1
        self._random = 0

    def next(self, ms: int) -> int:
        with self._lock:
            if ms == self._ms:
                value = self._random + secrets.randbelow(_MAX_INCREMENT) + 1
                if value >= 1 << _RANDOM_BITS:
                    raise OverflowError("monotonic entropy overflow")
            else:
                value = secrets.randbits(_RANDOM_BITS)
            self._ms = ms
            self._random = value
            return value


_entropy = _MonotonicEntropy()


def new_ulid() -> str:
    """Return a new ULID string; IDs made in the same millisecond sort in order."""
    ms = time.time_ns() // 1_000_000
    if not 0 <= ms <= _MAX_TIMESTAMP:
        raise ValueError(f"timestamp out of range: {ms}")
    random_part = _entropy.next(ms)
    return _encode((ms << _RANDOM_BITS) | random_part)