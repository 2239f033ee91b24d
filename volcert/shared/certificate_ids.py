from __future__ import annotations

import secrets
import threading
import time

from ..constants import CERTIFICATE_ID_PREFIX

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_RANDOM_LENGTH = 6

_lock = threading.Lock()
_last_ms = 0


def _base36(value: int) -> str:
    if value <= 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def _next_timestamp_ms() -> int:
    global _last_ms
    with _lock:
        now_ms = int(time.time() * 1000)
        if now_ms <= _last_ms:
            now_ms = _last_ms + 1
        _last_ms = now_ms
        return now_ms


def generate_certificate_id(prefix: str = CERTIFICATE_ID_PREFIX) -> str:
    """Return an id like ``PE-LRX3K9ZQ-7F2A1C``.

    The timestamp part never repeats inside one process; the random suffix
    keeps ids from separate processes apart. Not a security token.
    """

    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(_RANDOM_LENGTH))
    return f"{prefix}-{_base36(_next_timestamp_ms())}-{suffix}".upper()
