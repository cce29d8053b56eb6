"""Opaque check-in tokens.

Tokens are lookup keys only; they are not signed.
"""

from __future__ import annotations

import secrets
import string
import time
from typing import Any

_ALPHABET = string.ascii_lowercase + string.digits
SUFFIX_LENGTH = 6


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def registration_token(now_ms: int | None = None) -> str:
    stamp = _epoch_ms() if now_ms is None else now_ms
    return f"reg_{stamp}_{random_suffix()}"


def ticket_tokens(ticket_id: Any, count: int, now_ms: int | None = None) -> list[str]:
    stamp = _epoch_ms() if now_ms is None else now_ms
    return [f"ticket_{ticket_id}_{stamp}_{index}_{random_suffix()}" for index in range(1, count + 1)]
