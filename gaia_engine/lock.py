from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from uuid import uuid4

import redis


class SessionBusy(ValueError):
    """Another command holds the session lock."""


def _lock_key(session_id: str) -> str:
    return f"lock:session:{session_id}"


@contextmanager
def session_lock(*, r: redis.Redis, session_id: str, ttl_ms: int = 5_000) -> Iterator[str]:
    """Per-session lock: one command is applied to completion at a time.

    The TTL bounds how long a crashed holder can block the session. Each holder
    writes its own token and only deletes the key while it still holds it, so
    a holder whose lock expired cannot release the next holder's lock.
    """

    key = _lock_key(session_id)
    token = uuid4().hex
    if not r.set(key, token, nx=True, px=ttl_ms):
        raise SessionBusy("Session is busy")
    try:
        yield token
    finally:
        if r.get(key) == token:
            r.delete(key)
