from __future__ import annotations

from collections.abc import Generator

import redis

from gaia_engine.infra.redis_client import create_redis


def get_redis() -> Generator[redis.Redis, None, None]:
    """One client per request; routes and the WebSocket endpoint share this dependency."""

    client = create_redis()
    try:
        yield client
    finally:
        client.close()
