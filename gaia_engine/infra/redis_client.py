from __future__ import annotations

import os
from dataclasses import dataclass

import redis


@dataclass(frozen=True, slots=True)
class Settings:
    redis_url: str
    # 0 keeps sessions forever.
    session_ttl_seconds: int
    bot_delay_ms: int
    log_level: str
    run_bot_worker: bool


def load_settings() -> Settings:
    return Settings(
        redis_url=get_redis_url(),
        session_ttl_seconds=int(os.environ.get("GAIA_SESSION_TTL_SECONDS", "0")),
        bot_delay_ms=int(os.environ.get("GAIA_BOT_DELAY_MS", "0")),
        log_level=os.environ.get("GAIA_LOG_LEVEL", "DEBUG").upper(),
        run_bot_worker=os.environ.get("GAIA_RUN_BOT_WORKER", "0") == "1",
    )


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def create_redis() -> redis.Redis:
    # decode_responses=True => strings in/out instead of bytes
    return redis.Redis.from_url(get_redis_url(), decode_responses=True)
