from __future__ import annotations

import logging
import random
from datetime import UTC, datetime
from uuid import UUID, uuid4

import redis

from gaia_engine.core.errors import SessionNotFound
from gaia_engine.core.hexmap import generate_map
from gaia_engine.core.models import Seat, Session, SessionPhase
from gaia_engine.infra.redis_client import load_settings
from gaia_engine.lock import session_lock
from gaia_engine.rules.setup import start_session
from gaia_engine.streams import wake_bots

logger = logging.getLogger(__name__)

SESSIONS_SET_KEY = "gaia:sessions"
SESSION_KEY_PREFIX = "gaia:session:"  # + {uuid}
SEAT_INDEX_KEY = "gaia:seat_sessions"  # hash seat_id -> session_id


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _session_key(session_id: UUID) -> str:
    return f"{SESSION_KEY_PREFIX}{session_id}"


def save_session(*, r: redis.Redis, session: Session) -> None:
    """Persist the full session. With a TTL configured, every save renews it."""

    session.last_updated_at = _now()
    ttl = load_settings().session_ttl_seconds
    if ttl > 0:
        r.set(_session_key(session.session_id), session.model_dump_json(), ex=ttl)
    else:
        r.set(_session_key(session.session_id), session.model_dump_json())


def get_session(*, r: redis.Redis, session_id: UUID) -> Session | None:
    raw = r.get(_session_key(session_id))
    if not raw:
        return None
    return Session.model_validate_json(raw)


def require_session(*, r: redis.Redis, session_id: UUID) -> Session:
    session = get_session(r=r, session_id=session_id)
    if session is None:
        raise SessionNotFound()
    return session


def create_session(*, r: redis.Redis, name: str, max_seats: int = 4, seed: int | None = None) -> Session:
    if seed is None:
        seed = random.SystemRandom().randint(1, 2**31 - 1)
    now = _now()
    session = Session(
        session_id=uuid4(),
        name=name,
        created_at=now,
        last_updated_at=now,
        seed=seed,
        max_seats=max_seats,
        tiles=generate_map(seed=seed),
    )
    session.append_log(f"Session '{name}' created")
    save_session(r=r, session=session)
    r.sadd(SESSIONS_SET_KEY, str(session.session_id))
    logger.info("session created session_id=%s seed=%s", session.session_id, seed)
    return session


def list_sessions(*, r: redis.Redis) -> list[Session]:
    """All live sessions, newest first. Ids whose payload expired are dropped from the index."""

    out: list[Session] = []
    for sid in sorted(r.smembers(SESSIONS_SET_KEY)):
        try:
            session_id = UUID(sid)
        except ValueError:
            continue
        session = get_session(r=r, session_id=session_id)
        if session is None:
            r.srem(SESSIONS_SET_KEY, sid)
            continue
        out.append(session)
    out.sort(key=lambda s: s.created_at, reverse=True)
    return out


def find_session_for_seat(*, r: redis.Redis, seat_id: str) -> UUID | None:
    raw = r.hget(SEAT_INDEX_KEY, seat_id)
    if not raw:
        return None
    session_id = UUID(raw)
    if get_session(r=r, session_id=session_id) is None:
        r.hdel(SEAT_INDEX_KEY, seat_id)
        return None
    return session_id


def _add_seat(*, r: redis.Redis, session_id: UUID, display_name: str, is_bot: bool) -> tuple[Session, Seat]:
    with session_lock(r=r, session_id=str(session_id)):
        session = require_session(r=r, session_id=session_id)
        if session.phase != SessionPhase.lobby:
            raise ValueError("Session has already started")
        if len(session.seats) >= session.max_seats:
            raise ValueError("Session is full")

        seat = Seat(seat_id=uuid4().hex, display_name=display_name, is_bot=is_bot, ready=is_bot)
        session.seats[seat.seat_id] = seat
        session.seat_order.append(seat.seat_id)
        session.append_log(f"{display_name} joins", seat_id=seat.seat_id)
        save_session(r=r, session=session)
        r.hset(SEAT_INDEX_KEY, seat.seat_id, str(session_id))
        return session, seat


def join_session(*, r: redis.Redis, session_id: UUID, display_name: str) -> tuple[Session, Seat]:
    return _add_seat(r=r, session_id=session_id, display_name=display_name, is_bot=False)


def add_bot(*, r: redis.Redis, session_id: UUID, display_name: str | None = None) -> tuple[Session, Seat]:
    session = require_session(r=r, session_id=session_id)
    name = display_name or f"Bot {sum(1 for s in session.seats.values() if s.is_bot) + 1}"
    return _add_seat(r=r, session_id=session_id, display_name=name, is_bot=True)


def set_ready(*, r: redis.Redis, session_id: UUID, seat_id: str, ready: bool = True) -> Session:
    with session_lock(r=r, session_id=str(session_id)):
        session = require_session(r=r, session_id=session_id)
        if session.phase != SessionPhase.lobby:
            raise ValueError("Session has already started")
        seat = session.seat(seat_id)
        seat.ready = ready
        save_session(r=r, session=session)
        return session


def start(*, r: redis.Redis, session_id: UUID) -> Session:
    with session_lock(r=r, session_id=str(session_id)):
        session = require_session(r=r, session_id=session_id)
        start_session(session)
        save_session(r=r, session=session)
    wake_bots(r=r, session=session, reason="start")
    logger.info("session started session_id=%s seats=%s", session_id, len(session.seats))
    return session
