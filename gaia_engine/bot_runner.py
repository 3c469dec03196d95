from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

import redis

from gaia_engine.actions import dispatch_command
from gaia_engine.bots.planner import acting_bot, propose_command
from gaia_engine.core.models import Session
from gaia_engine.infra.redis_client import load_settings
from gaia_engine.lock import SessionBusy
from gaia_engine.session_store import get_session, list_sessions
from gaia_engine.streams import BotQueue, publish_wakeup
from gaia_engine.turn_processing.commands import Command
from gaia_engine.websocket_hub import hub, session_updated

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BotRunnerConfig:
    # How long to block waiting for a wake-up.
    block_ms: int = 250
    # Max wake-ups to read per tick.
    count: int = 10
    # Pause between bot moves; None reads GAIA_BOT_DELAY_MS.
    delay_ms: int | None = None
    # Advisory guard lifetime, so a crashed tick cannot wedge the session.
    guard_ms: int = 30_000


def _group_name_for(*, session_id: str) -> str:
    return f"bots:{session_id}"


def _consumer_name_for(*, session_id: str) -> str:
    return f"bot-runner:{session_id}"


def _guard_key(session_id: str) -> str:
    return f"bot_executing:{session_id}"


def ensure_queue_group(*, r: redis.Redis, stream_key: str, group: str) -> None:
    """Ensure a consumer group exists for the given stream.

    Uses MKSTREAM so missing streams are created.
    """

    try:
        r.xgroup_create(stream_key, group, id="0", mkstream=True)
    except Exception as e:
        # BUSYGROUP is expected if it already exists.
        if "BUSYGROUP" not in str(e):
            raise


def read_wakeups(*, r: redis.Redis, session_id: str, config: BotRunnerConfig) -> int:
    """Consume and ack pending wake-ups; returns how many there were."""

    stream_key = BotQueue(session_id=session_id).key
    group = _group_name_for(session_id=session_id)
    ensure_queue_group(r=r, stream_key=stream_key, group=group)

    resp = r.xreadgroup(
        group,
        _consumer_name_for(session_id=session_id),
        {stream_key: ">"},
        count=config.count,
        # block=0 would wait forever; 0 here means "do not block".
        block=config.block_ms or None,
    )
    seen = 0
    for _stream, messages in resp or []:
        for msg_id, _fields in messages:
            # Wake-ups carry no payload we need to replay.
            r.xack(stream_key, group, msg_id)
            seen += 1
    return seen


def run_bot_step(*, r: redis.Redis, session_id: str) -> bool:
    """Let the acting bot (if any) make one move. Returns True if a command was applied."""

    session = get_session(r=r, session_id=UUID(session_id))
    if session is None:
        return False
    seat_id = acting_bot(session)
    if seat_id is None:
        return False

    command = decide_bot_command(session=session, seat_id=seat_id)
    if command is None:
        logger.warning("bot has no legal move session_id=%s seat_id=%s", session_id, seat_id)
        return False

    result = dispatch_command(r=r, session_id=session.session_id, seat_id=seat_id, command=command, by_bot=True)
    if not result.applied:
        logger.warning(
            "bot command rejected session_id=%s seat_id=%s action=%s reason=%s",
            session_id,
            seat_id,
            command.type,
            result.reason,
        )
    return result.applied


async def broadcast_session(*, r: redis.Redis, session_id: str) -> None:
    session = get_session(r=r, session_id=UUID(session_id))
    if session is not None:
        await hub.broadcast(session_id, session_updated(session))


async def run_session_bots_once(*, r: redis.Redis, session_id: str, config: BotRunnerConfig | None = None) -> bool:
    """One tick for one session: drain wake-ups, then at most one bot move.

    An applied move is broadcast to the session's connections and queues the
    next wake-up itself, so the following tick picks up where this one stopped.
    Returns True if a bot moved.
    """

    cfg = config or BotRunnerConfig()
    guard = _guard_key(session_id)
    if not r.set(guard, "1", nx=True, px=cfg.guard_ms):
        return False

    try:
        if read_wakeups(r=r, session_id=session_id, config=cfg) == 0:
            return False
        moved = run_bot_step(r=r, session_id=session_id)
        if moved:
            await broadcast_session(r=r, session_id=session_id)
        delay_ms = cfg.delay_ms if cfg.delay_ms is not None else load_settings().bot_delay_ms
        if moved and delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)
        return moved
    except SessionBusy:
        # The wake-up is already acked; queue it again for the next tick.
        logger.debug("session busy, bot wake-up requeued session_id=%s", session_id)
        publish_wakeup(r=r, queue=BotQueue(session_id=session_id), fields={"type": "wakeup", "reason": "session_busy"})
        return False
    except Exception:
        logger.exception("bot tick failed session_id=%s", session_id)
        return False
    finally:
        r.delete(guard)


async def run_bot_worker(*, r: redis.Redis, config: BotRunnerConfig | None = None, idle_s: float = 0.5) -> None:
    """Tick every session with bots until cancelled."""

    cfg = config or BotRunnerConfig(block_ms=0)
    while True:
        moved_any = False
        for session in list_sessions(r=r):
            if any(s.is_bot for s in session.seats.values()):
                moved = await run_session_bots_once(r=r, session_id=str(session.session_id), config=cfg)
                moved_any = moved_any or moved
        if not moved_any:
            await asyncio.sleep(idle_s)


# ---- Decision helper (kept separate so tests can monkeypatch it) ----


def decide_bot_command(*, session: Session, seat_id: str) -> Command | None:
    return propose_command(session, seat_id)
