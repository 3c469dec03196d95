from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import cast

import redis

from gaia_engine.core.models import Session, SessionPhase


@dataclass(frozen=True, slots=True)
class BotQueue:
    """Wake-up stream for a session's bots."""

    session_id: str

    @property
    def key(self) -> str:
        return f"botq:{self.session_id}"


def publish_wakeup(*, r: redis.Redis, queue: BotQueue, fields: Mapping[str, str]) -> str:
    """Append a wake-up entry to the session's bot stream."""

    # redis-py stubs expect field/value unions; we only use string fields/values.
    stream_id = r.xadd(queue.key, {str(k): str(v) for k, v in fields.items()})
    return cast(str, stream_id)


def wake_bots(*, r: redis.Redis, session: Session, reason: str) -> str | None:
    """Queue a bot tick when the session still has bots and is not over."""

    if session.phase == SessionPhase.game_end:
        return None
    if not any(s.is_bot for s in session.seats.values()):
        return None
    return publish_wakeup(
        r=r,
        queue=BotQueue(session_id=str(session.session_id)),
        fields={"type": "wakeup", "reason": reason, "log_seq": str(session.log_seq)},
    )
