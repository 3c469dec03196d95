from __future__ import annotations

from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.models import Session, TurnSnapshot


def take_turn_snapshot(session: Session, seat_id: str) -> TurnSnapshot:
    """Record the state a turn can be reset to. Copies are deep; nothing is shared."""

    snap = TurnSnapshot(
        seats={sid: s.model_copy(deep=True) for sid, s in session.seats.items()},
        tiles=[t.model_copy(deep=True) for t in session.tiles],
        pools=session.pools.model_copy(deep=True),
        power_offers=[o.model_copy(deep=True) for o in session.power_offers],
        log_seq=session.log_seq,
    )
    session.turn_snapshots[seat_id] = snap
    return snap


def restore_turn_snapshot(session: Session, seat_id: str) -> None:
    snap = session.turn_snapshots.get(seat_id)
    if snap is None:
        raise RuleViolation("No snapshot recorded for this seat")

    restored = snap.model_copy(deep=True)
    session.seats = restored.seats
    session.tiles = restored.tiles
    session.pools = restored.pools
    session.power_offers = restored.power_offers
    session.log = [e for e in session.log if e.seq <= restored.log_seq]
    session.log_seq = restored.log_seq
    session.pending = None
