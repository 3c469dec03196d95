from __future__ import annotations

from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.models import RoundStage, Session
from gaia_engine.core.snapshot import take_turn_snapshot


def current_turn_seat_id(*, state: Session) -> str:
    """Return which seat should act next. Raises if nobody holds the turn."""

    seat_id = state.current_seat_id
    if seat_id is None:
        raise RuleViolation("No seat holds the turn")
    return seat_id


def begin_turn(*, state: Session) -> None:
    """Hand the turn to the seat at `current_seat_index` and snapshot it."""

    seat_id = current_turn_seat_id(state=state)
    seat = state.seat(seat_id)
    seat.main_action_done = False
    seat.temp_range_bonus = 0
    take_turn_snapshot(state, seat_id)


def advance_turn(*, state: Session) -> bool:
    """Move to the next seat that has not passed.

    Returns False when every seat has passed (round is over).
    """

    n = len(state.turn_order)
    for step in range(1, n + 1):
        idx = (state.current_seat_index + step) % n
        if not state.seat(state.turn_order[idx]).passed:
            state.current_seat_index = idx
            begin_turn(state=state)
            return True
    return False


def start_action_stage(*, state: Session) -> None:
    state.round_stage = RoundStage.actions
    state.current_seat_index = 0
    begin_turn(state=state)
