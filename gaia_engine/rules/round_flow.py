"""Round lifecycle: income, passing, ending turns and rounds."""

from __future__ import annotations

import logging

from gaia_engine.core.catalog import MAX_ROUNDS, Planet
from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.income import best_order, seat_income
from gaia_engine.core.models import ChooseIncomeOrder, RoundStage, Seat, Session
from gaia_engine.core.power import apply_income_item, bowls, set_bowls
from gaia_engine.core.resources import grant
from gaia_engine.core.scoring import apply_final_scoring, score_pass
from gaia_engine.core.snapshot import restore_turn_snapshot
from gaia_engine.fsm import transition
from gaia_engine.turn_processing.turns import advance_turn, start_action_stage

logger = logging.getLogger(__name__)


# ---- income ----


def begin_round_income(session: Session) -> None:
    """Pay every seat's income in turn order.

    Plain resources land at once. A single power/token item is applied
    directly; seats with several items are queued to choose their order.
    """

    session.round_stage = RoundStage.income
    session.power_offers = []
    session.income_queue = []
    session.income_order = None

    for sid in session.turn_order:
        seat = session.seat(sid)
        resources, items = seat_income(session, seat)
        grant(session, seat, resources, reason="income")
        if len(items) == 1:
            apply_income_item(seat, items[0].kind, items[0].amount)
        elif items:
            session.income_queue.append(sid)

    session.append_log(f"Round {session.round_number} income")
    _next_income_order(session)


def _next_income_order(session: Session) -> None:
    if session.income_queue:
        sid = session.income_queue.pop(0)
        _, items = seat_income(session, session.seat(sid))
        session.income_order = ChooseIncomeOrder(seat_id=sid, items=items)
        return
    session.income_order = None
    finish_income_stage(session)


def _require_order(session: Session, seat: Seat) -> ChooseIncomeOrder:
    order = session.income_order
    if order is None or order.seat_id != seat.seat_id:
        raise RuleViolation("No income to order for this seat")
    return order


def select_income_item(session: Session, seat: Seat, *, index: int) -> None:
    order = _require_order(session, seat)
    if index < 0 or index >= len(order.items):
        raise RuleViolation("Income item index out of range")
    order.bowl_history.append(bowls(seat))
    item = order.items.pop(index)
    apply_income_item(seat, item.kind, item.amount)
    order.applied.append(item)


def auto_order_income(session: Session, seat: Seat) -> None:
    order = _require_order(session, seat)
    for item in best_order(seat, order.items):
        order.bowl_history.append(bowls(seat))
        apply_income_item(seat, item.kind, item.amount)
        order.applied.append(item)
    order.items = []


def undo_income_item(session: Session, seat: Seat) -> None:
    order = _require_order(session, seat)
    if not order.applied:
        raise RuleViolation("Nothing to undo")
    item = order.applied.pop()
    set_bowls(seat, order.bowl_history.pop())
    order.items.append(item)


def finish_income(session: Session, seat: Seat) -> None:
    order = _require_order(session, seat)
    if order.items:
        raise RuleViolation("Apply every income item before finishing")
    session.append_log(f"{seat.display_name} finishes income", seat_id=seat.seat_id)
    _next_income_order(session)


def finish_income_stage(session: Session) -> None:
    """Gaia area tokens return, round actions reset and the first turn starts."""

    for seat in session.seats.values():
        if seat.gaiaformer_power:
            if seat.faction == "terrans":
                seat.power2 += seat.gaiaformer_power
            else:
                seat.power1 += seat.gaiaformer_power
            seat.gaiaformer_power = 0
        seat.used_actions = []
    start_action_stage(state=session)


# ---- turns and rounds ----


def end_turn(session: Session, seat: Seat) -> None:
    if not seat.main_action_done:
        raise RuleViolation("Take a main action before ending the turn")
    seat.temp_range_bonus = 0
    seat.pending_terraform_steps = 0
    if not advance_turn(state=session):
        end_round(session)


def reset_turn(session: Session, seat: Seat) -> None:
    restore_turn_snapshot(session, seat.seat_id)
    session.append_log(f"{seat.display_name} resets the turn", seat_id=seat.seat_id)


def pass_round(session: Session, seat: Seat, *, bonus_tile: str | None) -> None:
    pools = session.pools
    last_round = session.round_number >= MAX_ROUNDS
    if not last_round:
        if bonus_tile is None:
            raise RuleViolation("Choose a bonus tile for the next round")
        if bonus_tile not in pools.bonus_tiles:
            raise RuleViolation("Bonus tile not available")

    score_pass(session, seat)

    if not last_round and bonus_tile is not None:
        pools.bonus_tiles.remove(bonus_tile)
        if seat.bonus_tile is not None:
            pools.bonus_tiles.append(seat.bonus_tile)
        seat.bonus_tile = bonus_tile

    seat.passed = True
    seat.main_action_done = True
    seat.temp_range_bonus = 0
    seat.pending_terraform_steps = 0
    session.passing_order.append(seat.seat_id)
    session.append_log(f"{seat.display_name} passes", seat_id=seat.seat_id)

    if not advance_turn(state=session):
        end_round(session)


def _mature_gaiaformers(session: Session) -> None:
    for tile in session.tiles:
        if tile.gaiaformer_owner is not None and tile.planet == Planet.transdim:
            tile.planet = Planet.gaia


def end_round(session: Session) -> None:
    _mature_gaiaformers(session)

    if session.round_number >= MAX_ROUNDS:
        apply_final_scoring(session)
        transition(session, "game_finished")
        session.append_log("Game over")
        logger.info("session finished session_id=%s", session.session_id)
        return

    session.round_number += 1
    session.turn_order = list(session.passing_order)
    session.passing_order = []
    session.current_seat_index = 0
    session.turn_snapshots = {}
    session.pools.power_actions_used = []
    for seat in session.seats.values():
        seat.passed = False
        seat.main_action_done = False
    begin_round_income(session)
