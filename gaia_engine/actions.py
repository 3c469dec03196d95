from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import redis

from gaia_engine.core.errors import ExplicitRuleViolation, NotYourSeat, RuleViolation
from gaia_engine.core.models import Seat, Session
from gaia_engine.lock import session_lock
from gaia_engine.rules import build, federation, free_actions, offers, research, round_flow, setup
from gaia_engine.session_store import require_session, save_session
from gaia_engine.streams import wake_bots
from gaia_engine.turn_processing.commands import Command
from gaia_engine.turn_processing.validators import ValidationContext, pipeline_for_action

logger = logging.getLogger(__name__)

Handler = Callable[[Session, Seat, Any], None]

HANDLERS: dict[str, Handler] = {
    "choose_faction": lambda s, seat, c: setup.choose_faction(
        s, seat, faction=c.faction, turn_order_preference=c.turn_order_preference
    ),
    "place_starting_structure": lambda s, seat, c: setup.place_starting_structure(s, seat, tile_id=c.tile_id),
    "select_bonus_tile": lambda s, seat, c: setup.select_bonus_tile(s, seat, bonus_tile=c.bonus_tile),
    "select_income_item": lambda s, seat, c: round_flow.select_income_item(s, seat, index=c.index),
    "auto_order_income": lambda s, seat, c: round_flow.auto_order_income(s, seat),
    "undo_income_item": lambda s, seat, c: round_flow.undo_income_item(s, seat),
    "finish_income": lambda s, seat, c: round_flow.finish_income(s, seat),
    "build_mine": lambda s, seat, c: build.build_mine(s, seat, tile_id=c.tile_id),
    "upgrade": lambda s, seat, c: build.upgrade(s, seat, tile_id=c.tile_id, to=c.to),
    "advance_research": lambda s, seat, c: research.advance_research(s, seat, track=c.track.value),
    "place_gaiaformer": lambda s, seat, c: build.place_gaiaformer(s, seat, tile_id=c.tile_id),
    "form_federation": lambda s, seat, c: federation.form_federation(
        s, seat, structure_tile_ids=c.structure_tile_ids, satellite_tile_ids=c.satellite_tile_ids
    ),
    "use_power_action": lambda s, seat, c: free_actions.use_power_action(s, seat, action_id=c.action_id),
    "use_special_action": lambda s, seat, c: free_actions.use_special_action(
        s, seat, action_id=c.action_id, tile_id=c.tile_id
    ),
    "convert": lambda s, seat, c: free_actions.convert(s, seat, conversion_id=c.conversion_id, times=c.times),
    "burn_power": lambda s, seat, c: free_actions.burn_power(s, seat, times=c.times),
    "pass": lambda s, seat, c: round_flow.pass_round(s, seat, bonus_tile=c.bonus_tile),
    "end_turn": lambda s, seat, c: round_flow.end_turn(s, seat),
    "reset_turn": lambda s, seat, c: round_flow.reset_turn(s, seat),
    "respond_offer": lambda s, seat, c: offers.respond_offer(s, seat, offer_id=c.offer_id, accept=c.accept),
    "accept_all_offers": lambda s, seat, c: offers.accept_all_offers(s, seat),
    "choose_tech_tile": lambda s, seat, c: research.choose_tech_tile(
        s, seat, tile_id=c.tile_id, track=c.track.value if c.track is not None else None
    ),
    "cover_tech_tile": lambda s, seat, c: research.cover_tech_tile(s, seat, tile_id=c.tile_id),
    "choose_federation_reward": lambda s, seat, c: federation.choose_federation_reward(
        s, seat, reward_id=c.reward_id
    ),
}


def _check_controller(session: Session, seat_id: str, *, by_bot: bool) -> None:
    seat = session.seats.get(seat_id)
    if seat is None or seat.is_bot != by_bot:
        raise NotYourSeat()


@dataclass(frozen=True, slots=True)
class ActionResult:
    applied: bool
    session: Session
    reason: str | None = None
    # True when the rejection should reach the caller as a `game_error`.
    explicit: bool = False
    error: RuleViolation | None = None


def apply_command(*, session: Session, seat_id: str, command: Command, by_bot: bool = False) -> ActionResult:
    """Validate and apply one command against a working copy of `session`.

    On success the returned session is the mutated copy; on rejection it is the
    untouched input, so a failed handler can never leave half-applied state.
    """

    action = command.type
    ctx = ValidationContext(session_id=str(session.session_id), seat_id=seat_id, action=action)
    working = session.model_copy(deep=True)
    try:
        _check_controller(working, seat_id, by_bot=by_bot)
        pipeline_for_action(action).validate(ctx=ctx, state=working)
        handler = HANDLERS[action]
        handler(working, working.seat(seat_id), command)
    except RuleViolation as e:
        logger.debug("command rejected session_id=%s seat_id=%s action=%s reason=%s", ctx.session_id, seat_id, action, e)
        return ActionResult(
            applied=False,
            session=session,
            reason=str(e),
            explicit=isinstance(e, ExplicitRuleViolation),
            error=e,
        )

    logger.info(
        "command applied session_id=%s seat_id=%s action=%s round=%s phase=%s",
        ctx.session_id,
        seat_id,
        action,
        working.round_number,
        working.phase.value,
    )
    return ActionResult(applied=True, session=working)


def dispatch_command(
    *,
    r: redis.Redis,
    session_id: UUID,
    seat_id: str,
    command: Command,
    by_bot: bool = False,
) -> ActionResult:
    """Entry point for human clients and bots.

    - acquire the per-session lock
    - load, apply, persist only when applied
    - wake the bots so they can react to the new state
    """

    with session_lock(r=r, session_id=str(session_id)):
        session = require_session(r=r, session_id=session_id)
        result = apply_command(session=session, seat_id=seat_id, command=command, by_bot=by_bot)
        if result.applied:
            save_session(r=r, session=result.session)

    if result.applied:
        wake_bots(r=r, session=result.session, reason=command.type)
    return result
