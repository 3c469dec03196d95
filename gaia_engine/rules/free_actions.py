"""Power actions, special actions, conversions and burning power.

Power actions and the terraform/range bonus actions do not use up the main
action; they are taken right before one. Tech tile, academy and gaia project
bonus actions are main actions in their own right.
"""

from __future__ import annotations

from gaia_engine.core.catalog import (
    ACADEMY_ACTION_ID,
    BONUS_TILES,
    CONVERSIONS,
    POWER_ACTIONS,
    RANGE_BONUS_TILE_ACTION,
    TECH_TILES,
)
from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.formulas import has_right_academy
from gaia_engine.core.models import Seat, Session
from gaia_engine.core.power import burn_power as burn_bowl_two
from gaia_engine.core.resources import grant, pay
from gaia_engine.rules.build import place_gaiaformer


def use_power_action(session: Session, seat: Seat, *, action_id: str) -> None:
    action = POWER_ACTIONS.get(action_id)
    if action is None:
        raise RuleViolation(f"Unknown power action: {action_id}")
    if action_id in session.pools.power_actions_used:
        raise RuleViolation("Power action already taken this round")

    pay(seat, {"power": action.cost}, what=action_id)
    grant(session, seat, action.gain, reason=action_id)
    session.pools.power_actions_used.append(action_id)
    session.append_log(f"{seat.display_name} uses {action_id}", seat_id=seat.seat_id)


def _mark_used(seat: Seat, action_id: str) -> None:
    if action_id in seat.used_actions:
        raise RuleViolation("Action already used this round")
    seat.used_actions.append(action_id)


def use_special_action(session: Session, seat: Seat, *, action_id: str, tile_id: str | None = None) -> None:
    if action_id == ACADEMY_ACTION_ID:
        if not has_right_academy(session, seat.seat_id):
            raise RuleViolation("Needs the right academy")
        _mark_used(seat, action_id)
        grant(session, seat, {"qic": 1}, reason=action_id)
        seat.main_action_done = True

    elif action_id in TECH_TILES:
        tile = TECH_TILES[action_id]
        if action_id not in seat.active_tech_tiles() or not tile.action:
            raise RuleViolation("No such tech tile action available")
        _mark_used(seat, action_id)
        grant(session, seat, tile.action, reason=action_id, category="tech_tiles")
        seat.main_action_done = True

    elif action_id == seat.bonus_tile and BONUS_TILES[action_id].special_action is not None:
        special = BONUS_TILES[action_id].special_action
        if special == "gaia_project":
            if tile_id is None:
                raise RuleViolation("Choose a transdim planet for the gaia project")
            place_gaiaformer(session, seat, tile_id=tile_id)
        elif special == "terraform_step":
            grant(session, seat, {"steps": 1}, reason=action_id)
        elif special == "range_3":
            seat.temp_range_bonus += RANGE_BONUS_TILE_ACTION
        _mark_used(seat, action_id)

    else:
        raise RuleViolation(f"Unknown special action: {action_id}")

    session.append_log(f"{seat.display_name} uses {action_id}", seat_id=seat.seat_id)


def convert(session: Session, seat: Seat, *, conversion_id: str, times: int = 1) -> None:
    conversion = CONVERSIONS.get(conversion_id)
    if conversion is None:
        raise RuleViolation(f"Unknown conversion: {conversion_id}")
    if times < 1:
        raise RuleViolation("Conversion count must be positive")
    if conversion_id == "power-to-qic" and seat.faction == "gleens" and not has_right_academy(session, seat.seat_id):
        raise RuleViolation("Gleens cannot convert to QIC without the right academy")

    pay(seat, {k: v * times for k, v in conversion.pay.items()}, what=conversion_id)
    grant(session, seat, {k: v * times for k, v in conversion.gain.items()}, reason=conversion_id)
    session.append_log(f"{seat.display_name} converts {conversion_id} x{times}", seat_id=seat.seat_id)


def burn_power(session: Session, seat: Seat, *, times: int = 1) -> None:
    burn_bowl_two(seat, times)
    session.append_log(f"{seat.display_name} burns {times} power", seat_id=seat.seat_id)
