"""Mines, upgrades and gaia projects."""

from __future__ import annotations

from gaia_engine.core.catalog import BIG_BUILDINGS, BUILDING_LIMITS, Planet, Structure, limit_key
from gaia_engine.core.errors import ExplicitRuleViolation, RuleViolation
from gaia_engine.core.formulas import (
    distance_from_seat,
    gaia_project_tokens,
    mine_cost,
    qic_for_distance,
    reach,
    upgrade_cost,
)
from gaia_engine.core.models import Seat, Session, Tile
from gaia_engine.core.power import remove_tokens, total_tokens
from gaia_engine.core.resources import pay
from gaia_engine.core.scoring import trigger_event
from gaia_engine.rules.offers import create_power_offers
from gaia_engine.rules.research import open_tech_tile_choice

_UPGRADE_EVENTS: dict[Structure, str] = {
    Structure.trading_station: "build_trading_station",
    Structure.research_lab: "build_research_lab",
}


def _count(session: Session, seat: Seat, key: str) -> int:
    return sum(1 for t in session.structures_of(seat.seat_id) if t.structure and limit_key(t.structure) == key)


def _require_empty(tile: Tile) -> None:
    if tile.owner is not None or tile.structure is not None:
        raise RuleViolation("Tile is already occupied")


def build_mine(session: Session, seat: Seat, *, tile_id: str) -> None:
    tile = session.tile(tile_id)
    _require_empty(tile)
    if tile.gaiaformer_owner is not None and tile.gaiaformer_owner != seat.seat_id:
        raise RuleViolation("Another seat's gaiaformer stands on this planet")
    if _count(session, seat, "mine") >= BUILDING_LIMITS["mine"]:
        raise RuleViolation("No mines left")

    cost = mine_cost(session, seat, tile)
    if seat.qic < cost.qic:
        raise ExplicitRuleViolation(f"Not enough QIC to reach this planet (need {cost.qic}, have {seat.qic})")
    pay(seat, {"ore": cost.ore, "credits": cost.credits, "qic": cost.qic}, what="mine")

    owned = session.structures_of(seat.seat_id)
    new_sector = tile.sector not in {t.sector for t in owned}
    new_planet_type = tile.planet not in {t.planet for t in owned}

    tile.owner = seat.seat_id
    tile.structure = Structure.mine
    if cost.uses_own_gaiaformer:
        tile.gaiaformer_owner = None
        tile.gaiaformer_round = None
        seat.gaiaformers += 1
    seat.pending_terraform_steps = 0
    seat.temp_range_bonus = 0
    seat.main_action_done = True

    trigger_event(session, seat, "build_mine")
    trigger_event(session, seat, "terraform_step", times=cost.steps)
    if tile.planet == Planet.gaia:
        trigger_event(session, seat, "build_gaia")
    if new_sector:
        trigger_event(session, seat, "new_sector")
    if new_planet_type:
        trigger_event(session, seat, "new_planet_type")

    session.append_log(
        f"{seat.display_name} builds a mine on {tile.id} ({cost.ore} ore, {cost.credits} credits, {cost.qic} QIC)",
        seat_id=seat.seat_id,
    )
    create_power_offers(session, seat, tile)


def upgrade(session: Session, seat: Seat, *, tile_id: str, to: Structure) -> None:
    tile = session.tile(tile_id)
    if tile.owner != seat.seat_id or tile.structure is None:
        raise RuleViolation("You can only upgrade your own structures")

    cost = upgrade_cost(session, seat, tile, to)
    key = limit_key(to)
    if _count(session, seat, key) >= BUILDING_LIMITS[key]:
        raise RuleViolation(f"No {key.replace('_', ' ')} left")
    if key == "academy" and any(t.structure == to for t in session.structures_of(seat.seat_id)):
        raise RuleViolation(f"{to.value} already built")
    pay(seat, {"ore": cost.ore, "credits": cost.credits}, what=to.value)

    previous = tile.structure
    tile.structure = to
    seat.main_action_done = True

    if to in BIG_BUILDINGS:
        trigger_event(session, seat, "build_big_building")
    else:
        trigger_event(session, seat, _UPGRADE_EVENTS[to])

    session.append_log(
        f"{seat.display_name} upgrades {previous.value} to {to.value} on {tile.id}",
        seat_id=seat.seat_id,
    )
    if to in (Structure.research_lab, Structure.academy_left, Structure.academy_right):
        open_tech_tile_choice(session, seat)
    create_power_offers(session, seat, tile)


def place_gaiaformer(session: Session, seat: Seat, *, tile_id: str) -> None:
    """Start a gaia project: the transdim planet becomes gaia at the end of the round."""

    tile = session.tile(tile_id)
    if tile.planet != Planet.transdim:
        raise RuleViolation("Gaia projects need a transdim planet")
    _require_empty(tile)
    if tile.gaiaformer_owner is not None:
        raise RuleViolation("A gaiaformer already stands on this planet")
    if seat.gaiaformers < 1:
        raise RuleViolation("No gaiaformer available")

    tokens = gaia_project_tokens(seat.research["gaia_project"])
    qic = qic_for_distance(distance_from_seat(session, seat.seat_id, tile), reach(seat))
    if seat.qic < qic:
        raise ExplicitRuleViolation(f"Not enough QIC to reach this planet (need {qic}, have {seat.qic})")
    if total_tokens(seat) < tokens:
        raise ExplicitRuleViolation(f"Not enough power tokens for a gaia project (need {tokens})")

    seat.qic -= qic
    remove_tokens(seat, tokens)
    seat.gaiaformer_power += tokens
    seat.gaiaformers -= 1
    tile.gaiaformer_owner = seat.seat_id
    tile.gaiaformer_round = session.round_number
    seat.temp_range_bonus = 0
    seat.main_action_done = True
    session.append_log(
        f"{seat.display_name} starts a gaia project on {tile.id} ({tokens} tokens)",
        seat_id=seat.seat_id,
    )
