"""Lobby start, faction selection, starting placement and bonus tile selection."""

from __future__ import annotations

import random

from gaia_engine.core.catalog import (
    ADVANCED_TECH_IDS,
    BONUS_TILES,
    FACTIONS,
    FEDERATION_REWARD_COPIES,
    FEDERATION_REWARDS,
    FINAL_MISSIONS,
    MAX_ROUNDS,
    ROUND_MISSIONS,
    STANDARD_TECH_IDS,
    TRACKS,
    Structure,
)
from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.models import Seat, Session
from gaia_engine.core.power import set_bowls
from gaia_engine.core.resources import grant
from gaia_engine.fsm import transition
from gaia_engine.rules.research import apply_level_bonus
from gaia_engine.rules.round_flow import begin_round_income


def start_session(session: Session) -> None:
    """Lobby -> faction selection. Deals every random board element from the session seed."""

    if not session.seats:
        raise RuleViolation("At least one seat is required")
    not_ready = [s.display_name for s in session.seats.values() if not s.ready]
    if not_ready:
        raise RuleViolation(f"Seats not ready: {', '.join(not_ready)}")

    rng = random.Random(session.seed)
    pools = session.pools

    bonus = list(BONUS_TILES)
    rng.shuffle(bonus)
    pools.bonus_tiles = bonus[: len(session.seats) + 3]

    standard = list(STANDARD_TECH_IDS)
    rng.shuffle(standard)
    pools.tech_tracks = {track.value: tile for track, tile in zip(TRACKS, standard, strict=False)}
    pools.tech_pool = standard[len(TRACKS) :]

    advanced = list(ADVANCED_TECH_IDS)
    rng.shuffle(advanced)
    pools.advanced_tracks = {track.value: tile for track, tile in zip(TRACKS, advanced, strict=False)}

    pools.federation_pool = {rid: FEDERATION_REWARD_COPIES for rid in FEDERATION_REWARDS}
    parked = rng.choice(sorted(FEDERATION_REWARDS))
    pools.federation_pool[parked] -= 1
    pools.terraforming_reward = parked
    pools.power_actions_used = []

    missions = list(ROUND_MISSIONS)
    rng.shuffle(missions)
    session.round_missions = missions[:MAX_ROUNDS]
    session.final_missions = rng.sample(FINAL_MISSIONS, 2)

    transition(session, "start")
    session.append_log("Game started; choose factions")


def choose_faction(session: Session, seat: Seat, *, faction: str, turn_order_preference: int | None) -> None:
    if seat.faction is not None:
        raise RuleViolation("Faction already chosen")
    chosen = FACTIONS.get(faction)
    if chosen is None:
        raise RuleViolation(f"Unknown faction: {faction}")

    others = [s for s in session.seats.values() if s.seat_id != seat.seat_id]
    for other in others:
        if other.faction is None:
            continue
        if other.faction == faction:
            raise RuleViolation("Faction already taken")
        if FACTIONS[other.faction].home == chosen.home:
            raise RuleViolation(f"Home planet {chosen.home.value} already taken")

    if turn_order_preference is not None:
        if turn_order_preference > len(session.seats):
            raise RuleViolation("Turn order preference out of range")
        if any(o.turn_order_preference == turn_order_preference for o in others):
            raise RuleViolation("Turn order position already taken")

    seat.faction = faction
    seat.turn_order_preference = turn_order_preference
    session.append_log(f"{seat.display_name} chooses {faction}", seat_id=seat.seat_id)

    if all(s.faction is not None for s in session.seats.values()):
        _finalize_factions(session)


def _finalize_factions(session: Session) -> None:
    n = len(session.seats)
    order: list[str | None] = [None] * n
    for sid in session.seat_order:
        pref = session.seats[sid].turn_order_preference
        if pref is not None:
            order[pref - 1] = sid
    rest = [sid for sid in session.seat_order if sid not in order]
    for i in range(n):
        if order[i] is None:
            order[i] = rest.pop(0)
    session.turn_order = [sid for sid in order if sid is not None]

    for sid in session.turn_order:
        seat = session.seats[sid]
        seat.turn_order_preference = session.turn_order.index(sid) + 1
        _apply_starting_kit(session, seat)

    session.placement_order = _placement_order(session)
    session.placement_index = 0
    transition(session, "factions_chosen")
    session.append_log("Factions locked; starting placement")


def _apply_starting_kit(session: Session, seat: Seat) -> None:
    faction = FACTIONS[seat.faction or ""]
    seat.ore = faction.ore
    seat.knowledge = faction.knowledge
    seat.credits = faction.credits
    seat.qic = 0
    set_bowls(seat, faction.power)
    grant(session, seat, {"qic": faction.qic}, reason="starting kit")
    for track, level in faction.research.items():
        seat.research[track] = level
        for lvl in range(1, level + 1):
            apply_level_bonus(session, seat, track, lvl)


def _placement_order(session: Session) -> list[str]:
    """Snake draft: turn order, then reverse, then a third mine, then one-mine and PI starters."""

    regular: list[str] = []
    third: list[str] = []
    single: list[str] = []
    pi_first: list[str] = []
    for sid in session.turn_order:
        faction = FACTIONS[session.seats[sid].faction or ""]
        if faction.starts_with_pi:
            pi_first.append(sid)
        elif faction.start_mines == 1:
            single.append(sid)
        else:
            regular.append(sid)
            if faction.start_mines >= 3:
                third.append(sid)
    return regular + list(reversed(regular)) + third + single + pi_first


def place_starting_structure(session: Session, seat: Seat, *, tile_id: str) -> None:
    tile = session.tile(tile_id)
    faction = FACTIONS[seat.faction or ""]
    if tile.owner is not None or tile.structure is not None:
        raise RuleViolation("Tile is already occupied")
    if tile.planet != faction.home:
        raise RuleViolation(f"Starting structures go on {faction.home.value} planets")

    tile.owner = seat.seat_id
    tile.structure = Structure.planetary_institute if faction.starts_with_pi else Structure.mine
    session.placement_index += 1
    session.append_log(f"{seat.display_name} places a {tile.structure.value} on {tile.id}", seat_id=seat.seat_id)

    if session.placement_index >= len(session.placement_order):
        session.bonus_select_index = len(session.turn_order) - 1
        transition(session, "placement_done")
        session.append_log("Choose bonus tiles in reverse turn order")


def select_bonus_tile(session: Session, seat: Seat, *, bonus_tile: str) -> None:
    if bonus_tile not in session.pools.bonus_tiles:
        raise RuleViolation("Bonus tile not available")
    session.pools.bonus_tiles.remove(bonus_tile)
    seat.bonus_tile = bonus_tile
    session.append_log(f"{seat.display_name} takes {bonus_tile}", seat_id=seat.seat_id)

    session.bonus_select_index -= 1
    if session.bonus_select_index < 0:
        session.bonus_select_index = 0
        transition(session, "bonuses_chosen")
        session.round_number = 1
        begin_round_income(session)
