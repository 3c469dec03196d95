"""Deterministic cost and range formulas.

Every function here is pure over the session: same inputs, same numbers.
"""

from __future__ import annotations

from dataclasses import dataclass

from gaia_engine.core.catalog import (
    BIG_BUILDINGS,
    FACTIONS,
    FEDERATION_POWER,
    GAIA_PROJECT_TOKEN_COST,
    MINE_COST,
    OFFER_RADIUS,
    PLANET_WHEEL,
    STRUCTURE_POWER,
    TRADING_STATION_DISCOUNTED_CREDITS,
    UPGRADE_COSTS,
    UPGRADES,
    Cost,
    Faction,
    Planet,
    Structure,
)
from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.hexmap import hex_distance
from gaia_engine.core.models import Seat, Session, Tile


@dataclass(frozen=True, slots=True)
class BuildCost:
    ore: int
    credits: int
    qic: int
    steps: int
    free_steps: int
    distance: int
    reach: int
    uses_own_gaiaformer: bool = False


def faction_of(seat: Seat) -> Faction:
    if seat.faction is None:
        raise RuleViolation("Seat has not chosen a faction")
    return FACTIONS[seat.faction]


def terraform_steps(home: Planet, target: Planet) -> int:
    if target not in PLANET_WHEEL:
        return 0
    a = PLANET_WHEEL.index(home)
    b = PLANET_WHEEL.index(target)
    d = abs(a - b)
    return min(d, len(PLANET_WHEEL) - d)


def ore_per_step(terraforming_level: int) -> int:
    if terraforming_level >= 3:
        return 1
    if terraforming_level >= 1:
        return 2
    return 3


def navigation_range(navigation_level: int) -> int:
    if navigation_level >= 5:
        return 4
    if navigation_level >= 4:
        return 3
    if navigation_level >= 2:
        return 2
    return 1


def reach(seat: Seat) -> int:
    base = navigation_range(seat.research["navigation"])
    if seat.faction == "gleens":
        base += 2
    return base + seat.temp_range_bonus


def qic_for_distance(distance: int, reach_value: int) -> int:
    if distance <= reach_value:
        return 0
    return -(-(distance - reach_value) // 2)


def distance_from_seat(session: Session, seat_id: str, tile: Tile) -> int:
    owned = session.structures_of(seat_id)
    if not owned:
        return 0
    return min(hex_distance(tile, t) for t in owned)


def has_right_academy(session: Session, seat_id: str) -> bool:
    return any(t.structure == Structure.academy_right for t in session.structures_of(seat_id))


def mine_cost(session: Session, seat: Seat, tile: Tile) -> BuildCost:
    """Ore/credit/QIC cost to put a mine on `tile` (scenario: home planet = 1 ore + 2 credits)."""

    faction = faction_of(seat)
    if tile.planet == Planet.space:
        raise RuleViolation("Cannot build a mine in empty space")
    if tile.planet == Planet.transdim:
        raise RuleViolation("Transdim planets need a gaia project first")

    distance = distance_from_seat(session, seat.seat_id, tile)
    reach_value = reach(seat)
    qic = qic_for_distance(distance, reach_value)

    own_gaiaformer = False
    steps = 0
    if tile.planet == Planet.gaia:
        if tile.gaiaformer_owner == seat.seat_id:
            own_gaiaformer = True
        else:
            qic += 1
    else:
        steps = terraform_steps(faction.home, tile.planet)

    free = min(seat.pending_terraform_steps, steps)
    ore = MINE_COST.ore + (steps - free) * ore_per_step(seat.research["terraforming"])
    return BuildCost(
        ore=ore,
        credits=MINE_COST.credits,
        qic=qic,
        steps=steps,
        free_steps=free,
        distance=distance,
        reach=reach_value,
        uses_own_gaiaformer=own_gaiaformer,
    )


def has_neighbour_structure(session: Session, seat_id: str, tile: Tile, radius: int = OFFER_RADIUS) -> bool:
    return any(
        t.owner not in (None, seat_id) and t.structure is not None and hex_distance(tile, t) <= radius
        for t in session.tiles
    )


def upgrade_cost(session: Session, seat: Seat, tile: Tile, target: Structure) -> Cost:
    if tile.structure is None or target not in UPGRADES.get(tile.structure, ()):
        current = tile.structure.value if tile.structure else "nothing"
        raise RuleViolation(f"Cannot upgrade {current} to {target.value}")
    cost = UPGRADE_COSTS[target]
    if target == Structure.trading_station and has_neighbour_structure(session, seat.seat_id, tile):
        return Cost(ore=cost.ore, credits=TRADING_STATION_DISCOUNTED_CREDITS)
    return cost


def structure_power(structure: Structure, seat: Seat) -> int:
    if structure in BIG_BUILDINGS and "tech-big-4str" in seat.active_tech_tiles():
        return 4
    return STRUCTURE_POWER[structure]


def federation_threshold(session: Session, seat: Seat) -> int:
    if seat.faction == "xenos" and any(
        t.structure == Structure.planetary_institute for t in session.structures_of(seat.seat_id)
    ):
        return FEDERATION_POWER - 1
    return FEDERATION_POWER


def gaia_project_tokens(gaia_level: int) -> int:
    if gaia_level < 1:
        raise RuleViolation("Gaia project research required")
    return GAIA_PROJECT_TOKEN_COST[min(gaia_level, 5)]
