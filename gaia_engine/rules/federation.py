"""Federations: connected groups of structures and satellites."""

from __future__ import annotations

from collections import deque

from gaia_engine.core.catalog import Planet
from gaia_engine.core.errors import ExplicitRuleViolation, RuleViolation
from gaia_engine.core.formulas import federation_threshold, structure_power
from gaia_engine.core.hexmap import neighbours
from gaia_engine.core.models import ChooseFederationReward, Seat, Session, Tile
from gaia_engine.core.power import remove_tokens, total_tokens
from gaia_engine.core.scoring import trigger_event
from gaia_engine.rules.research import claim_federation_reward


def is_connected(tiles: list[Tile]) -> bool:
    if not tiles:
        return False
    seen = {tiles[0].id}
    queue = deque([tiles[0]])
    while queue:
        current = queue.popleft()
        for other in neighbours(current, tiles):
            if other.id not in seen:
                seen.add(other.id)
                queue.append(other)
    return len(seen) == len(tiles)


def _structure_tiles(session: Session, seat: Seat, tile_ids: list[str]) -> list[Tile]:
    if not tile_ids:
        raise RuleViolation("A federation needs at least one structure")
    if len(set(tile_ids)) != len(tile_ids):
        raise RuleViolation("Duplicate tiles in federation")
    tiles = [session.tile(tid) for tid in tile_ids]
    for t in tiles:
        if t.owner != seat.seat_id or t.structure is None:
            raise RuleViolation(f"{t.id} is not one of your structures")
        if t.federation_id is not None:
            raise RuleViolation(f"{t.id} already belongs to a federation")
    return tiles


def _satellite_tiles(session: Session, seat: Seat, tile_ids: list[str]) -> list[Tile]:
    if len(set(tile_ids)) != len(tile_ids):
        raise RuleViolation("Duplicate tiles in federation")
    tiles = [session.tile(tid) for tid in tile_ids]
    for t in tiles:
        if t.planet != Planet.space:
            raise RuleViolation(f"Satellites go on empty space, not {t.id}")
        if seat.seat_id in t.satellites:
            raise RuleViolation(f"You already have a satellite on {t.id}")
    return tiles


def form_federation(
    session: Session,
    seat: Seat,
    *,
    structure_tile_ids: list[str],
    satellite_tile_ids: list[str],
) -> None:
    structures = _structure_tiles(session, seat, structure_tile_ids)
    satellites = _satellite_tiles(session, seat, satellite_tile_ids)
    if not is_connected(structures + satellites):
        raise RuleViolation("Federation tiles must form one connected group")

    power = sum(structure_power(t.structure, seat) for t in structures if t.structure is not None)
    needed = federation_threshold(session, seat)
    if power < needed:
        raise ExplicitRuleViolation(f"Federation needs {needed} structure power (have {power})")
    if total_tokens(seat) < len(satellites):
        raise ExplicitRuleViolation(f"Not enough power tokens for {len(satellites)} satellites")

    remove_tokens(seat, len(satellites))
    session.federation_seq += 1
    federation_id = f"federation-{session.federation_seq}"
    for t in structures:
        t.federation_id = federation_id
    for t in satellites:
        t.satellites.append(seat.seat_id)

    seat.main_action_done = True
    trigger_event(session, seat, "federation")
    session.append_log(
        f"{seat.display_name} forms {federation_id} ({power} power, {len(satellites)} satellites)",
        seat_id=seat.seat_id,
    )

    options = sorted(rid for rid, left in session.pools.federation_pool.items() if left > 0)
    if options:
        session.pending = ChooseFederationReward(seat_id=seat.seat_id, options=options)


def choose_federation_reward(session: Session, seat: Seat, *, reward_id: str) -> None:
    pending = session.pending
    if not isinstance(pending, ChooseFederationReward):
        raise RuleViolation("No pending 'choose_federation_reward' to resolve")
    if reward_id not in pending.options or session.pools.federation_pool.get(reward_id, 0) < 1:
        raise RuleViolation("Federation reward not available")

    session.pools.federation_pool[reward_id] -= 1
    session.pending = None
    claim_federation_reward(session, seat, reward_id)
    session.append_log(f"{seat.display_name} takes {reward_id}", seat_id=seat.seat_id)
