"""Research tracks, track level bonuses and tech tiles."""

from __future__ import annotations

from gaia_engine.core.catalog import (
    FEDERATION_REWARDS,
    MAX_TRACK_LEVEL,
    RESEARCH_COST_KNOWLEDGE,
    TECH_TILES,
    Planet,
    TechTile,
)
from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.models import ChooseTechTile, CoverTechTile, Seat, Session
from gaia_engine.core.resources import grant, pay
from gaia_engine.core.scoring import count_for_kind, trigger_event

_AI_QIC = {1: 1, 2: 1, 3: 2, 4: 2, 5: 4}


def apply_level_bonus(session: Session, seat: Seat, track: str, level: int) -> None:
    """One-time reward for reaching `level` on `track`."""

    gains: dict[str, int] = {}
    if level == 3:
        gains["power"] = 3

    if track == "navigation" and level in (1, 3):
        gains["qic"] = 1
    elif track == "ai":
        gains["qic"] = _AI_QIC[level]
    elif track == "terraforming":
        if level in (1, 4):
            gains["ore"] = 2
        elif level == 5 and session.pools.terraforming_reward is not None:
            reward_id = session.pools.terraforming_reward
            session.pools.terraforming_reward = None
            claim_federation_reward(session, seat, reward_id)
    elif track == "gaia_project":
        if level in (1, 3, 4):
            gains["gaiaformers"] = 1
        elif level == 2:
            gains["tokens"] = 3
        elif level == 5:
            gaia_planets = sum(1 for t in session.structures_of(seat.seat_id) if t.planet == Planet.gaia)
            gains["vp"] = 4 + gaia_planets
    elif track == "economy" and level == 5:
        gains.update({"ore": 3, "credits": 6, "power": 6})
    elif track == "science" and level == 5:
        gains["knowledge"] = 9

    if gains:
        grant(session, seat, gains, reason=f"{track}:{level}", category="research_tracks")


def claim_federation_reward(session: Session, seat: Seat, reward_id: str) -> None:
    reward = FEDERATION_REWARDS[reward_id]
    grant(session, seat, {**reward.gain, "vp": reward.vp}, reason=reward_id, category="rewards")
    if reward.green:
        seat.green_federations += 1
    seat.federations.append(reward_id)


def level_five_taken(session: Session, track: str, *, by_other_than: str) -> bool:
    return any(
        s.research[track] >= MAX_TRACK_LEVEL for s in session.seats.values() if s.seat_id != by_other_than
    )


def can_advance(session: Session, seat: Seat, track: str) -> bool:
    level = seat.research[track]
    if level >= MAX_TRACK_LEVEL:
        return False
    if level + 1 == MAX_TRACK_LEVEL:
        if seat.green_federations < 1:
            return False
        if level_five_taken(session, track, by_other_than=seat.seat_id):
            return False
    return True


def advance_track(session: Session, seat: Seat, track: str) -> int:
    level = seat.research[track]
    if level >= MAX_TRACK_LEVEL:
        raise RuleViolation(f"{track} is already at level {MAX_TRACK_LEVEL}")
    new_level = level + 1
    if new_level == MAX_TRACK_LEVEL:
        if seat.green_federations < 1:
            raise RuleViolation("Reaching level 5 needs a green federation")
        if level_five_taken(session, track, by_other_than=seat.seat_id):
            raise RuleViolation(f"Level 5 of {track} is already taken")
        seat.green_federations -= 1

    seat.research[track] = new_level
    apply_level_bonus(session, seat, track, new_level)
    trigger_event(session, seat, "research_track")
    session.append_log(f"{seat.display_name} advances {track} to {new_level}", seat_id=seat.seat_id)
    return new_level


def advance_research(session: Session, seat: Seat, *, track: str) -> None:
    pay(seat, {"knowledge": RESEARCH_COST_KNOWLEDGE}, what="research")
    advance_track(session, seat, track)
    seat.main_action_done = True


# ---- tech tiles ----


def open_tech_tile_choice(session: Session, seat: Seat) -> None:
    session.pending = ChooseTechTile(seat_id=seat.seat_id)


def _apply_tech_immediate(session: Session, seat: Seat, tile: TechTile) -> None:
    reason = tile.id
    if tile.immediate:
        grant(session, seat, tile.immediate, reason=reason, category="tech_tiles")
    if tile.scaled_kind is not None:
        count = count_for_kind(session, seat, tile.scaled_kind)
        if tile.scaled_vp:
            grant(session, seat, {"vp": tile.scaled_vp * count}, reason=reason, category="tech_tiles")
        if tile.scaled_resource is not None:
            grant(session, seat, {tile.scaled_resource: count}, reason=reason, category="tech_tiles")


def _take_tile_and_advance(session: Session, seat: Seat, tile_id: str, track: str) -> None:
    seat.tech_tiles.append(tile_id)
    _apply_tech_immediate(session, seat, TECH_TILES[tile_id])
    session.append_log(f"{seat.display_name} takes tech tile {tile_id}", seat_id=seat.seat_id)
    if can_advance(session, seat, track):
        advance_track(session, seat, track)


def choose_tech_tile(session: Session, seat: Seat, *, tile_id: str, track: str | None) -> None:
    pools = session.pools
    track_of = {tile: trk for trk, tile in pools.tech_tracks.items()}
    advanced_of = {tile: trk for trk, tile in pools.advanced_tracks.items()}

    if tile_id in advanced_of:
        adv_track = advanced_of[tile_id]
        if seat.green_federations < 1:
            raise RuleViolation("Advanced tech tiles need a green federation")
        if seat.research[adv_track] < 4:
            raise RuleViolation(f"Advanced tile on {adv_track} needs level 4 there")
        if not [t for t in seat.active_tech_tiles() if not TECH_TILES[t].advanced]:
            raise RuleViolation("No standard tech tile to cover")
        session.pending = CoverTechTile(seat_id=seat.seat_id, advanced_tile_id=tile_id, track=adv_track)
        return

    if tile_id in seat.tech_tiles:
        raise RuleViolation("Tech tile already owned")
    if tile_id in track_of:
        chosen_track = track_of[tile_id]
    elif tile_id in pools.tech_pool:
        if track is None:
            raise RuleViolation("Choose a research track for this tech tile")
        chosen_track = track
    else:
        raise RuleViolation("Tech tile not available")

    session.pending = None
    _take_tile_and_advance(session, seat, tile_id, chosen_track)


def cover_tech_tile(session: Session, seat: Seat, *, tile_id: str) -> None:
    pending = session.pending
    if not isinstance(pending, CoverTechTile):
        raise RuleViolation("No pending 'cover_tech_tile' to resolve")
    if tile_id not in seat.active_tech_tiles() or TECH_TILES[tile_id].advanced:
        raise RuleViolation("Cover one of your uncovered standard tech tiles")
    if seat.green_federations < 1:
        raise RuleViolation("Advanced tech tiles need a green federation")

    seat.green_federations -= 1
    seat.covered_tech_tiles.append(tile_id)
    session.pools.advanced_tracks.pop(pending.track, None)
    session.pending = None
    _take_tile_and_advance(session, seat, pending.advanced_tile_id, pending.track)
