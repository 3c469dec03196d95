"""Score ledger and all VP formulas.

Score never changes without a ledger entry; the ledger can rebuild the final
score by category.
"""

from __future__ import annotations

import logging
import math
from itertools import groupby

from gaia_engine.core.catalog import (
    BIG_BUILDINGS,
    BONUS_TILES,
    FINAL_MISSION_POINTS,
    LEDGER_CATEGORIES,
    ROUND_MISSIONS,
    TECH_TILES,
    TRACK_END_BONUS,
    TRACKS,
    Planet,
    Structure,
)
from gaia_engine.core.hexmap import hex_distance
from gaia_engine.core.models import LedgerEntry, Seat, Session

logger = logging.getLogger(__name__)


def add_score(session: Session, seat: Seat, amount: float, *, category: str, reason: str) -> None:
    if category not in LEDGER_CATEGORIES:
        raise ValueError(f"Unknown ledger category: {category}")
    seat.ledger.append(LedgerEntry(category=category, amount=amount, reason=reason, round=session.round_number))
    seat.score = max(0.0, round(seat.score + amount, 1))


def ledger_totals(seat: Seat) -> dict[str, float]:
    totals = {c: 0.0 for c in LEDGER_CATEGORIES}
    for e in seat.ledger:
        totals[e.category] = round(totals[e.category] + e.amount, 1)
    return totals


# ---- board counts ----


def count_for_kind(session: Session, seat: Seat, kind: str) -> int:
    owned = session.structures_of(seat.seat_id)
    if kind in {s.value for s in Structure}:
        return sum(1 for t in owned if t.structure == Structure(kind))
    if kind == "big_building":
        return sum(1 for t in owned if t.structure in BIG_BUILDINGS)
    if kind == "gaiaformer":
        return seat.gaiaformers
    if kind == "planet_type":
        return len({t.planet for t in owned})
    if kind == "gaia":
        return sum(1 for t in owned if t.planet == Planet.gaia)
    if kind == "sector":
        return len({t.sector for t in owned})
    if kind == "federation":
        return len(seat.federations)
    raise ValueError(f"Unknown count kind: {kind}")


# ---- in-round triggers ----


def trigger_event(session: Session, seat: Seat, event: str, *, times: int = 1) -> None:
    """Score the current round mission and owned tech tiles for `event`."""

    if times <= 0:
        return
    if session.round_number >= 1 and session.round_number <= len(session.round_missions):
        mission = ROUND_MISSIONS[session.round_missions[session.round_number - 1]]
        if mission.trigger == event:
            add_score(session, seat, mission.vp * times, category="round_missions", reason=f"{mission.id}:{event}")

    for tile_id in seat.active_tech_tiles():
        vp = TECH_TILES[tile_id].on_event_vp.get(event)
        if vp:
            add_score(session, seat, vp * times, category="tech_tiles", reason=f"{tile_id}:{event}")


def score_pass(session: Session, seat: Seat) -> None:
    """Bonus tile pass VP (always recorded, even at 0) plus advanced pass tiles."""

    if seat.bonus_tile is not None:
        tile = BONUS_TILES[seat.bonus_tile]
        if tile.pass_kind is not None:
            count = count_for_kind(session, seat, tile.pass_kind)
            add_score(
                session,
                seat,
                tile.pass_vp * count,
                category="bonus_tile_pass",
                reason=f"{tile.id}:{count}x{tile.pass_kind}",
            )

    for tile_id in seat.active_tech_tiles():
        tech = TECH_TILES[tile_id]
        if tech.pass_kind is None:
            continue
        count = count_for_kind(session, seat, tech.pass_kind)
        add_score(session, seat, tech.pass_vp * count, category="tech_tiles", reason=f"{tile_id}:pass")


# ---- end of game ----


def final_mission_value(session: Session, seat: Seat, mission_id: str) -> int:
    owned = session.structures_of(seat.seat_id)
    if mission_id == "fm_total_structures":
        return len(owned)
    if mission_id == "fm_federation_buildings":
        return sum(1 for t in owned if t.federation_id is not None)
    if mission_id == "fm_sectors":
        return len({t.sector for t in owned})
    if mission_id == "fm_gaia_planets":
        return sum(1 for t in owned if t.planet == Planet.gaia)
    if mission_id == "fm_satellites":
        return sum(1 for t in session.tiles if seat.seat_id in t.satellites)
    if mission_id == "fm_planet_types":
        return len({t.planet for t in owned})
    if mission_id == "fm_pi_academy_distance":
        pis = [t for t in owned if t.structure == Structure.planetary_institute]
        academies = [t for t in owned if t.structure in (Structure.academy_left, Structure.academy_right)]
        return max((hex_distance(p, a) for p in pis for a in academies), default=0)
    raise ValueError(f"Unknown final mission: {mission_id}")


def rank_payouts(values: dict[str, int], points: tuple[int, ...] = FINAL_MISSION_POINTS) -> dict[str, float]:
    """Split rank points; tied seats pool their ranks and share evenly (floored to 0.1).

    Seats with a value of 0 score nothing.
    """

    ranked = sorted(((sid, v) for sid, v in values.items() if v > 0), key=lambda x: -x[1])
    payouts: dict[str, float] = {}
    position = 0
    for _, group in groupby(ranked, key=lambda x: x[1]):
        members = [sid for sid, _ in group]
        pool = sum(points[position + i] for i in range(len(members)) if position + i < len(points))
        share = math.floor(pool / len(members) * 10) / 10
        for sid in members:
            payouts[sid] = share
        position += len(members)
    return payouts


def track_end_bonus(level: int) -> int:
    for min_level, vp in TRACK_END_BONUS:
        if level >= min_level:
            return vp
    return 0


def apply_final_scoring(session: Session) -> bool:
    """Final missions then track completion. Runs at most once per session."""

    if session.final_scoring_done:
        return False

    for mission_id in session.final_missions:
        values = {sid: final_mission_value(session, seat, mission_id) for sid, seat in session.seats.items()}
        for sid, vp in rank_payouts(values).items():
            add_score(session, session.seats[sid], vp, category="final_missions", reason=mission_id)

    for seat in session.seats.values():
        for track in TRACKS:
            vp = track_end_bonus(seat.research[track.value])
            if vp:
                add_score(session, seat, vp, category="research_tracks", reason=f"{track.value}:end")

    session.final_scoring_done = True
    logger.info("final scoring applied session_id=%s", session.session_id)
    return True
