"""Answers for interactions that block a bot: income order, tech tiles, federation rewards."""

from __future__ import annotations

from gaia_engine.core.catalog import FEDERATION_REWARDS, TECH_TILES
from gaia_engine.core.models import ChooseFederationReward, ChooseTechTile, CoverTechTile, Session
from gaia_engine.rules.research import can_advance
from gaia_engine.turn_processing.commands import (
    AutoOrderIncome,
    Command,
    ConfirmCover,
    FinishIncome,
    PickFederationReward,
    PickTechTile,
)

TECH_TRACK_PREFERENCE: tuple[str, ...] = ("economy", "terraforming", "science", "navigation", "ai", "gaia_project")


def resolve_pending(session: Session, seat_id: str) -> Command | None:
    order = session.income_order
    if order is not None and order.seat_id == seat_id:
        return AutoOrderIncome() if order.items else FinishIncome()

    pending = session.pending
    if pending is None or pending.seat_id != seat_id:
        return None
    if isinstance(pending, ChooseTechTile):
        return pick_tech_tile(session, seat_id)
    if isinstance(pending, CoverTechTile):
        seat = session.seat(seat_id)
        standard = [t for t in seat.active_tech_tiles() if not TECH_TILES[t].advanced]
        return ConfirmCover(tile_id=standard[0])
    if isinstance(pending, ChooseFederationReward):
        best = max(pending.options, key=lambda rid: FEDERATION_REWARDS[rid].vp)
        return PickFederationReward(reward_id=best)
    return None


def pick_tech_tile(session: Session, seat_id: str) -> PickTechTile:
    """Track tiles in preference order, else a pool tile on the first track the seat can still climb."""

    seat = session.seat(seat_id)
    pools = session.pools
    for track in TECH_TRACK_PREFERENCE:
        tile_id = pools.tech_tracks.get(track)
        if tile_id is not None and tile_id not in seat.tech_tiles:
            return PickTechTile(tile_id=tile_id)

    free = [t for t in pools.tech_pool if t not in seat.tech_tiles]
    track = next((t for t in TECH_TRACK_PREFERENCE if can_advance(session, seat, t)), TECH_TRACK_PREFERENCE[0])
    return PickTechTile(tile_id=free[0], track=track)
