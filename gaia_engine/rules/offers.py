"""Power offers to neighbours after a structure is built or upgraded."""

from __future__ import annotations

import logging

from gaia_engine.core.catalog import OFFER_RADIUS, PROMPT_ON_FREE_OFFER
from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.formulas import structure_power
from gaia_engine.core.hexmap import tiles_within
from gaia_engine.core.models import PowerOffer, Seat, Session, Tile
from gaia_engine.core.power import charge_power, chargeable
from gaia_engine.core.scoring import add_score

logger = logging.getLogger(__name__)


def create_power_offers(session: Session, source: Seat, tile: Tile) -> list[PowerOffer]:
    """Offer power to every other seat with a structure within range of `tile`.

    The offered amount is the receiver's strongest nearby structure, capped at
    its score + 1; accepting costs amount - 1 VP. Bots accept at once, and a
    free single power is taken without asking (except for factions that may
    prefer to decline).
    """

    strongest: dict[str, int] = {}
    for t in tiles_within(tile, session.tiles, OFFER_RADIUS):
        if t.owner is None or t.owner == source.seat_id or t.structure is None:
            continue
        receiver = session.seat(t.owner)
        strongest[t.owner] = max(strongest.get(t.owner, 0), structure_power(t.structure, receiver))

    queued: list[PowerOffer] = []
    ordered = [sid for sid in session.turn_order if sid in strongest]
    for sid in ordered:
        receiver = session.seat(sid)
        max_power = strongest[sid]
        if chargeable(receiver) == 0:
            continue
        amount = min(max_power, int(receiver.score) + 1)
        if amount <= 0:
            continue
        session.offer_seq += 1
        offer = PowerOffer(
            id=f"offer-{session.offer_seq}",
            target_seat_id=sid,
            source_seat_id=source.seat_id,
            tile_id=tile.id,
            amount=amount,
            vp_cost=amount - 1,
        )
        free_single = amount == 1 and max_power == 1 and receiver.faction not in PROMPT_ON_FREE_OFFER
        if receiver.is_bot or free_single:
            accept_offer(session, offer)
            continue
        session.power_offers.append(offer)
        queued.append(offer)
    return queued


def accept_offer(session: Session, offer: PowerOffer) -> None:
    receiver = session.seat(offer.target_seat_id)
    if receiver.score < offer.vp_cost:
        raise RuleViolation("Not enough VP to accept this power offer")
    if offer.vp_cost:
        add_score(session, receiver, -offer.vp_cost, category="power_received", reason=offer.id)
    charged = charge_power(receiver, offer.amount)
    session.append_log(
        f"{receiver.display_name} takes {charged} power for {offer.vp_cost} VP",
        seat_id=receiver.seat_id,
    )
    logger.debug("power offer accepted offer_id=%s charged=%s", offer.id, charged)


def pop_offer(session: Session, *, seat_id: str, offer_id: str) -> PowerOffer:
    for i, offer in enumerate(session.power_offers):
        if offer.id == offer_id:
            if offer.target_seat_id != seat_id:
                raise RuleViolation("This power offer is for another seat")
            return session.power_offers.pop(i)
    raise RuleViolation("Power offer not found")


def respond_offer(session: Session, seat: Seat, *, offer_id: str, accept: bool) -> None:
    offer = pop_offer(session, seat_id=seat.seat_id, offer_id=offer_id)
    if accept:
        accept_offer(session, offer)
    else:
        session.append_log(f"{seat.display_name} declines {offer.amount} power", seat_id=seat.seat_id)


def accept_all_offers(session: Session, seat: Seat) -> None:
    """Accept the biggest offers first; ones the seat can no longer afford are declined."""

    mine = sorted(
        (o for o in session.power_offers if o.target_seat_id == seat.seat_id),
        key=lambda o: -o.amount,
    )
    session.power_offers = [o for o in session.power_offers if o.target_seat_id != seat.seat_id]
    for offer in mine:
        if seat.score < offer.vp_cost:
            session.append_log(f"{seat.display_name} cannot afford offer {offer.id}", seat_id=seat.seat_id)
            continue
        accept_offer(session, offer)
