from __future__ import annotations

from collections.abc import Mapping

from gaia_engine.core.catalog import RESOURCE_CAPS
from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.formulas import has_right_academy
from gaia_engine.core.models import Seat, Session
from gaia_engine.core.power import add_tokens, charge_power, spend_power
from gaia_engine.core.scoring import add_score

_PLAIN = ("ore", "knowledge", "credits", "qic")


def clamp_resources(seat: Seat) -> None:
    for name, cap in RESOURCE_CAPS.items():
        setattr(seat, name, max(0, min(cap, getattr(seat, name))))
    seat.qic = max(0, seat.qic)


def grant(
    session: Session,
    seat: Seat,
    gains: Mapping[str, int],
    *,
    reason: str,
    category: str = "other",
) -> None:
    """Apply a bundle of gains and clamp. Overflow beyond a cap is discarded."""

    for key, amount in gains.items():
        if not amount:
            continue
        if key == "qic":
            # Gleens take ore for QIC until they own the right academy.
            if seat.faction == "gleens" and not has_right_academy(session, seat.seat_id):
                seat.ore += amount
            else:
                seat.qic += amount
        elif key in _PLAIN:
            setattr(seat, key, getattr(seat, key) + amount)
        elif key == "power":
            charge_power(seat, amount)
        elif key == "tokens":
            add_tokens(seat, amount)
        elif key == "steps":
            seat.pending_terraform_steps += amount
        elif key == "gaiaformers":
            seat.gaiaformers += amount
            seat.gaiaformers_total += amount
        elif key == "vp":
            add_score(session, seat, amount, category=category, reason=reason)
        else:
            raise ValueError(f"Unknown gain: {key}")
    clamp_resources(seat)


def can_pay(seat: Seat, costs: Mapping[str, int]) -> bool:
    for key, amount in costs.items():
        have = seat.power3 if key == "power" else getattr(seat, key)
        if have < amount:
            return False
    return True


def pay(seat: Seat, costs: Mapping[str, int], *, what: str) -> None:
    for key, amount in costs.items():
        have = seat.power3 if key == "power" else getattr(seat, key)
        if have < amount:
            raise RuleViolation(f"Not enough {key} for {what} (need {amount}, have {have})")
    for key, amount in costs.items():
        if key == "power":
            spend_power(seat, amount)
        else:
            setattr(seat, key, getattr(seat, key) - amount)
