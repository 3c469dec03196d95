"""Power bowl ladder.

Tokens move 1 -> 2 -> 3 when charged and 3 -> 1 when spent. They only enter
the ladder through `add_tokens` and only leave it through `remove_tokens`
(gaia projects, satellites) or `burn_power`.
"""

from __future__ import annotations

from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.models import Seat


def total_tokens(seat: Seat) -> int:
    return seat.power1 + seat.power2 + seat.power3


def bowls(seat: Seat) -> tuple[int, int, int]:
    return seat.power1, seat.power2, seat.power3


def set_bowls(seat: Seat, values: tuple[int, int, int]) -> None:
    seat.power1, seat.power2, seat.power3 = values


def charge_power(seat: Seat, amount: int) -> int:
    """Charge `amount` power: bowl 1 -> 2 first, then bowl 2 -> 3.

    Returns how much was actually charged; any excess is lost.
    """

    remaining = amount
    step = min(remaining, seat.power1)
    seat.power1 -= step
    seat.power2 += step
    remaining -= step

    step = min(remaining, seat.power2)
    seat.power2 -= step
    seat.power3 += step
    remaining -= step

    return amount - remaining


def chargeable(seat: Seat) -> int:
    return seat.power1 * 2 + seat.power2


def add_tokens(seat: Seat, amount: int) -> None:
    seat.power1 += amount


def spend_power(seat: Seat, amount: int) -> None:
    if seat.power3 < amount:
        raise RuleViolation(f"Not enough power in bowl 3 (need {amount}, have {seat.power3})")
    seat.power3 -= amount
    seat.power1 += amount


def burn_power(seat: Seat, times: int = 1) -> None:
    if times < 1:
        raise RuleViolation("Burn count must be positive")
    if seat.power2 < 2 * times:
        raise RuleViolation("Not enough power in bowl 2 to burn")
    seat.power2 -= 2 * times
    seat.power3 += times


def remove_tokens(seat: Seat, amount: int) -> None:
    """Take tokens out of the ladder, emptiest bowl first (1, then 2, then 3)."""

    if total_tokens(seat) < amount:
        raise RuleViolation(f"Not enough power tokens (need {amount}, have {total_tokens(seat)})")
    remaining = amount
    for name in ("power1", "power2", "power3"):
        take = min(remaining, getattr(seat, name))
        setattr(seat, name, getattr(seat, name) - take)
        remaining -= take
        if not remaining:
            break


def apply_income_item(seat: Seat, kind: str, amount: int) -> None:
    if kind == "power":
        charge_power(seat, amount)
    elif kind == "tokens":
        add_tokens(seat, amount)
    else:
        raise ValueError(f"Unknown income item kind: {kind}")
