"""Per-round income calculation.

Plain resources are applied right away. Power charges and new tokens do not
commute on the bowl ladder, so they come back as `IncomeItem`s for the seat
(or `best_order`) to sequence.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from itertools import permutations

from gaia_engine.core.catalog import (
    BONUS_TILES,
    ECONOMY_INCOME,
    MAX_TRACK_LEVEL,
    MINE_INCOME_SLOTS,
    TECH_TILES,
    TRADING_STATION_CREDIT_SLOTS,
    Structure,
)
from gaia_engine.core.formulas import faction_of
from gaia_engine.core.models import IncomeItem, Seat, Session
from gaia_engine.core.power import apply_income_item, bowls, set_bowls

# Above this many items we stop searching permutations and keep the given order.
MAX_PERMUTED_ITEMS = 8


def seat_income(session: Session, seat: Seat) -> tuple[dict[str, int], list[IncomeItem]]:
    faction = faction_of(seat)
    resources: Counter[str] = Counter()
    items: list[IncomeItem] = []

    def add(source: str, bundle: Mapping[str, int]) -> None:
        for key, amount in bundle.items():
            if not amount:
                continue
            if key in ("power", "tokens"):
                items.append(IncomeItem(kind=key, amount=amount, source=source))  # type: ignore[arg-type]
            else:
                resources[key] += amount

    add("faction", faction.income)

    owned = session.structures_of(seat.seat_id)
    kinds = Counter(t.structure for t in owned)

    mines = kinds[Structure.mine]
    if mines:
        add("mines", {"ore": sum(MINE_INCOME_SLOTS[:mines])})
    stations = kinds[Structure.trading_station]
    if stations:
        add("trading_stations", {"credits": sum(TRADING_STATION_CREDIT_SLOTS[:stations])})
    labs = kinds[Structure.research_lab]
    if labs:
        first = 2 if seat.faction == "firaks" else 1
        add("research_labs", {"knowledge": first + (labs - 1)})
    if kinds[Structure.academy_left]:
        add("academy", {"knowledge": 3 if seat.faction == "itars" else 2})
    if kinds[Structure.planetary_institute]:
        add("planetary_institute", faction.pi_income)

    economy = seat.research["economy"]
    if economy < MAX_TRACK_LEVEL:
        add("economy", ECONOMY_INCOME[economy])
    science = seat.research["science"]
    if 0 < science < MAX_TRACK_LEVEL:
        add("science", {"knowledge": science})

    for tile_id in seat.active_tech_tiles():
        income = TECH_TILES[tile_id].income
        if income:
            add(tile_id, income)

    if seat.bonus_tile is not None:
        add(seat.bonus_tile, BONUS_TILES[seat.bonus_tile].income)

    return dict(resources), items


def simulate(start: tuple[int, int, int], items: Sequence[IncomeItem]) -> tuple[int, int, int]:
    probe = Seat(seat_id="probe", display_name="probe")
    set_bowls(probe, start)
    for item in items:
        apply_income_item(probe, item.kind, item.amount)
    return bowls(probe)


def best_order(seat: Seat, items: Sequence[IncomeItem]) -> list[IncomeItem]:
    """Order that leaves the most power in bowl 3, then bowl 2, then bowl 1."""

    if len(items) <= 1 or len(items) > MAX_PERMUTED_ITEMS:
        return list(items)

    start = bowls(seat)
    best: list[IncomeItem] = list(items)
    best_key = _order_key(simulate(start, best))
    for perm in permutations(items):
        key = _order_key(simulate(start, perm))
        if key > best_key:
            best, best_key = list(perm), key
    return best


def _order_key(result: tuple[int, int, int]) -> tuple[int, int, int]:
    p1, p2, p3 = result
    return p3, p2, p1
