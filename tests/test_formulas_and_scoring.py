from __future__ import annotations

import pytest

from gaia_engine.core.catalog import Planet
from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.formulas import (
    gaia_project_tokens,
    navigation_range,
    ore_per_step,
    qic_for_distance,
    reach,
    terraform_steps,
)
from gaia_engine.core.models import Seat
from gaia_engine.core.power import burn_power, charge_power, remove_tokens, spend_power, total_tokens
from gaia_engine.core.resources import grant
from gaia_engine.core.scoring import add_score, ledger_totals, rank_payouts


def _seat(**kw) -> Seat:  # type: ignore[no-untyped-def]
    return Seat(seat_id="s", display_name="S", **kw)


def test_terraform_steps_wrap_around_the_wheel() -> None:
    assert terraform_steps(Planet.terra, Planet.terra) == 0
    assert terraform_steps(Planet.terra, Planet.titanium) == 2
    assert terraform_steps(Planet.terra, Planet.oxide) == 1
    assert terraform_steps(Planet.terra, Planet.swamp) == 3
    assert terraform_steps(Planet.terra, Planet.gaia) == 0


def test_terraforming_research_lowers_ore_per_step() -> None:
    assert [ore_per_step(level) for level in range(6)] == [3, 2, 2, 1, 1, 1]


def test_navigation_and_qic_range() -> None:
    assert [navigation_range(level) for level in range(6)] == [1, 1, 2, 2, 3, 4]
    assert qic_for_distance(1, 1) == 0
    assert qic_for_distance(2, 1) == 1
    assert qic_for_distance(3, 1) == 1
    assert qic_for_distance(4, 1) == 2

    gleens = _seat(faction="gleens", temp_range_bonus=3)
    assert reach(gleens) == 6


def test_gaia_project_token_cost() -> None:
    assert gaia_project_tokens(1) == 6
    assert gaia_project_tokens(3) == 4
    assert gaia_project_tokens(5) == 3
    with pytest.raises(RuleViolation):
        gaia_project_tokens(0)


def test_charging_moves_tokens_without_creating_them() -> None:
    seat = _seat(power1=2, power2=3, power3=0)

    assert charge_power(seat, 4) == 4
    assert (seat.power1, seat.power2, seat.power3) == (0, 3, 2)
    # Everything already in bowl 3: the rest is lost.
    assert charge_power(seat, 5) == 3
    assert (seat.power1, seat.power2, seat.power3) == (0, 0, 5)
    assert total_tokens(seat) == 5

    spend_power(seat, 4)
    assert (seat.power1, seat.power2, seat.power3) == (4, 0, 1)
    with pytest.raises(RuleViolation):
        spend_power(seat, 2)


def test_burning_and_removing_tokens_leave_the_ladder() -> None:
    seat = _seat(power1=1, power2=4, power3=0)

    burn_power(seat, 2)
    assert (seat.power1, seat.power2, seat.power3) == (1, 0, 2)

    remove_tokens(seat, 2)
    assert (seat.power1, seat.power2, seat.power3) == (0, 0, 1)
    with pytest.raises(RuleViolation):
        remove_tokens(seat, 2)


def test_grant_clamps_to_resource_caps(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()
    seat = session.seat("s1")
    seat.ore = 14
    seat.credits = 29

    grant(session, seat, {"ore": 3, "credits": 5, "knowledge": 20}, reason="test")

    assert (seat.ore, seat.credits, seat.knowledge) == (15, 30, 15)


def test_gleens_take_ore_instead_of_qic(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()
    seat = session.seat("s1")
    seat.faction = "gleens"

    grant(session, seat, {"qic": 1}, reason="test")

    assert (seat.qic, seat.ore) == (1, 5)


def test_score_changes_only_through_the_ledger(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()
    seat = session.seat("s1")

    add_score(session, seat, 3, category="round_missions", reason="rm1")
    add_score(session, seat, -20, category="power_received", reason="offer-1")

    # Score never drops below zero.
    assert seat.score == 0
    totals = ledger_totals(seat)
    assert totals["round_missions"] == 3
    assert totals["power_received"] == -20
    with pytest.raises(ValueError):
        add_score(session, seat, 1, category="bribes", reason="nope")


def test_rank_payouts_split_ties() -> None:
    assert rank_payouts({"a": 5, "b": 5, "c": 2}) == {"a": 15.0, "b": 15.0, "c": 6.0}
    assert rank_payouts({"a": 3, "b": 3, "c": 3}) == {"a": 12.0, "b": 12.0, "c": 12.0}
    assert rank_payouts({"a": 4, "b": 2, "c": 2}) == {"a": 18.0, "b": 9.0, "c": 9.0}
    # A fourth seat past the paid ranks scores nothing.
    assert rank_payouts({"a": 4, "b": 4, "c": 4, "d": 1}) == {"a": 12.0, "b": 12.0, "c": 12.0, "d": 0.0}
    # Zero never scores.
    assert rank_payouts({"a": 1, "b": 0}) == {"a": 18.0}
    # Shares are floored to one decimal.
    assert rank_payouts({"a": 1, "b": 1, "c": 1}, points=(10, 1, 0)) == {"a": 3.6, "b": 3.6, "c": 3.6}
