from __future__ import annotations

from gaia_engine.actions import ActionResult, apply_command
from gaia_engine.core.catalog import Planet
from gaia_engine.core.models import RoundStage, SessionPhase
from gaia_engine.core.power import total_tokens
from gaia_engine.rules.round_flow import begin_round_income
from gaia_engine.turn_processing.commands import (
    AutoOrderIncome,
    BuildMine,
    EndTurn,
    FinishIncome,
    PassRound,
    RespondOffer,
    SelectIncomeItem,
    UndoIncomeItem,
)


def _ok(session, seat_id: str, command) -> ActionResult:  # type: ignore[no-untyped-def]
    res = apply_command(session=session, seat_id=seat_id, command=command)
    assert res.applied, res.reason
    return res


def test_pass_records_bonus_tile_vp_even_when_zero(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()

    s = _ok(session, "s1", PassRound(bonus_tile="bon-1o-1k")).session

    seat = s.seat("s1")
    entry = seat.ledger[-1]
    assert entry.category == "bonus_tile_pass"
    assert entry.amount == 0
    assert seat.score == 10
    assert seat.passed is True
    assert seat.bonus_tile == "bon-1o-1k"
    # The old tile goes back to the pool.
    assert "bon-1o-ts" in s.pools.bonus_tiles
    assert "bon-1o-1k" not in s.pools.bonus_tiles
    assert s.current_seat_id == "s2"


def test_pass_needs_a_bonus_tile_before_the_last_round(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()

    res = apply_command(session=session, seat_id="s1", command=PassRound())

    assert res.applied is False
    assert res.reason == "Choose a bonus tile for the next round"


def test_round_ends_when_everyone_passed_and_passing_order_becomes_turn_order(make_session) -> None:  # type: ignore[no-untyped-def]
    s = make_session()

    s = _ok(s, "s1", BuildMine(tile_id="terra")).session
    s = _ok(s, "s1", EndTurn()).session
    s = _ok(s, "s2", RespondOffer(offer_id=s.power_offers[0].id, accept=False)).session
    s = _ok(s, "s2", PassRound(bonus_tile="bon-2c-1q")).session
    assert s.current_seat_id == "s1"
    s = _ok(s, "s1", PassRound(bonus_tile="bon-1o-1k")).session

    assert s.round_number == 2
    assert s.turn_order == ["s2", "s1"]
    assert s.passing_order == []
    assert s.round_stage == RoundStage.actions
    assert s.current_seat_id == "s2"
    assert s.pools.power_actions_used == []
    assert not any(seat.passed for seat in s.seats.values())

    # Income: faction ore 1 + two mines + bonus ore 1; faction knowledge 1 + bonus knowledge 1.
    s1 = s.seat("s1")
    assert (s1.ore, s1.knowledge) == (7, 5)
    # Faction ore 1, trading station credits 3, bonus tile credits 2 and qic 1.
    s2 = s.seat("s2")
    assert (s2.ore, s2.credits, s2.qic) == (5, 20, 2)


def test_several_power_items_wait_for_an_income_order(make_session) -> None:  # type: ignore[no-untyped-def]
    s = make_session()
    s1 = s.seat("s1")
    s1.bonus_tile = "bon-1o-2tokens"
    s1.research["economy"] = 1
    s1.power1, s1.power2, s1.power3 = 0, 4, 0
    s.seat("s2").bonus_tile = "bon-1o-1k"

    begin_round_income(s)

    assert s.round_stage == RoundStage.income
    assert s.income_order is not None
    assert s.income_order.seat_id == "s1"
    assert [(i.kind, i.amount) for i in s.income_order.items] == [("power", 1), ("tokens", 2)]

    res = apply_command(session=s, seat_id="s2", command=SelectIncomeItem(index=0))
    assert res.applied is False
    assert res.reason == "Income order belongs to seat_id=s1"

    res = apply_command(session=s, seat_id="s1", command=FinishIncome())
    assert res.applied is False
    assert res.reason == "Apply every income item before finishing"

    s = _ok(s, "s1", SelectIncomeItem(index=1)).session
    assert (s.seat("s1").power1, s.seat("s1").power2) == (2, 4)
    s = _ok(s, "s1", UndoIncomeItem()).session
    assert (s.seat("s1").power1, s.seat("s1").power2) == (0, 4)

    s = _ok(s, "s1", AutoOrderIncome()).session
    seat = s.seat("s1")
    # Charging before the new tokens arrive reaches bowl 3.
    assert (seat.power1, seat.power2, seat.power3) == (2, 3, 1)
    assert total_tokens(seat) == 6

    s = _ok(s, "s1", FinishIncome()).session
    assert s.income_order is None
    assert s.round_stage == RoundStage.actions
    assert s.current_seat_id == "s1"


def test_single_power_item_is_applied_without_asking(make_session) -> None:  # type: ignore[no-untyped-def]
    s = make_session()
    s.seat("s1").bonus_tile = "bon-4pw-bigbuilding"
    s.seat("s2").bonus_tile = "bon-1o-1k"

    begin_round_income(s)

    assert s.income_order is None
    assert s.round_stage == RoundStage.actions
    seat = s.seat("s1")
    assert (seat.power1, seat.power2, seat.power3) == (0, 4, 2)


def test_gaiaformer_matures_at_round_end_and_tokens_return(make_session) -> None:  # type: ignore[no-untyped-def]
    s = make_session()
    s.tile("transdim").gaiaformer_owner = "s1"
    s.tile("transdim").gaiaformer_round = 1
    s.seat("s1").gaiaformer_power = 6
    s.seat("s1").power1 = 0
    s.seat("s1").power2 = 0

    s = _ok(s, "s1", PassRound(bonus_tile="bon-1o-1k")).session
    s = _ok(s, "s2", PassRound(bonus_tile="bon-2c-1q")).session

    assert s.tile("transdim").planet == Planet.gaia
    seat = s.seat("s1")
    # Terrans take gaia area tokens back into bowl 2.
    assert seat.gaiaformer_power == 0
    assert seat.power2 == 6


def test_last_round_ends_the_game_with_final_scoring(make_session) -> None:  # type: ignore[no-untyped-def]
    s = make_session(round_number=6)
    s.final_missions = ["fm_total_structures", "fm_sectors"]

    s = _ok(s, "s1", PassRound()).session
    s = _ok(s, "s2", PassRound()).session

    assert s.phase == SessionPhase.game_end
    assert s.final_scoring_done is True
    for seat in s.seats.values():
        finals = [e for e in seat.ledger if e.category == "final_missions"]
        # One structure and one sector each: tied for first, sharing 18 + 12.
        assert [e.amount for e in finals] == [15.0, 15.0]
        assert seat.score == 40

    res = apply_command(session=s, seat_id="s1", command=EndTurn())
    assert res.applied is False
    assert "not allowed in phase 'game_end'" in (res.reason or "")
