from __future__ import annotations

from gaia_engine.actions import ActionResult, apply_command
from gaia_engine.core.catalog import Structure
from gaia_engine.core.models import ChooseTechTile
from gaia_engine.turn_processing.commands import (
    BuildMine,
    EndTurn,
    PickTechTile,
    ResetTurn,
    Upgrade,
    UsePowerAction,
)


def _ok(session, seat_id: str, command) -> ActionResult:  # type: ignore[no-untyped-def]
    res = apply_command(session=session, seat_id=seat_id, command=command)
    assert res.applied, res.reason
    return res


def test_mine_on_home_planet_costs_one_ore_two_credits(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()

    s = _ok(session, "s1", BuildMine(tile_id="terra")).session

    seat = s.seat("s1")
    assert (seat.ore, seat.credits, seat.qic) == (3, 13, 1)
    assert seat.main_action_done is True
    tile = s.tile("terra")
    assert tile.owner == "s1"
    assert tile.structure == Structure.mine


def test_mine_two_terraform_steps_away_costs_seven_ore(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()
    session.seat("s1").ore = 7

    s = _ok(session, "s1", BuildMine(tile_id="titan")).session

    seat = s.seat("s1")
    assert (seat.ore, seat.credits) == (0, 13)


def test_power_action_steps_are_spent_by_the_next_mine(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()
    seat = session.seat("s1")
    seat.power1, seat.power2, seat.power3 = 0, 1, 5

    s = _ok(session, "s1", UsePowerAction(action_id="gain-2-steps")).session
    assert s.seat("s1").pending_terraform_steps == 2
    assert s.seat("s1").main_action_done is False
    assert "gain-2-steps" in s.pools.power_actions_used

    s = _ok(s, "s1", BuildMine(tile_id="titan")).session
    seat = s.seat("s1")
    assert (seat.ore, seat.credits) == (3, 13)
    assert seat.pending_terraform_steps == 0
    # Spent power goes back to bowl 1.
    assert (seat.power1, seat.power2, seat.power3) == (5, 1, 0)


def test_rejected_command_leaves_session_untouched(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()
    before = session.model_dump()

    res = apply_command(session=session, seat_id="s1", command=BuildMine(tile_id="home"))

    assert res.applied is False
    assert res.reason == "Tile is already occupied"
    assert res.explicit is False
    assert res.session is session
    assert session.model_dump() == before


def test_qic_shortfall_is_an_explicit_rejection(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()

    res = apply_command(session=session, seat_id="s1", command=BuildMine(tile_id="far-terra"))

    assert res.applied is False
    assert res.explicit is True
    assert "QIC" in (res.reason or "")


def test_only_the_turn_holder_may_build(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()

    res = apply_command(session=session, seat_id="s2", command=BuildMine(tile_id="terra"))

    assert res.applied is False
    assert "Not your turn" in (res.reason or "")


def test_end_turn_requires_a_main_action(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()

    res = apply_command(session=session, seat_id="s1", command=EndTurn())
    assert res.applied is False
    assert res.reason == "Take a main action before ending the turn"

    s = _ok(session, "s1", BuildMine(tile_id="terra")).session
    s = _ok(s, "s1", EndTurn()).session
    assert s.current_seat_id == "s2"
    assert s.seat("s2").main_action_done is False


def test_second_main_action_in_one_turn_is_rejected(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()
    session.seat("s1").ore = 10

    s = _ok(session, "s1", BuildMine(tile_id="terra")).session
    res = apply_command(session=s, seat_id="s1", command=BuildMine(tile_id="titan"))

    assert res.applied is False
    assert res.reason == "Main action already taken this turn"


def test_reset_turn_restores_the_turn_start(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()
    log_seq = session.log_seq

    s = _ok(session, "s1", BuildMine(tile_id="terra")).session
    assert s.power_offers

    s = _ok(s, "s1", ResetTurn()).session

    snap = session.turn_snapshots["s1"]
    assert {sid: seat.model_dump_json() for sid, seat in s.seats.items()} == {
        sid: seat.model_dump_json() for sid, seat in snap.seats.items()
    }
    assert [t.model_dump_json() for t in s.tiles] == [t.model_dump_json() for t in snap.tiles]
    assert s.pools.model_dump_json() == snap.pools.model_dump_json()

    seat = s.seat("s1")
    assert (seat.ore, seat.credits) == (4, 15)
    assert seat.main_action_done is False
    assert s.tile("terra").owner is None
    assert s.power_offers == []
    # The log keeps only the reset notice after the snapshot point.
    assert [e.seq for e in s.log if e.seq <= log_seq] == [e.seq for e in session.log]
    assert s.log[-1].message == "Ada resets the turn"


def test_first_structure_counts_as_a_new_sector(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()
    session.round_missions = ["rm7"]

    same_sector = _ok(session, "s1", BuildMine(tile_id="terra")).session
    assert not [e for e in same_sector.seat("s1").ledger if e.reason == "rm7:new_sector"]

    session.tile("home").owner = None
    session.tile("home").structure = None
    s = _ok(session, "s1", BuildMine(tile_id="terra")).session

    entries = [e for e in s.seat("s1").ledger if e.reason == "rm7:new_sector"]
    assert [(e.category, e.amount) for e in entries] == [("round_missions", 3)]


def test_trading_station_next_to_a_rival_is_discounted(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()

    s = _ok(session, "s1", Upgrade(tile_id="home", to=Structure.trading_station)).session

    seat = s.seat("s1")
    assert (seat.ore, seat.credits) == (2, 12)
    assert s.tile("home").structure == Structure.trading_station


def test_research_lab_opens_tech_tile_choice_that_blocks_end_turn(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()
    session.tile("home").structure = Structure.trading_station

    s = _ok(session, "s1", Upgrade(tile_id="home", to=Structure.research_lab)).session
    assert isinstance(s.pending, ChooseTechTile)

    res = apply_command(session=s, seat_id="s1", command=EndTurn())
    assert res.applied is False
    assert "Resolve pending" in (res.reason or "")

    s = _ok(s, "s1", PickTechTile(tile_id=s.pools.tech_tracks["gaia_project"])).session
    seat = s.seat("s1")
    assert s.pending is None
    assert "tech-imm-7vp" in seat.tech_tiles
    assert seat.score == 17
    assert seat.research["gaia_project"] == 1
    assert seat.gaiaformers == 1

    _ok(s, "s1", EndTurn())


def test_mine_limit_and_upgrade_ladder_are_enforced(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()

    res = apply_command(
        session=session,
        seat_id="s1",
        command=Upgrade(tile_id="home", to=Structure.research_lab),
    )

    assert res.applied is False
    assert res.reason == "Cannot upgrade mine to research_lab"
