from __future__ import annotations

from gaia_engine.actions import ActionResult, apply_command
from gaia_engine.core.catalog import Structure, Track
from gaia_engine.core.models import ChooseFederationReward
from gaia_engine.turn_processing.commands import (
    AdvanceResearch,
    FormFederation,
    PickFederationReward,
    PlaceGaiaformer,
)


def _ok(session, seat_id: str, command) -> ActionResult:  # type: ignore[no-untyped-def]
    res = apply_command(session=session, seat_id=seat_id, command=command)
    assert res.applied, res.reason
    return res


def test_research_costs_four_knowledge(make_session) -> None:  # type: ignore[no-untyped-def]
    s = make_session()

    res = apply_command(session=s, seat_id="s1", command=AdvanceResearch(track=Track.economy))
    assert res.applied is False
    assert "Not enough knowledge" in (res.reason or "")

    s.seat("s1").knowledge = 4
    s = _ok(s, "s1", AdvanceResearch(track=Track.economy)).session
    seat = s.seat("s1")
    assert seat.research["economy"] == 1
    assert seat.knowledge == 0
    assert seat.main_action_done is True


def test_reaching_level_three_charges_three_power(make_session) -> None:  # type: ignore[no-untyped-def]
    s = make_session()
    seat = s.seat("s1")
    seat.knowledge = 4
    seat.research["terraforming"] = 2

    s = _ok(s, "s1", AdvanceResearch(track=Track.terraforming)).session

    seat = s.seat("s1")
    assert seat.research["terraforming"] == 3
    assert (seat.power1, seat.power2, seat.power3) == (0, 5, 1)


def test_level_five_needs_a_green_federation_and_is_exclusive(make_session) -> None:  # type: ignore[no-untyped-def]
    s = make_session()
    seat = s.seat("s1")
    seat.knowledge = 4
    seat.research["economy"] = 4

    res = apply_command(session=s, seat_id="s1", command=AdvanceResearch(track=Track.economy))
    assert res.applied is False
    assert res.reason == "Reaching level 5 needs a green federation"

    seat.green_federations = 1
    s = _ok(s, "s1", AdvanceResearch(track=Track.economy)).session
    seat = s.seat("s1")
    assert seat.research["economy"] == 5
    assert seat.green_federations == 0
    # Economy 5 pays 3 ore and 6 credits once.
    assert (seat.ore, seat.credits) == (7, 21)

    other = s.seat("s2")
    other.knowledge = 4
    other.research["economy"] = 4
    other.green_federations = 1
    s.current_seat_index = 1
    s.seat("s2").main_action_done = False
    res = apply_command(session=s, seat_id="s2", command=AdvanceResearch(track=Track.economy))
    assert res.applied is False
    assert res.reason == "Level 5 of economy is already taken"


def _federation_board(session):  # type: ignore[no-untyped-def]
    session.tile("home").structure = Structure.planetary_institute
    terra = session.tile("terra")
    terra.owner, terra.structure = "s1", Structure.trading_station
    south = session.tile("south")
    south.owner, south.structure = "s1", Structure.trading_station
    return session


def test_federation_with_a_satellite_offers_a_reward(make_session) -> None:  # type: ignore[no-untyped-def]
    s = _federation_board(make_session())

    s = _ok(
        s,
        "s1",
        FormFederation(structure_tile_ids=["home", "terra", "south"], satellite_tile_ids=["space-b"]),
    ).session

    seat = s.seat("s1")
    assert seat.power1 == 1
    assert s.tile("space-b").satellites == ["s1"]
    assert {s.tile(t).federation_id for t in ("home", "terra", "south")} == {"federation-1"}
    assert isinstance(s.pending, ChooseFederationReward)
    assert "fed-12vp" in s.pending.options

    before = s.pools.federation_pool["fed-7vp-2o"]
    s = _ok(s, "s1", PickFederationReward(reward_id="fed-7vp-2o")).session
    seat = s.seat("s1")
    assert seat.score == 17
    assert seat.ore == 6
    assert seat.green_federations == 1
    assert seat.federations == ["fed-7vp-2o"]
    assert s.pools.federation_pool["fed-7vp-2o"] == before - 1
    assert s.pending is None


def test_federation_below_the_power_threshold_is_an_explicit_rejection(make_session) -> None:  # type: ignore[no-untyped-def]
    s = make_session()
    terra = s.tile("terra")
    terra.owner, terra.structure = "s1", Structure.mine

    res = apply_command(session=s, seat_id="s1", command=FormFederation(structure_tile_ids=["home", "terra"]))

    assert res.applied is False
    assert res.explicit is True
    assert res.reason == "Federation needs 7 structure power (have 2)"


def test_federation_tiles_must_be_connected(make_session) -> None:  # type: ignore[no-untyped-def]
    s = _federation_board(make_session())

    res = apply_command(
        session=s,
        seat_id="s1",
        command=FormFederation(structure_tile_ids=["home", "terra", "south"]),
    )

    assert res.applied is False
    assert res.reason == "Federation tiles must form one connected group"


def test_gaia_project_parks_tokens_until_income(make_session) -> None:  # type: ignore[no-untyped-def]
    s = make_session()
    seat = s.seat("s1")
    seat.research["gaia_project"] = 1
    seat.gaiaformers = 1

    s = _ok(s, "s1", PlaceGaiaformer(tile_id="transdim")).session

    seat = s.seat("s1")
    tile = s.tile("transdim")
    assert tile.gaiaformer_owner == "s1"
    assert tile.gaiaformer_round == 1
    assert seat.gaiaformers == 0
    assert seat.gaiaformer_power == 6
    assert (seat.power1, seat.power2, seat.power3) == (0, 0, 0)


def test_gaia_project_without_enough_tokens_is_explicit(make_session) -> None:  # type: ignore[no-untyped-def]
    s = make_session()
    seat = s.seat("s1")
    seat.research["gaia_project"] = 1
    seat.gaiaformers = 1
    seat.power2 = 1

    res = apply_command(session=s, seat_id="s1", command=PlaceGaiaformer(tile_id="transdim"))

    assert res.applied is False
    assert res.explicit is True
