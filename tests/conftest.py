from __future__ import annotations

import os
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

import pytest


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (PyCharm/CLI).

    This makes REDIS_URL / GAIA_* settings available to tests without needing
    to manually export them in your shell.

    In CI, we *don't* auto-load `.env` by default, so a developer's local
    settings (TTL, bot worker) never leak into the suite.
    """

    # The background worker would race the tests for the bot stream.
    os.environ["GAIA_RUN_BOT_WORKER"] = "0"

    # Opt-in in CI with: GAIA_LOAD_DOTENV_FOR_TESTS=1
    if os.environ.get("CI") and os.environ.get("GAIA_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture()
def client_and_redis():
    """Shared fixture for tests that need both a FastAPI TestClient and fakeredis."""

    from collections.abc import Generator

    import fakeredis
    from fastapi.testclient import TestClient

    from gaia_engine.api.deps import get_redis
    from gaia_engine.main import app

    r = fakeredis.FakeRedis(decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()


@pytest.fixture()
def make_session() -> Callable[..., object]:
    """Build a small two-seat session already in round 1 of the action stage.

    Board (axial q, r):

        home      (0, 0)   terra     s1 mine
        terra     (1, 0)   terra
        titan     (1, -1)  titanium  two terraforming steps from terra
        s2-ts     (2, -1)  ice       s2 trading station
        gaia      (-1, 0)  gaia
        transdim  (0, -1)  transdim
        space-a   (-1, 1)  space
        space-b   (0, 1)   space
        south     (0, 2)   swamp
        far-terra (5, 0)   terra     out of range for s1

    s1 plays terrans, s2 plays nevlas. Research starts at zero for both.
    """

    from gaia_engine.core.catalog import (
        ADVANCED_TECH_IDS,
        FEDERATION_REWARD_COPIES,
        FEDERATION_REWARDS,
        STANDARD_TECH_IDS,
        TRACKS,
        Planet,
        Structure,
    )
    from gaia_engine.core.models import BoardPools, RoundStage, Seat, Session, SessionPhase, Tile
    from gaia_engine.turn_processing.turns import begin_turn

    def _factory(*, s1_bot: bool = False, s2_bot: bool = False, round_number: int = 1):
        tiles = [
            Tile(id="home", q=0, r=0, sector=1, planet=Planet.terra, owner="s1", structure=Structure.mine),
            Tile(id="terra", q=1, r=0, sector=1, planet=Planet.terra),
            Tile(id="titan", q=1, r=-1, sector=1, planet=Planet.titanium),
            Tile(id="s2-ts", q=2, r=-1, sector=1, planet=Planet.ice, owner="s2", structure=Structure.trading_station),
            Tile(id="gaia", q=-1, r=0, sector=1, planet=Planet.gaia),
            Tile(id="transdim", q=0, r=-1, sector=1, planet=Planet.transdim),
            Tile(id="space-a", q=-1, r=1, sector=1, planet=Planet.space),
            Tile(id="space-b", q=0, r=1, sector=1, planet=Planet.space),
            Tile(id="south", q=0, r=2, sector=1, planet=Planet.swamp),
            Tile(id="far-terra", q=5, r=0, sector=2, planet=Planet.terra),
        ]
        seats = {
            "s1": Seat(
                seat_id="s1",
                display_name="Ada",
                is_bot=s1_bot,
                ready=True,
                faction="terrans",
                turn_order_preference=1,
                ore=4,
                knowledge=3,
                credits=15,
                qic=1,
                power1=2,
                power2=4,
                bonus_tile="bon-1o-ts",
            ),
            "s2": Seat(
                seat_id="s2",
                display_name="Bo",
                is_bot=s2_bot,
                ready=True,
                faction="nevlas",
                turn_order_preference=2,
                ore=4,
                knowledge=3,
                credits=15,
                qic=1,
                power1=2,
                power2=4,
                bonus_tile="bon-1o-2tokens",
            ),
        }
        standard = list(STANDARD_TECH_IDS)
        pools = BoardPools(
            bonus_tiles=["bon-1o-1k", "bon-2c-1q", "bon-4pw-bigbuilding", "bon-1o-mine"],
            tech_tracks={t.value: tile for t, tile in zip(TRACKS, standard, strict=False)},
            tech_pool=standard[len(TRACKS) :],
            advanced_tracks={t.value: tile for t, tile in zip(TRACKS, ADVANCED_TECH_IDS, strict=False)},
            federation_pool={rid: FEDERATION_REWARD_COPIES for rid in FEDERATION_REWARDS},
        )
        now = datetime.now(tz=UTC)
        session = Session(
            session_id=uuid4(),
            name="test",
            created_at=now,
            last_updated_at=now,
            seed=1,
            max_seats=2,
            phase=SessionPhase.main,
            round_stage=RoundStage.actions,
            seats=seats,
            seat_order=["s1", "s2"],
            turn_order=["s1", "s2"],
            round_number=round_number,
            tiles=tiles,
            pools=pools,
        )
        begin_turn(state=session)
        return session

    return _factory
