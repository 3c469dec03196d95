from __future__ import annotations

import fakeredis
import pytest

from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.models import SessionPhase
from gaia_engine.fsm import SessionFSM, transition
from gaia_engine.lock import SessionBusy, session_lock
from gaia_engine.streams import BotQueue, wake_bots


def test_fsm_walks_the_setup_phases(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()
    session.phase = SessionPhase.lobby

    for event, phase in (
        ("start", SessionPhase.faction_select),
        ("factions_chosen", SessionPhase.starting_placement),
        ("placement_done", SessionPhase.bonus_select),
        ("bonuses_chosen", SessionPhase.main),
        ("game_finished", SessionPhase.game_end),
    ):
        transition(session, event)
        assert session.phase == phase


def test_fsm_rejects_out_of_order_events(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session()
    session.phase = SessionPhase.lobby

    with pytest.raises(RuleViolation) as e:
        transition(session, "game_finished")

    assert str(e.value) == "Cannot 'game_finished' from phase 'lobby'"
    assert session.phase == SessionPhase.lobby


def test_fsm_starts_from_the_stored_phase(make_session) -> None:  # type: ignore[no-untyped-def]
    fsm = SessionFSM(make_session())

    assert fsm.current_state.value == SessionPhase.main.value


def test_bot_queue_key_is_per_session() -> None:
    assert BotQueue(session_id="abc").key == "botq:abc"


def test_wake_bots_only_when_bots_are_seated(make_session) -> None:  # type: ignore[no-untyped-def]
    r = fakeredis.FakeRedis(decode_responses=True)

    humans = make_session()
    assert wake_bots(r=r, session=humans, reason="start") is None

    with_bot = make_session(s2_bot=True)
    stream_id = wake_bots(r=r, session=with_bot, reason="build_mine")
    assert stream_id is not None

    entries = r.xrange(BotQueue(session_id=str(with_bot.session_id)).key)
    assert len(entries) == 1
    _, fields = entries[0]
    assert fields["type"] == "wakeup"
    assert fields["reason"] == "build_mine"

    with_bot.phase = SessionPhase.game_end
    assert wake_bots(r=r, session=with_bot, reason="pass") is None


def test_session_lock_is_exclusive() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)

    with session_lock(r=r, session_id="abc"):
        with pytest.raises(SessionBusy) as e:
            with session_lock(r=r, session_id="abc"):
                pass
        assert str(e.value) == "Session is busy"

    # Released on exit.
    with session_lock(r=r, session_id="abc"):
        pass


def test_expired_holder_does_not_release_the_next_lock() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)

    with session_lock(r=r, session_id="abc"):
        # Our lock expired and someone else took the session.
        r.set("lock:session:abc", "other")

    assert r.get("lock:session:abc") == "other"
