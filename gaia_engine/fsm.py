from __future__ import annotations

from statemachine import State, StateMachine

from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.models import Session, SessionPhase


class SessionFSM(StateMachine):
    """FSM wrapper around Session.phase.

    - phases: lobby -> faction_select -> starting_placement -> bonus_select -> main -> game_end
    - rule handlers mutate the session; the FSM only guards phase transitions.
    """

    lobby = State(SessionPhase.lobby.value, value=SessionPhase.lobby.value, initial=True)
    faction_select = State(SessionPhase.faction_select.value, value=SessionPhase.faction_select.value)
    starting_placement = State(
        SessionPhase.starting_placement.value,
        value=SessionPhase.starting_placement.value,
    )
    bonus_select = State(SessionPhase.bonus_select.value, value=SessionPhase.bonus_select.value)
    main = State(SessionPhase.main.value, value=SessionPhase.main.value)
    game_end = State(SessionPhase.game_end.value, value=SessionPhase.game_end.value, final=True)

    start = lobby.to(faction_select)
    factions_chosen = faction_select.to(starting_placement)
    placement_done = starting_placement.to(bonus_select)
    bonuses_chosen = bonus_select.to(main)
    game_finished = main.to(game_end)

    def __init__(self, session: Session):
        self.session = session
        super().__init__(start_value=session.phase.value)

    def sync_phase_to_model(self) -> None:
        self.session.phase = SessionPhase(str(self.current_state.value))


def transition(session: Session, event: str) -> None:
    """Fire `event` against the session's current phase and write the new phase back."""

    fsm = SessionFSM(session)
    try:
        fsm.send(event)
    except Exception as e:
        raise RuleViolation(f"Cannot '{event}' from phase '{session.phase.value}'") from e
    fsm.sync_phase_to_model()
