from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from gaia_engine.core.errors import ExplicitRuleViolation, NotYourSeat, RuleViolation
from gaia_engine.core.models import RoundStage, Session, SessionPhase

__all__ = [
    "ExplicitRuleViolation",
    "NotYourSeat",
    "RuleViolation",
    "ValidationContext",
    "ValidatorPipeline",
    "pipeline_for_action",
]


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    session_id: str
    seat_id: str
    action: str


class TurnValidator(ABC):
    """A small, composable validation unit for an incoming command."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, state: Session) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class SeatExistsValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, state: Session) -> None:
        if ctx.seat_id not in state.seats:
            raise RuleViolation("Seat not found")


@dataclass(frozen=True, slots=True)
class PhaseValidator(TurnValidator):
    """Validates current session phase for a given action."""

    allowed_phases: frozenset[SessionPhase]

    def validate(self, *, ctx: ValidationContext, state: Session) -> None:
        if state.phase not in self.allowed_phases:
            allowed = ",".join(sorted(p.value for p in self.allowed_phases))
            raise RuleViolation(f"Action '{ctx.action}' not allowed in phase '{state.phase.value}' (allowed: {allowed})")


@dataclass(frozen=True, slots=True)
class StageValidator(TurnValidator):
    """Inside `main`, separate the income stage from the action stage."""

    stage: RoundStage

    def validate(self, *, ctx: ValidationContext, state: Session) -> None:
        if state.phase == SessionPhase.main and state.round_stage != self.stage:
            raise RuleViolation(f"Action '{ctx.action}' not allowed during the {state.round_stage.value} stage")


@dataclass(frozen=True, slots=True)
class TurnHolderValidator(TurnValidator):
    """Only the current turn holder may act."""

    def validate(self, *, ctx: ValidationContext, state: Session) -> None:
        expected = state.current_seat_id
        if ctx.seat_id != expected:
            raise RuleViolation(f"Not your turn (expected seat_id={expected})")


@dataclass(frozen=True, slots=True)
class NotPassedValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, state: Session) -> None:
        if state.seat(ctx.seat_id).passed:
            raise RuleViolation("Seat has already passed this round")


@dataclass(frozen=True, slots=True)
class MainActionAvailableValidator(TurnValidator):
    """Reject when the seat already used its main action this turn."""

    def validate(self, *, ctx: ValidationContext, state: Session) -> None:
        if state.seat(ctx.seat_id).main_action_done:
            raise RuleViolation("Main action already taken this turn")


@dataclass(frozen=True, slots=True)
class NoBlockingInteractionValidator(TurnValidator):
    """A pending interaction or unanswered offer targeting the seat blocks it."""

    def validate(self, *, ctx: ValidationContext, state: Session) -> None:
        if state.pending is not None and state.pending.seat_id == ctx.seat_id:
            raise RuleViolation(f"Resolve pending '{state.pending.kind}' first")
        if any(o.target_seat_id == ctx.seat_id for o in state.power_offers):
            raise RuleViolation("Respond to pending power offers first")


@dataclass(frozen=True, slots=True)
class PendingKindValidator(TurnValidator):
    """Only the seat named by the open interaction of this kind may resolve it."""

    kind: str

    def validate(self, *, ctx: ValidationContext, state: Session) -> None:
        pending = state.pending
        if pending is None or pending.kind != self.kind:
            raise RuleViolation(f"No pending '{self.kind}' to resolve")
        if pending.seat_id != ctx.seat_id:
            raise RuleViolation(f"Pending '{self.kind}' belongs to seat_id={pending.seat_id}")


@dataclass(frozen=True, slots=True)
class IncomeOrderValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, state: Session) -> None:
        order = state.income_order
        if order is None:
            raise RuleViolation("No income order to resolve")
        if order.seat_id != ctx.seat_id:
            raise RuleViolation(f"Income order belongs to seat_id={order.seat_id}")


@dataclass(frozen=True, slots=True)
class HasOfferValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, state: Session) -> None:
        if not any(o.target_seat_id == ctx.seat_id for o in state.power_offers):
            raise RuleViolation("No power offers for this seat")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[TurnValidator, ...]

    def validate(self, *, ctx: ValidationContext, state: Session) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, state=state)


_MAIN = frozenset({SessionPhase.main})

# Own-turn commands in the action stage.
_TURN = (
    SeatExistsValidator(),
    PhaseValidator(allowed_phases=_MAIN),
    StageValidator(stage=RoundStage.actions),
    TurnHolderValidator(),
    NotPassedValidator(),
)
_MAIN_ACTION = _TURN + (NoBlockingInteractionValidator(), MainActionAvailableValidator())
_FREE_ACTION = _TURN + (NoBlockingInteractionValidator(),)
_INCOME = (
    SeatExistsValidator(),
    PhaseValidator(allowed_phases=_MAIN),
    StageValidator(stage=RoundStage.income),
    IncomeOrderValidator(),
)


def _pending(kind: str) -> ValidatorPipeline:
    return ValidatorPipeline(
        validators=(SeatExistsValidator(), PhaseValidator(allowed_phases=_MAIN), PendingKindValidator(kind=kind))
    )


DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "choose_faction": ValidatorPipeline(
        validators=(SeatExistsValidator(), PhaseValidator(allowed_phases=frozenset({SessionPhase.faction_select})))
    ),
    "place_starting_structure": ValidatorPipeline(
        validators=(
            SeatExistsValidator(),
            PhaseValidator(allowed_phases=frozenset({SessionPhase.starting_placement})),
            TurnHolderValidator(),
        )
    ),
    "select_bonus_tile": ValidatorPipeline(
        validators=(
            SeatExistsValidator(),
            PhaseValidator(allowed_phases=frozenset({SessionPhase.bonus_select})),
            TurnHolderValidator(),
        )
    ),
    "select_income_item": ValidatorPipeline(validators=_INCOME),
    "auto_order_income": ValidatorPipeline(validators=_INCOME),
    "undo_income_item": ValidatorPipeline(validators=_INCOME),
    "finish_income": ValidatorPipeline(validators=_INCOME),
    "build_mine": ValidatorPipeline(validators=_MAIN_ACTION),
    "upgrade": ValidatorPipeline(validators=_MAIN_ACTION),
    "advance_research": ValidatorPipeline(validators=_MAIN_ACTION),
    "place_gaiaformer": ValidatorPipeline(validators=_MAIN_ACTION),
    "form_federation": ValidatorPipeline(validators=_MAIN_ACTION),
    # Power and special actions preface a main action; handlers decide whether they consume it.
    "use_power_action": ValidatorPipeline(validators=_MAIN_ACTION),
    "use_special_action": ValidatorPipeline(validators=_MAIN_ACTION),
    "convert": ValidatorPipeline(validators=_FREE_ACTION),
    "burn_power": ValidatorPipeline(validators=_FREE_ACTION),
    "pass": ValidatorPipeline(validators=_MAIN_ACTION),
    "end_turn": ValidatorPipeline(validators=_FREE_ACTION),
    "reset_turn": ValidatorPipeline(validators=_TURN),
    "respond_offer": ValidatorPipeline(
        validators=(SeatExistsValidator(), PhaseValidator(allowed_phases=_MAIN), HasOfferValidator())
    ),
    "accept_all_offers": ValidatorPipeline(
        validators=(SeatExistsValidator(), PhaseValidator(allowed_phases=_MAIN), HasOfferValidator())
    ),
    "choose_tech_tile": _pending("choose_tech_tile"),
    "cover_tech_tile": _pending("cover_tech_tile"),
    "choose_federation_reward": _pending("choose_federation_reward"),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise RuleViolation(f"Unknown action: {action}")
    return pipe
