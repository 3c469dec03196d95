from __future__ import annotations


class RuleViolation(ValueError):
    """An action broke a game rule. The executor rejects it with no state change."""


class ExplicitRuleViolation(RuleViolation):
    """A rejection the caller is told about with a `game_error` event."""


class NotYourSeat(ExplicitRuleViolation):
    def __init__(self, message: str = "Not your seat to control") -> None:
        super().__init__(message)


class SessionNotFound(ValueError):
    def __init__(self, message: str = "Session not found") -> None:
        super().__init__(message)
