"""Rule handlers.

Each handler takes the working session and the acting seat, mutates them in
place and raises `RuleViolation` when the move is illegal. Handlers never
persist or broadcast; the executor in `gaia_engine.actions` does that.
"""
