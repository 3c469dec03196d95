"""Heuristic bots.

Bots use the same command models and executor as humans; the planner only
proposes commands, it never mutates the session itself.
"""
