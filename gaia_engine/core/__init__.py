"""Game rules primitives: static tables, entity model, formulas, income and scoring.

Kept free of FastAPI and Redis concerns so it can be reused by the executor,
the bot planner, and tests.
"""
