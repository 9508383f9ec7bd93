"""API Layer — FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return camelCase JSON; all failures use one error envelope

Design Decisions:
    - Thin routes delegate to services (ADR: ExMA impureim sandwich)
"""
