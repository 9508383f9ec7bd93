"""Pydantic Schemas — the camelCase wire contract of the API.

Invariants:
    - Request models enforce length bounds and enums before a service runs
    - Response models never expose origin addresses or password hashes

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence (ADR: DDD boundary)
"""
