"""Persistence Base — declarative Base and naming convention.

Invariants:
    - No engine or session lives here (see infrastructure/database.py)

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite in tests (ADR: native async, no thread pool)
"""
