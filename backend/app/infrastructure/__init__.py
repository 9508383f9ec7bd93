"""Infrastructure Layer — database sessions, blob storage, audit sink, scheduling, logging.

Invariants:
    - Infrastructure implements the protocols in core/repository_protocols.py
    - Low-level failures (SQLAlchemy, OSError) mapped to core/errors.py types

Design Decisions:
    - Collaborators built once in the lifespan and injected (ADR: no import-time singletons
      besides db_manager)
"""
