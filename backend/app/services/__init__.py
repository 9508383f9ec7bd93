"""Services Layer — game lifecycle, voting, content intake, identity, moderation, retention.

Invariants:
    - Services own transactions (commit/rollback); routes never touch the session directly
    - Phase and ownership checks happen here, rule definitions come from core/

Design Decisions:
    - One service per concern, constructed per request with an AsyncSession
      (ADR: ExMA no god objects)
    - The sweeper is the exception: one process-wide instance so its lock is shared
"""
