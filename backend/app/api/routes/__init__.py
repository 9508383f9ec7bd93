"""Route Modules — games, legacy content, auth, admin and health.

Invariants:
    - Each module owns one APIRouter with its /api/v1 prefix and tags
    - Routes translate HTTP to service calls; rules live in services/ and core/

Design Decisions:
    - Explicit registration in main.py over auto-discovery (ADR: ExMA anti-pattern)
"""
