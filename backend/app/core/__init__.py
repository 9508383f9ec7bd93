"""Core Layer — pure game rules, ranking, retention math and credentials.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - No IO and no async: everything here is testable without fixtures

Design Decisions:
    - Functional core separated from imperative shell (ADR: ExMA impureim sandwich)
    - IO contracts the shell must satisfy live in repository_protocols.py
"""
