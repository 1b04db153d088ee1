"""Core Layer — envelope, request context, errors and boundary contracts.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - No IO: everything here is plain data and pure functions

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
