"""Infrastructure Layer — transport adapters and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/
    - Adapters satisfy core Protocols structurally (no base classes)

Design Decisions:
    - Thin adapters over the host server primitives (ADR: single responsibility)
"""
