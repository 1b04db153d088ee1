"""API Layer — ASGI command endpoint, FastAPI routes and error handlers.

Invariants:
    - Routes and the command app are registered explicitly in main.py (no auto-discovery)
    - Command calls always answer HTTP 200 with an Envelope body

Design Decisions:
    - Thin adapters delegate to services (ADR: impureim sandwich)
"""
