"""API Layer — FastAPI routes, middleware and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Error responses share one JSON envelope (core/errors.py to_response)

Design Decisions:
    - Thin routes delegate to services (ADR: ExMA impureim sandwich)
"""
