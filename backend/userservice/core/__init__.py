"""Core Layer — domain types, error taxonomy, pure rules, boundary Protocols.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Functions in core/ are pure and deterministic; IO only appears as Protocol signatures

Design Decisions:
    - Functional core separated from imperative shell (ADR: ExMA impureim sandwich)
"""
