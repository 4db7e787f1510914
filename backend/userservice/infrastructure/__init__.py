"""Infrastructure Layer — persistence, external clients, and cross-cutting concerns.

Invariants:
    - Implements the Protocols declared in core/repository_protocols.py
    - Every storage or transport failure surfaces as a typed error, never a raw driver exception

Design Decisions:
    - Decorators over subclasses for cross-cutting behavior (ADR: ExMA single responsibility)
"""
