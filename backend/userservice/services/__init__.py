"""Services Layer — business operations over the repository Protocols.

Invariants:
    - Services depend on core/ Protocols only, never on concrete repositories
    - Store-level outcomes translated into core/errors.py here and nowhere else

Design Decisions:
    - Collaborators injected through constructors (ADR: ExMA no hidden globals)
"""
