"""Pydantic Schemas — request/response models for API boundaries.

Invariants:
    - Schemas describe the wire shape only; domain records live in core/domain_types.py
"""
