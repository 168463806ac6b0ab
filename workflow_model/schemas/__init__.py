"""Pydantic Schemas — definition files and API request/response bodies.

Invariants:
    - Schemas validate shape only; authorization decisions live in core/
"""
