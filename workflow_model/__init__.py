"""Workflow Model — authorization-aware instance resolver for workflow-driven entities.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
