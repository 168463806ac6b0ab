"""Infrastructure Layer — storage, identity and workflow-engine adapters plus logging.

Invariants:
    - Adapters implement the Protocols in core/repository_protocols.py
    - All external failures mapped to core/errors.py types (DatabaseError, WorkflowEngineError)
"""
