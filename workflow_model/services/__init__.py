"""Services Layer — instance resolver orchestration and the entity registry.

Invariants:
    - One InstanceResolver per entity type, registered explicitly (no auto-discovery)
"""
