"""API Layer — FastAPI routes and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses
    - Routes never contain authorization logic (delegate to InstanceResolver)
"""
