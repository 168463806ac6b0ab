"""Core — pure resolver logic: schema classification, policy evaluation, enforcement.

Invariants:
    - No module in core performs IO or imports from infrastructure/services/api
    - Collaborators are reached only through repository_protocols
"""
