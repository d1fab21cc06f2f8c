"""Core Layer — pure domain logic, no IO, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Validation, rate limiting and event framing are deterministic given their inputs

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
