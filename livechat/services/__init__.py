"""Services Layer — stateful components that compose core logic with storage.

Invariants:
    - Every component is constructed once per process and passed explicitly
    - Publishing to the BroadcastHub happens only after the store commit succeeded
"""
