"""livechat — real-time chat backend for the stream page.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
