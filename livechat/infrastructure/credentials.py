"""Credential Hasher — bcrypt hashing for account passwords.

Invariants:
    - Plain passwords never leave this module except as bcrypt input
    - verify() runs a full bcrypt comparison even for unknown accounts
      (dummy hash) so timing does not reveal whether a nickname exists
    - Hashing runs off the event loop (asyncio.to_thread)

Design Decisions:
    - bcrypt cost factor configurable: production default 10, tests use 4
"""

import asyncio

import bcrypt


class CredentialHasher:
    """Async facade over bcrypt hashpw/checkpw."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        self._dummy_hash = bcrypt.hashpw(
            b"livechat-dummy-password", bcrypt.gensalt(rounds),
        )

    async def hash(self, password: str) -> str:
        return await asyncio.to_thread(self._hash_sync, password)

    async def verify(self, password: str, password_hash: str | None) -> bool:
        """Constant-time check; a missing hash compares against the dummy and fails."""
        if password_hash is None:
            await asyncio.to_thread(
                bcrypt.checkpw, password.encode("utf-8"), self._dummy_hash,
            )
            return False
        return await asyncio.to_thread(
            bcrypt.checkpw, password.encode("utf-8"), password_hash.encode("utf-8"),
        )

    def _hash_sync(self, password: str) -> str:
        digest = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(self.rounds))
        return digest.decode("utf-8")
