"""Identity — registration, credential checks, bearer tokens and ban state.

Invariants:
    - Nickname and password formats are validated before any store access
    - Registration never overwrites: an existing account yields BANNED or
      USERNAME_TAKEN, and a concurrent insert race yields USERNAME_TAKEN
    - authenticate() does not distinguish unknown accounts from wrong
      passwords (both INVALID_CREDENTIALS); unknown accounts still pay for a
      bcrypt comparison
    - The ban check in authenticate() runs only after the password matched,
      so ban state is not disclosed to callers without the password
    - verify_token() never consults the store

Design Decisions:
    - Account lookups go through an AccountRepository (SQL by default) on a short-lived session,
      or on the caller's session when passed `db` (moderation unit of work)
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from livechat.core.domain_types import Nickname
from livechat.core.errors import (
    AuthError, BannedError, ConflictError, ErrorContext, NotFoundError,
)
from livechat.core.repository_protocols import AccountRepository
from livechat.core.validation import (
    is_valid_nickname, is_valid_password, validate_nickname, validate_password,
)
from livechat.infrastructure.credentials import CredentialHasher
from livechat.infrastructure.database import DatabaseSessionManager
from livechat.infrastructure.repositories import SqlAccountRepository
from livechat.infrastructure.tokens import TokenSigner
from livechat.models.account import Account

logger = logging.getLogger(__name__)


def _invalid_credentials() -> AuthError:
    return AuthError("Invalid credentials", "INVALID_CREDENTIALS")


class Identity:
    """Accounts, credentials and tokens."""

    def __init__(
        self,
        db_manager: DatabaseSessionManager,
        hasher: CredentialHasher,
        signer: TokenSigner,
        accounts: Callable[[AsyncSession], AccountRepository] = SqlAccountRepository,
    ):
        self._db_manager = db_manager
        self._accounts = accounts
        self._hasher = hasher
        self._signer = signer

    async def register(
        self, nickname: str, password: str,
    ) -> tuple[Account, str]:
        """Create an account and return it with a fresh token."""
        nickname = validate_nickname(nickname)
        password = validate_password(password)

        existing = await self.get_account(nickname)
        if existing is not None:
            if existing.banned:
                raise BannedError(nickname)
            raise ConflictError(nickname)

        password_hash = await self._hasher.hash(password)
        async with self._db_manager.transaction() as db:
            account = await self._accounts(db).create(
                nickname, password_hash, datetime.now(timezone.utc),
            )
        logger.info("Account registered", extra={"nickname": nickname})
        return account, self._signer.issue(nickname)

    async def authenticate(self, nickname: str, password: str) -> str:
        nickname = (nickname or "").strip()
        password = password or ""
        if not is_valid_nickname(nickname) or not is_valid_password(password):
            raise _invalid_credentials()

        account = await self.get_account(Nickname(nickname))
        ok = await self._hasher.verify(
            password, account.password_hash if account else None,
        )
        if account is None or not ok:
            logger.warning(
                "Login rejected", extra={"nickname": nickname, "error_code": "INVALID_CREDENTIALS"},
            )
            raise _invalid_credentials()
        if account.banned:
            raise BannedError(account.nickname)
        return self._signer.issue(Nickname(account.nickname))

    def verify_token(self, token: str) -> Nickname:
        return self._signer.verify(token)

    async def get_account(
        self, nickname: Nickname, db: AsyncSession | None = None,
    ) -> Account | None:
        if db is not None:
            return await self._accounts(db).get(nickname)
        async with self._db_manager.session() as own:
            return await self._accounts(own).get(nickname)

    async def require_active(
        self, nickname: Nickname, db: AsyncSession | None = None,
    ) -> Account:
        """Live account re-check behind every privileged read and write."""
        account = await self.get_account(nickname, db=db)
        if account is None:
            raise AuthError("Invalid token", "INVALID_TOKEN", ErrorContext(nickname=nickname))
        if account.banned:
            raise BannedError(nickname)
        return account

    async def is_banned(self, nickname: Nickname) -> bool:
        account = await self.get_account(nickname)
        return bool(account and account.banned)

    async def set_banned(
        self, nickname: Nickname, banned: bool, db: AsyncSession | None = None,
    ) -> None:
        """Flip the ban flag. NotFoundError when no such account exists."""
        if db is not None:
            updated = await self._accounts(db).set_banned(nickname, banned)
        else:
            async with self._db_manager.transaction() as own:
                updated = await self._accounts(own).set_banned(nickname, banned)
        if not updated:
            raise NotFoundError("User", nickname, ErrorContext(nickname=nickname))

    async def list_accounts(self, banned: bool) -> list[Account]:
        async with self._db_manager.session() as db:
            return await self._accounts(db).list_by_status(banned)

    async def delete_account(
        self, nickname: Nickname, db: AsyncSession | None = None,
    ) -> bool:
        if db is not None:
            return await self._accounts(db).delete(nickname)
        async with self._db_manager.transaction() as own:
            return await self._accounts(own).delete(nickname)

