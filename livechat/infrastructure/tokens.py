"""Token Signer — stateless HS256 bearer tokens via PyJWT.

Invariants:
    - A token binds one nickname (claims `sub` and `nickname`) and an expiry
    - verify() checks signature, expiry and required claims only; it never
      consults account state, callers re-check ban status themselves
    - There is no revocation list: tokens stay valid until `exp`

Design Decisions:
    - PyJWT with an explicit algorithms list on decode (no alg confusion)
    - Every decode failure collapses to AuthError(INVALID_TOKEN)
"""

import logging
from datetime import datetime, timedelta, timezone

import jwt

from livechat.core.domain_types import Nickname
from livechat.core.errors import AuthError

logger = logging.getLogger(__name__)


class TokenSigner:
    """Issues and verifies bearer tokens."""

    def __init__(
        self, secret: str, algorithm: str = "HS256", ttl_seconds: int = 604_800,
    ):
        self._secret = secret
        self._algorithm = algorithm
        self.ttl = timedelta(seconds=ttl_seconds)

    def issue(self, nickname: Nickname, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": nickname,
            "nickname": nickname,
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Nickname:
        if not token:
            raise AuthError("Missing auth token", "MISSING_TOKEN")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError("Token expired", "INVALID_TOKEN")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected bearer token: {e}")
            raise AuthError("Invalid token", "INVALID_TOKEN")
        nickname = payload.get("nickname") or payload.get("sub")
        if not isinstance(nickname, str) or not nickname:
            raise AuthError("Invalid token", "INVALID_TOKEN")
        return Nickname(nickname)
