"""
Infrastructure adapter: HS256 JWTs (python-jose) -> ISessionTokenService.
See docs/Architecture.md (Infrastructure layer) for the architectural rationale.

The token is opaque to clients. It carries the username as ``sub`` and the
display name as ``name``, and expires after a fixed lifetime.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

from jose import ExpiredSignatureError, JWTError, jwt

from src.domain.entities.admin_account import AdminAccount
from src.domain.errors import AuthenticationError
from src.domain.ports.session_token_port import ISessionTokenService

_ALGORITHM = "HS256"
_ISSUER = "relevance-console"


class JoseSessionTokenService(ISessionTokenService):
    def __init__(
        self,
        secret: str,
        ttl: timedelta = timedelta(hours=8),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._secret = secret
        self._ttl = ttl
        self._clock = clock

    def issue(self, account: AdminAccount) -> str:
        now = self._clock()
        claims = {
            "sub": account.username,
            "name": account.full_name,
            "iss": _ISSUER,
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=_ALGORITHM)

    def validate(self, token: str) -> dict:
        """Decode and verify a session token.

        Raises:
            AuthenticationError: on a bad signature, wrong issuer or expiry.
        """
        try:
            claims = jwt.decode(token, self._secret, algorithms=[_ALGORITHM], issuer=_ISSUER)
        except ExpiredSignatureError as exc:
            raise AuthenticationError("Session expired, please log in again") from exc
        except JWTError as exc:
            raise AuthenticationError(f"Session token rejected: {exc}") from exc
        if not claims.get("sub"):
            raise AuthenticationError("Session token has no subject")
        return claims
