"""
Use-case: verify console administrator credentials and issue a session token.
See docs/Architecture.md (Application layer) for the architectural rationale.
Depends only on Domain ports and entities: no infrastructure imports.
"""

import logging
from dataclasses import dataclass

from src.domain.entities.admin_account import AdminAccount
from src.domain.errors import AuthenticationError, MalformedInputError
from src.domain.ports.credential_store_port import ICredentialStore
from src.domain.ports.session_token_port import ISessionTokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    token: str
    account: AdminAccount


class AuthenticateAdminUseCase:
    def __init__(self, credentials: ICredentialStore, tokens: ISessionTokenService) -> None:
        self._credentials = credentials
        self._tokens = tokens

    def execute(self, username: str, password: str) -> LoginResult:
        """Check *username*/*password* against active accounts.

        Raises:
            MalformedInputError: if either field is blank.
            AuthenticationError: if no active account matches.
        """
        if not username or not username.strip() or not password:
            raise MalformedInputError("username and password are required")
        account = self._credentials.find_active_account(username.strip(), password)
        if account is None:
            logger.info("Login rejected", extra={"username": username.strip()})
            raise AuthenticationError("Invalid username or password")
        self._credentials.record_login(account.id)
        logger.info("Login accepted", extra={"username": account.username})
        return LoginResult(token=self._tokens.issue(account), account=account)
