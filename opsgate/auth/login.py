"""Credential (accreditation) login.

A credential binds a username and password to a role and to the email of the
account it belongs to. Logging in with one switches the session's
impersonation override to the credential's role.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from opsgate.access.pages import dashboard_for
from opsgate.common import IdentityOk, Reason

from .security_manager import hash_credential_password

if TYPE_CHECKING:
    from collections.abc import Callable

    from opsgate.session import IdentityResolver, ImpersonationStore

    from .models import Credential
    from .queries import AuthQueries

LOGGER = logging.getLogger(__name__)

FAILURE_MESSAGES = {
    Reason.MISSING_FIELDS: "Username and password are required",
    Reason.INVALID_CREDENTIALS: "Invalid credentials or inactive account",
    Reason.ACCOUNT_LOCKED: "Account temporarily locked, try again later",
    Reason.IDENTITY_MISMATCH: "Credential does not belong to the signed-in account",
}


@dataclass(frozen=True)
class LoginSuccess:
    """A successful credential login."""

    credential: Credential

    @property
    def dashboard(self) -> str:
        """Dashboard of the credential's role."""
        return dashboard_for(self.credential.role)


@dataclass(frozen=True)
class LoginFailure:
    """A refused credential login."""

    reason: Reason

    @property
    def message(self) -> str:
        """Client-facing message for the failure."""
        return FAILURE_MESSAGES[self.reason]


LoginResult = LoginSuccess | LoginFailure


class CredentialLoginFlow:
    """Validates a credential and switches the session to its role.

    :param auth_queries: Credential store
    :param impersonation: Impersonation store of the current session
    :param resolver: Identity resolver of the current request
    :param clock: Returns the current time, UTC
    """

    def __init__(
        self,
        auth_queries: AuthQueries,
        impersonation: ImpersonationStore,
        resolver: IdentityResolver,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.auth_queries = auth_queries
        self.impersonation = impersonation
        self.resolver = resolver
        self.clock = clock or (lambda: datetime.now(UTC))

    async def login(self, username: str, password: str) -> LoginResult:
        """Attempt a credential login.

        Failures leave the credential record untouched. Errors raised by the
        credential store propagate to the caller.

        :param username: Credential username
        :param password: Plaintext password
        :return: LoginSuccess with the refreshed credential, or LoginFailure
        """
        if not username or not password:
            return LoginFailure(Reason.MISSING_FIELDS)

        credential = await self.auth_queries.find_active_credential(
            username,
            hash_credential_password(password),
        )
        if credential is None:
            LOGGER.debug("Credential login refused for %s", username)
            return LoginFailure(Reason.INVALID_CREDENTIALS)

        now = self.clock()
        if credential.is_locked(now):
            LOGGER.info("Credential %s is locked until %s", username, credential.locked_until)
            return LoginFailure(Reason.ACCOUNT_LOCKED)

        identity_result = await self.resolver.resolve()
        if (
            not isinstance(identity_result, IdentityOk)
            or identity_result.identity.email != credential.user_email
        ):
            LOGGER.warning(
                "Credential %s used outside the session of %s",
                username,
                credential.user_email,
            )
            return LoginFailure(Reason.IDENTITY_MISMATCH)

        await self.auth_queries.record_login(credential.id, now)

        self.impersonation.set(credential.role)
        LOGGER.info("Credential login for %s as %s", username, credential.role)

        refreshed = credential.model_copy(
            update={"last_login": now, "login_attempts": 0, "locked_until": None},
        )
        return LoginSuccess(refreshed)
