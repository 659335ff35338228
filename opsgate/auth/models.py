"""Credential record and response models for auth routes."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, field_validator

from opsgate.access.pages import dashboard_for
from opsgate.common import Identity, Role

if TYPE_CHECKING:
    from opsgate.session import RoleContext

ACTIVE_STATUS = "Active"


class Credential(BaseModel):
    """A credential (accreditation) login entry.

    :param id: Row id
    :param username: Login name
    :param password_hash: Hex SHA-256 of the password
    :param role: Role the credential signs in as
    :param user_email: Email of the account the credential belongs to
    :param status: ``Active`` or a deactivated status
    :param login_attempts: Failed attempt counter
    :param last_login: Time of the last successful login
    :param locked_until: End of the lockout window, if any
    """

    id: int
    username: str
    password_hash: str
    role: str
    user_email: str
    status: str = ACTIVE_STATUS
    login_attempts: int = 0
    last_login: datetime | None = None
    locked_until: datetime | None = None

    @field_validator("last_login", "locked_until")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def is_locked(self, now: datetime | None = None) -> bool:
        """Whether the lockout window is still open at ``now``."""
        if self.locked_until is None:
            return False
        now = now or datetime.now(UTC)
        return self.locked_until > now


class CredentialResponse(BaseModel):
    """Public view of a credential."""

    username: str
    role: Role
    user_email: str
    last_login: datetime | None = None

    @classmethod
    def from_credential(cls, credential: Credential) -> CredentialResponse:
        return cls(
            username=credential.username,
            role=Role.coerce(credential.role),
            user_email=credential.user_email,
            last_login=credential.last_login,
        )


class RoleContextResponse(BaseModel):
    """Real and effective role of the session."""

    real_role: Role
    effective_role: Role
    impersonating: bool
    dashboard: str

    @classmethod
    def from_context(cls, context: RoleContext) -> RoleContextResponse:
        """Describe a role context along with its landing dashboard."""
        return cls(
            real_role=context.real_role,
            effective_role=context.effective_role,
            impersonating=context.impersonating,
            dashboard=dashboard_for(context.effective_role),
        )


class AccountResponse(BaseModel):
    """The authenticated account with its role context."""

    email: str
    role: str
    display_name: str | None = None
    roles: RoleContextResponse

    @classmethod
    def from_identity(
        cls,
        identity: Identity,
        roles: RoleContextResponse,
    ) -> AccountResponse:
        return cls(
            email=identity.email,
            role=identity.role,
            display_name=identity.profile.get("display_name"),
            roles=roles,
        )


class SessionResponse(BaseModel):
    """Response model for account sign-in.

    :param access_token: The JWT access token
    :param token_type: Always ``bearer``
    """

    access_token: str
    token_type: str = "bearer"


class CredentialLoginResponse(BaseModel):
    """Response model for a successful credential login."""

    credential: CredentialResponse
    dashboard: str
    dashboard_url: str


class PageResponse(BaseModel):
    """Payload of a page rendered in place."""

    page: str
    authenticated: bool
    roles: RoleContextResponse | None = None
