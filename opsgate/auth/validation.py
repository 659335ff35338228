"""FastAPI dependency validators for authentication and authorization."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from opsgate.access.gate import Deny, check_access
from opsgate.common import (
    AuthError,
    AuthErrorKind,
    Identity,
    IdentityNotFoundError,
    IdentityResult,
    Reason,
    Role,
)
from opsgate.session import IdentityResolver, ImpersonationStore, RoleContext

from .queries import AuthQueries
from .security_manager import SecurityManager

bearer_scheme = HTTPBearer(auto_error=False)

LOGGER = logging.getLogger(__name__)

SESSION_TOKEN_KEY = "access_token"


class Validate:
    """Holds validator dependencies for FastAPI authentication/authorization."""

    def __init__(
        self,
        auth_queries: AuthQueries,
        security_manager: SecurityManager,
        *,
        surface_lookup_errors: bool = False,
    ) -> None:
        """Create a new validator instance.

        :param auth_queries: Database connector
        :param security_manager: JWT security manager
        :param surface_lookup_errors: Answer 503 instead of 401 when the
            identity lookup itself fails
        """
        self.auth_queries = auth_queries
        self.security_manager = security_manager
        self.surface_lookup_errors = surface_lookup_errors

    def resolver(
        self,
        request: Request,
        credentials: Annotated[
            HTTPAuthorizationCredentials | None,
            Security(bearer_scheme),
        ],
    ) -> IdentityResolver:
        """Return the identity resolver of the current request.

        The bearer token wins over the token stored in the session.
        """
        resolver = getattr(request.state, "identity_resolver", None)
        if resolver is not None:
            return resolver

        token = (
            credentials.credentials
            if credentials is not None
            else request.session.get(SESSION_TOKEN_KEY)
        )

        async def lookup() -> Identity:
            if not token:
                msg = "No access token"
                raise IdentityNotFoundError(msg)
            email = self.security_manager.verify_token(token)
            if email is None:
                msg = "Invalid or expired access token"
                raise IdentityNotFoundError(msg)
            identity = await self.auth_queries.get_account(email)
            if identity is None:
                msg = f"No account for {email}"
                raise IdentityNotFoundError(msg)
            return identity

        resolver = IdentityResolver(lookup)
        request.state.identity_resolver = resolver
        return resolver

    @staticmethod
    def impersonation(request: Request) -> ImpersonationStore:
        """Return the impersonation store of the current browser session."""
        return ImpersonationStore(request.session)

    def raise_for_auth_error(self, error: AuthError) -> None:
        """Turn an identity resolution failure into an HTTP error."""
        if self.surface_lookup_errors and error.kind is AuthErrorKind.LOOKUP_FAILED:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Identity lookup unavailable",
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(Reason.UNAUTHENTICATED),
            headers={"WWW-Authenticate": "Bearer"},
        )

    async def identity_result(
        self,
        request: Request,
        credentials: Annotated[
            HTTPAuthorizationCredentials | None,
            Security(bearer_scheme),
        ],
    ) -> IdentityResult:
        """Resolve the identity without failing the request."""
        return await self.resolver(request, credentials).resolve()

    async def identity(
        self,
        request: Request,
        credentials: Annotated[
            HTTPAuthorizationCredentials | None,
            Security(bearer_scheme),
        ],
    ) -> Identity:
        """Require an authenticated identity."""
        result = await self.identity_result(request, credentials)
        if isinstance(result, AuthError):
            LOGGER.debug("Identity required but unresolved: %s", result.kind)
            self.raise_for_auth_error(result)
        return result.identity

    def role_context(self) -> Callable[..., RoleContext]:
        """Return a dependency producing the session's role context."""

        def dependency(
            identity: Annotated[Identity, Depends(self.identity)],
            impersonation: Annotated[ImpersonationStore, Depends(self.impersonation)],
        ) -> RoleContext:
            return impersonation.context(identity)

        return dependency

    def role(self, required_role: Role) -> Callable[..., RoleContext]:
        """Return a role-based dependency validator.

        The impersonation override counts as the session's role.
        """

        async def validator(
            result: Annotated[IdentityResult, Depends(self.identity_result)],
            impersonation: Annotated[ImpersonationStore, Depends(self.impersonation)],
        ) -> RoleContext:
            decision = check_access(required_role, result, impersonation.get())
            if isinstance(decision, Deny):
                if isinstance(result, AuthError):
                    self.raise_for_auth_error(result)
                LOGGER.debug(
                    "Role validation failed: %s below %s",
                    decision.effective_role,
                    required_role,
                )
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail={
                        "reason": str(decision.reason),
                        "effective_role": str(decision.effective_role),
                        "required_role": str(required_role),
                    },
                )
            return impersonation.context(result.identity)

        return validator
