"""Authentication routes: account session, credential login and impersonation.

Account and credential management live in the entity store; this router only
signs accounts in and out and switches the session's role.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status

from opsgate.access.pages import create_page_url
from opsgate.common import (
    AuthError,
    AuthErrorKind,
    Identity,
    InsufficientPrivilegeError,
    Reason,
    Role,
)
from opsgate.session import IdentityResolver, ImpersonationStore, RoleContext

from .login import CredentialLoginFlow, LoginFailure
from .models import (
    AccountResponse,
    CredentialLoginResponse,
    CredentialResponse,
    RoleContextResponse,
    SessionResponse,
)
from .validation import SESSION_TOKEN_KEY, Validate

LOGGER = logging.getLogger(__name__)

LOGIN_FAILURE_STATUS = {
    Reason.MISSING_FIELDS: status.HTTP_400_BAD_REQUEST,
    Reason.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    Reason.ACCOUNT_LOCKED: status.HTTP_423_LOCKED,
    Reason.IDENTITY_MISMATCH: status.HTTP_409_CONFLICT,
}


async def _sign_in(
    validate: Validate,
    request: Request,
    email: str,
    password: str,
) -> SessionResponse:
    identity = await validate.auth_queries.authenticate_account(email, password)

    if not identity:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    access_token = validate.security_manager.create_access_token(identity.email)
    request.session[SESSION_TOKEN_KEY] = access_token
    LOGGER.info("Account %s signed in", identity.email)

    return SessionResponse(access_token=access_token)


async def _credential_login(
    validate: Validate,
    flow: CredentialLoginFlow,
    username: str,
    password: str,
) -> CredentialLoginResponse:
    result = await flow.login(username, password)

    if isinstance(result, LoginFailure):
        if result.reason is Reason.IDENTITY_MISMATCH and validate.surface_lookup_errors:
            identity_result = await flow.resolver.resolve()
            if (
                isinstance(identity_result, AuthError)
                and identity_result.kind is AuthErrorKind.LOOKUP_FAILED
            ):
                validate.raise_for_auth_error(identity_result)
        raise HTTPException(
            status_code=LOGIN_FAILURE_STATUS[result.reason],
            detail={"reason": str(result.reason), "message": result.message},
        )

    return CredentialLoginResponse(
        credential=CredentialResponse.from_credential(result.credential),
        dashboard=result.dashboard,
        dashboard_url=create_page_url(result.dashboard),
    )


def _switch_role(
    impersonation: ImpersonationStore,
    context: RoleContext,
    target: Role,
) -> RoleContextResponse:
    try:
        impersonation.switch_to(target, context.real_role)
    except InsufficientPrivilegeError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"reason": str(e.reason), "message": str(e)},
        ) from e

    return RoleContextResponse.from_context(
        RoleContext(real_role=context.real_role, effective_role=target),
    )


def configure_auth_router(router: APIRouter, validate: Validate) -> APIRouter:
    """Configure the authentication router.

    :param router: The APIRouter to configure
    :param validate: The Validate instance for authentication and authorization
    :return: The configured APIRouter
    """

    @router.post("/session", response_model=SessionResponse)
    async def sign_in(
        request: Request,
        email: Annotated[str, Form()],
        password: Annotated[str, Form()],
    ) -> SessionResponse:
        return await _sign_in(validate, request, email, password)

    @router.post("/logout")
    def logout(
        request: Request,
        impersonation: Annotated[ImpersonationStore, Depends(validate.impersonation)],
    ) -> str:
        """Forget the session token and the impersonation override."""
        impersonation.clear()
        request.session.pop(SESSION_TOKEN_KEY, None)
        return "Logout successful"

    @router.get("/me", response_model=AccountResponse)
    def get_account_info(
        identity: Annotated[Identity, Depends(validate.identity)],
        context: Annotated[RoleContext, Depends(validate.role_context())],
    ) -> AccountResponse:
        return AccountResponse.from_identity(
            identity,
            RoleContextResponse.from_context(context),
        )

    @router.post("/credential-login", response_model=CredentialLoginResponse)
    async def credential_login(
        resolver: Annotated[IdentityResolver, Depends(validate.resolver)],
        impersonation: Annotated[ImpersonationStore, Depends(validate.impersonation)],
        username: Annotated[str, Form()] = "",
        password: Annotated[str, Form()] = "",
    ) -> CredentialLoginResponse:
        flow = CredentialLoginFlow(validate.auth_queries, impersonation, resolver)
        return await _credential_login(validate, flow, username, password)

    @router.put("/impersonation", response_model=RoleContextResponse)
    def switch_role(
        role: Annotated[Role, Form()],
        context: Annotated[RoleContext, Depends(validate.role_context())],
        impersonation: Annotated[ImpersonationStore, Depends(validate.impersonation)],
    ) -> RoleContextResponse:
        return _switch_role(impersonation, context, role)

    @router.delete("/impersonation", response_model=RoleContextResponse)
    def stop_impersonating(
        context: Annotated[RoleContext, Depends(validate.role_context())],
        impersonation: Annotated[ImpersonationStore, Depends(validate.impersonation)],
    ) -> RoleContextResponse:
        real_role = impersonation.stop_impersonating(context.real_role)
        return RoleContextResponse.from_context(
            RoleContext(real_role=real_role, effective_role=real_role),
        )

    return router
