"""Router serving dashboard pages behind the redirect engine and role gate."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from opsgate.access import (
    Deny,
    PageDirectory,
    RedirectDecision,
    RedirectEngine,
    check_access,
    create_page_url,
    dashboard_for,
)
from opsgate.auth.models import PageResponse, RoleContextResponse
from opsgate.auth.validation import Validate
from opsgate.common import AuthError, AuthErrorKind, IdentityOk, Reason
from opsgate.session import IdentityResolver, ImpersonationStore

LOGGER = logging.getLogger(__name__)


def _redirect(request: Request, page_name: str) -> RedirectResponse:
    root_path = request.scope.get("root_path", "")
    return RedirectResponse(
        f"{root_path}{create_page_url(page_name)}",
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )


def _render(  # noqa: PLR0911
    request: Request,
    validate: Validate,
    pages: PageDirectory,
    page_name: str,
    decision: RedirectDecision,
    impersonation: ImpersonationStore,
) -> PageResponse | RedirectResponse:
    """Turn a redirect decision into a redirect, a denial or a page payload.

    A failed identity lookup is raised before any redirect when lookup errors
    are surfaced.
    """
    result = decision.identity_result
    if (
        validate.surface_lookup_errors
        and isinstance(result, AuthError)
        and result.kind is AuthErrorKind.LOOKUP_FAILED
    ):
        validate.raise_for_auth_error(result)

    if decision.redirects and decision.target_page is not None:
        return _redirect(request, decision.target_page)

    if page_name == pages.root_page:
        if not isinstance(result, IdentityOk):
            return _redirect(request, pages.home_page)
        context = impersonation.context(result.identity)
        return _redirect(request, dashboard_for(context.effective_role))

    required_role = pages.required_role(page_name)
    if required_role is not None:
        access = check_access(required_role, result, impersonation.get())
        if isinstance(access, Deny):
            if access.reason is Reason.UNAUTHENTICATED:
                return _redirect(request, pages.home_page)
            LOGGER.debug(
                "Denied %s to %s: %s below %s",
                page_name,
                result.identity.email,
                access.effective_role,
                required_role,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "reason": str(access.reason),
                    "page": page_name,
                    "effective_role": str(access.effective_role),
                    "required_role": str(required_role),
                },
            )

    if not isinstance(result, IdentityOk):
        return PageResponse(page=page_name, authenticated=False)

    context = impersonation.context(result.identity)
    return PageResponse(
        page=page_name,
        authenticated=True,
        roles=RoleContextResponse.from_context(context),
    )


def configure_page_router(
    router: APIRouter,
    validate: Validate,
    pages: PageDirectory | None = None,
) -> APIRouter:
    """Configure the page router with necessary dependencies.

    :param router: The FastAPI APIRouter to configure
    :param validate: The Validate instance for authentication and authorization
    :param pages: Page directory, the default one if not given
    :return: The configured APIRouter
    """
    pages = pages or PageDirectory()

    async def serve(
        request: Request,
        path: str,
        resolver: IdentityResolver,
        impersonation: ImpersonationStore,
    ) -> PageResponse | RedirectResponse:
        page_name = pages.page_from_path(path)
        if page_name is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Page not found",
            )

        engine = RedirectEngine(resolver, impersonation, pages)
        decision = await engine.evaluate(path, page_name)
        return _render(request, validate, pages, page_name, decision, impersonation)

    @router.get("/", response_model=PageResponse)
    async def root_page(
        request: Request,
        resolver: Annotated[IdentityResolver, Depends(validate.resolver)],
        impersonation: Annotated[ImpersonationStore, Depends(validate.impersonation)],
    ) -> PageResponse | RedirectResponse:
        return await serve(request, "/", resolver, impersonation)

    @router.get("/{page_name}", response_model=PageResponse)
    async def page(
        page_name: str,
        request: Request,
        resolver: Annotated[IdentityResolver, Depends(validate.resolver)],
        impersonation: Annotated[ImpersonationStore, Depends(validate.impersonation)],
    ) -> PageResponse | RedirectResponse:
        return await serve(request, f"/{page_name}", resolver, impersonation)

    return router
