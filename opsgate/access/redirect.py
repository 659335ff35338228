"""Decide, once per page request, whether to render or redirect.

An authenticated visitor on a public landing page is sent to the dashboard of
their effective role. An unauthenticated visitor on a private page is sent
home. Everything else renders in place.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import TYPE_CHECKING

from opsgate.common import IdentityOk, IdentityResult

from .pages import PageDirectory, create_page_url, dashboard_for

if TYPE_CHECKING:
    from opsgate.session import IdentityResolver, ImpersonationStore

LOGGER = logging.getLogger(__name__)


class RedirectKind(StrEnum):
    """The three outcomes of a redirect check."""

    RENDER = "render-in-place"
    ROLE_DASHBOARD = "redirect-to-role-dashboard"
    PUBLIC_HOME = "redirect-to-public-home"


@dataclass(frozen=True)
class RedirectDecision:
    """Outcome of a redirect check.

    :param kind: Render, or which redirect
    :param identity_result: The identity resolved during the check
    :param target_page: Page to navigate to when redirecting
    """

    kind: RedirectKind
    identity_result: IdentityResult
    target_page: str | None = None

    @property
    def target_url(self) -> str | None:
        """URL of the target page, None when rendering in place."""
        if self.target_page is None:
            return None
        return create_page_url(self.target_page)

    @property
    def redirects(self) -> bool:
        """Whether the decision navigates away."""
        return self.kind is not RedirectKind.RENDER


class EngineState(Enum):
    """Lifecycle of a redirect engine."""

    IDLE = "idle"
    CHECKING = "checking"
    DONE = "done"


class RedirectEngine:
    """One-shot redirect check for a single page request.

    :param resolver: Identity resolver for the request
    :param impersonation: Impersonation store for the request's session
    :param pages: Page directory with the public allow-list
    """

    def __init__(
        self,
        resolver: IdentityResolver,
        impersonation: ImpersonationStore,
        pages: PageDirectory | None = None,
    ) -> None:
        self.resolver = resolver
        self.impersonation = impersonation
        self.pages = pages or PageDirectory()
        self.state = EngineState.IDLE
        self._decision: RedirectDecision | None = None
        self._lock = asyncio.Lock()

    async def evaluate(self, path: str, page_name: str | None) -> RedirectDecision:
        """Run the redirect check on first call and return its decision.

        Later calls return the first decision without another lookup, even
        if called with a different path.

        :param path: Request path
        :param page_name: Page the path resolved to
        :return: The redirect decision
        """
        async with self._lock:
            if self.state is EngineState.DONE and self._decision is not None:
                return self._decision

            self.state = EngineState.CHECKING
            decision = await self._decide(path, page_name)
            self._decision = decision
            self.state = EngineState.DONE
            return decision

    async def _decide(self, path: str, page_name: str | None) -> RedirectDecision:
        is_public_page = self.pages.is_public(page_name, path)
        identity_result = await self.resolver.resolve()

        if isinstance(identity_result, IdentityOk):
            if is_public_page and not self.pages.is_always_public(path):
                override = self.impersonation.get()
                effective_role = override or identity_result.identity.role
                target = dashboard_for(effective_role)
                LOGGER.debug(
                    "Redirecting %s from %s to %s",
                    identity_result.identity.email,
                    path,
                    target,
                )
                return RedirectDecision(
                    RedirectKind.ROLE_DASHBOARD,
                    identity_result,
                    target,
                )
        elif not is_public_page:
            LOGGER.debug("Redirecting unauthenticated visitor from %s", path)
            return RedirectDecision(
                RedirectKind.PUBLIC_HOME,
                identity_result,
                self.pages.home_page,
            )

        return RedirectDecision(RedirectKind.RENDER, identity_result)
