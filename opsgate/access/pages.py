"""Static page directory: role dashboards, public pages and page URLs."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from opsgate.common import Role

if TYPE_CHECKING:
    from collections.abc import Mapping

HOME_PAGE = "Home"
ROOT_PAGE = "Dashboard"

ROLE_DASHBOARDS: Mapping[Role, str] = MappingProxyType(
    {
        Role.USER: "UserDashboard",
        Role.TECHNICIAN: "TechnicianDashboard",
        Role.DEVELOPER: "DeveloperDashboard",
        Role.ADMIN: "AdminDashboard",
    },
)

PUBLIC_PAGES = frozenset({"Home", "Pricing", "LegalNotice"})

# Public pages an authenticated visitor may stay on
ALWAYS_PUBLIC_PAGES = frozenset({"Pricing", "LegalNotice"})


def create_page_url(page_name: str) -> str:
    """Return the URL path of a page."""
    return f"/{page_name}"


def dashboard_for(role: Role | str | None) -> str:
    """Return the landing dashboard of a role, ``UserDashboard`` if unknown."""
    return ROLE_DASHBOARDS[Role.coerce(role)]


@dataclass(frozen=True)
class PageDirectory:
    """All pages the service knows about and the role each one requires.

    :param required_roles: Minimum role per gated page
    :param public_pages: Pages exempt from forced redirection
    :param always_public_pages: Public pages never redirected to a dashboard
    """

    required_roles: Mapping[str, Role] = field(
        default_factory=lambda: {name: role for role, name in ROLE_DASHBOARDS.items()},
    )
    public_pages: frozenset[str] = PUBLIC_PAGES
    always_public_pages: frozenset[str] = ALWAYS_PUBLIC_PAGES
    home_page: str = HOME_PAGE
    root_page: str = ROOT_PAGE

    @property
    def page_names(self) -> frozenset[str]:
        """Every known page name."""
        return frozenset(
            {*self.required_roles, *self.public_pages, self.root_page},
        )

    def page_from_path(self, path: str) -> str | None:
        """Resolve a URL path to a page name.

        The last path segment is matched case-insensitively. The root path
        resolves to the root page.

        :param path: Request path, without query string
        :return: The page name, or None for unknown pages
        """
        segment = path.rstrip("/").rsplit("/", 1)[-1]
        if not segment:
            return self.root_page
        lookup = {name.lower(): name for name in self.page_names}
        return lookup.get(segment.lower())

    def is_public(self, page_name: str | None, path: str) -> bool:
        """Whether the page is in the allow-list or the path is the root."""
        return page_name in self.public_pages or path == "/"

    def is_always_public(self, path: str) -> bool:
        """Whether the path is one of the utility pages never redirected."""
        urls = {create_page_url(name).lower() for name in self.always_public_pages}
        return path.rstrip("/").lower() in urls

    def required_role(self, page_name: str) -> Role | None:
        """Return the minimum role for a page, None if the page is not gated."""
        return self.required_roles.get(page_name)
