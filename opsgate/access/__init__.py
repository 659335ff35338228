"""Access gate, page directory and redirect decisions."""

from .gate import AccessDecision, Allow, Deny, check_access
from .pages import (
    HOME_PAGE,
    PUBLIC_PAGES,
    ROLE_DASHBOARDS,
    PageDirectory,
    create_page_url,
    dashboard_for,
)
from .redirect import EngineState, RedirectDecision, RedirectEngine, RedirectKind

__all__ = [
    "HOME_PAGE",
    "PUBLIC_PAGES",
    "ROLE_DASHBOARDS",
    "AccessDecision",
    "Allow",
    "Deny",
    "EngineState",
    "PageDirectory",
    "RedirectDecision",
    "RedirectEngine",
    "RedirectKind",
    "check_access",
    "create_page_url",
    "dashboard_for",
]
