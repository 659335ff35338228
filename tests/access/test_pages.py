"""Tests for the page directory."""

import pytest

from opsgate.access import PageDirectory, create_page_url, dashboard_for
from opsgate.common import Role


@pytest.fixture
def pages() -> PageDirectory:
    """The default page directory."""
    return PageDirectory()


def test_dashboard_mapping() -> None:
    """Test the role-to-dashboard table."""
    assert dashboard_for(Role.USER) == "UserDashboard"
    assert dashboard_for("technician") == "TechnicianDashboard"
    assert dashboard_for(Role.DEVELOPER) == "DeveloperDashboard"
    assert dashboard_for("admin") == "AdminDashboard"
    assert dashboard_for("master") == "UserDashboard"
    assert dashboard_for(None) == "UserDashboard"


def test_create_page_url() -> None:
    """Test page URLs."""
    assert create_page_url("AdminDashboard") == "/AdminDashboard"


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/", "Dashboard"),
        ("", "Dashboard"),
        ("/Home", "Home"),
        ("/home/", "Home"),
        ("/adminDASHBOARD", "AdminDashboard"),
        ("/nested/Pricing", "Pricing"),
        ("/Nowhere", None),
    ],
)
def test_page_from_path(pages: PageDirectory, path: str, expected: str | None) -> None:
    """Test case-insensitive resolution of the last path segment."""
    assert pages.page_from_path(path) == expected


def test_public_pages(pages: PageDirectory) -> None:
    """Test the public allow-list and the root path."""
    assert pages.is_public("Home", "/Home")
    assert pages.is_public("Pricing", "/Pricing")
    assert pages.is_public("Dashboard", "/")
    assert not pages.is_public("UserDashboard", "/UserDashboard")


def test_always_public_pages(pages: PageDirectory) -> None:
    """Test the utility pages that never redirect."""
    assert pages.is_always_public("/Pricing")
    assert pages.is_always_public("/legalnotice/")
    assert not pages.is_always_public("/Home")
    assert not pages.is_always_public("/")


def test_required_roles(pages: PageDirectory) -> None:
    """Test that each dashboard is gated by its own role."""
    assert pages.required_role("AdminDashboard") is Role.ADMIN
    assert pages.required_role("TechnicianDashboard") is Role.TECHNICIAN
    assert pages.required_role("Home") is None
