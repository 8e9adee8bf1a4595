"""Dashboard query exceptions."""


class DashboardError(Exception):
    """Base exception for dashboard queries."""

    pass


class InvalidDashboardRequest(DashboardError):
    """Raised when the request lacks a search name and URL, or the URL has no video id."""

    pass


class DashboardNotFound(DashboardError):
    """Raised when the requested video or saved search does not exist."""

    pass
