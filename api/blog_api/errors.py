"""Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; ``main`` registers a single
handler that renders them as ``{"detail": ...}`` responses.
"""

from __future__ import annotations

from fastapi import status


class BlogError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(BlogError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class Unauthenticated(BlogError):
    """No caller identity, but the operation requires one."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required"


class Forbidden(BlogError):
    """Caller identity is known but lacks rights on the resource."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You don't have permission to access this resource"


class InvalidInput(BlogError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class Conflict(BlogError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class AtomicityFailure(Conflict):
    """A multi-step write failed part-way and was rolled back."""

    default_detail = "Operation could not be completed and was rolled back"


class DependencyFailure(BlogError):
    """The database (or another collaborator) is unreachable or erroring."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Service temporarily unavailable"
