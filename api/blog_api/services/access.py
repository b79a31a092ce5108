"""Turn policy decisions into domain errors."""

from __future__ import annotations

from ..errors import Forbidden, InvalidInput, NotFound, Unauthenticated
from ..policy import Decision


def enforce(
    decision: Decision,
    *,
    not_found: str = "Resource not found",
    forbidden: str | None = None,
    invalid: str | None = None,
) -> None:
    """Raise the error matching ``decision``; return quietly on ALLOWED/VISIBLE."""
    if decision in (Decision.ALLOWED, Decision.VISIBLE):
        return
    if decision is Decision.NOT_FOUND:
        raise NotFound(not_found)
    if decision is Decision.UNAUTHENTICATED:
        raise Unauthenticated()
    if decision is Decision.INVALID:
        raise InvalidInput(invalid)
    raise Forbidden(forbidden)
