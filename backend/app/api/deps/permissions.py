from __future__ import annotations

from typing import Callable

from fastapi import Depends, HTTPException, status

from app.api.deps.actor import get_current_actor
from app.auth.permissions import Actor


def forbidden(message: str, *, code: str = "rbac_forbidden", role: str | None = None) -> HTTPException:
    detail = {"code": code, "message": message}
    if role is not None:
        detail["role"] = role
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def require_capability(
    check: Callable[[Actor], bool],
    *,
    message: str = "You do not have permission to perform this action.",
) -> Callable:
    """
    Enforce a role-level capability from app.auth.permissions, e.g.

        _=Depends(require_capability(can_view_financials))

    Resource-level checks (ownership) stay in the endpoint, where the row is loaded.
    """

    async def _checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if not actor.role:
            raise forbidden("User role is missing.", code="rbac_role_missing")
        if not check(actor):
            raise forbidden(message, role=actor.role)
        return actor

    return _checker
