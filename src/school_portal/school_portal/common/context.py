from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError


@dataclass(frozen=True)
class RequestContext:
    """Who is calling. Built once per request and passed into every service call."""

    user_id: str
    role: Role


def require_user(ctx: RequestContext | None) -> RequestContext:
    if ctx is None or not (ctx.user_id or "").strip():
        raise ValidationError("Submitter identity is required")
    return ctx


def require_role(ctx: RequestContext, *roles: Role) -> None:
    if ctx.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise AuthorizationError(f"Action requires role: {allowed}")


def can_review(role: Role) -> bool:
    if role is Role.ADMIN:
        return True
    if role is Role.LECTURER:
        return False
    if role is Role.STUDENT:
        return False
    raise AssertionError(f"Unhandled role: {role!r}")
