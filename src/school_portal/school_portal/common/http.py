from __future__ import annotations

from functools import wraps
from typing import Any

from flask import g, jsonify, request

from ..core.constants import USER_ID_HEADER
from ..core.exceptions import AuthenticationError, ValidationError
from ..users.service import UserService
from .context import RequestContext
from .serialization import to_json


def resolve_context(users: UserService, user_id: str | None) -> RequestContext:
    """Build the caller context from the identity header set by the upstream provider."""
    user_id = (user_id or "").strip()
    if not user_id:
        raise AuthenticationError("Missing caller identity")
    role = users.role_of(user_id)
    if role is None:
        raise AuthenticationError("Unknown user")
    return RequestContext(user_id=user_id, role=role)


def identity_required(users: UserService):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            g.ctx = resolve_context(users, request.headers.get(USER_ID_HEADER))
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_context() -> RequestContext:
    return g.ctx


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def ok(data: Any = None, *, message: str | None = None, status: int = 200):
    payload: dict = {"success": True}
    if message:
        payload["message"] = message
    if data is not None:
        payload["data"] = to_json(data)
    return jsonify(payload), status
