"""Shared helpers for the API blueprints: components, envelope and auth gate."""

from __future__ import annotations

from functools import wraps
from typing import Any, Dict, Optional

from flask import current_app, g, jsonify, request

from ..common.errors import AuthError, AuthorizationError
from ..common.models.status import UserRole


def components() -> Dict[str, Any]:
    return current_app.extensions["gamestore_components"]


def ok(data=None, message: Optional[str] = None, status: int = 200):
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def json_body() -> Dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


def authenticate() -> Dict:
    """Verify the bearer token and attach the caller to ``g.user``.

    The role comes from the store profile when one exists, otherwise from the
    token's ``role`` claim. Nothing is written here.
    """
    token = _bearer_token()
    if token is None:
        raise AuthError("No authentication token provided")
    verifier = components().get("token_verifier")
    if verifier is None:
        raise AuthError("Authentication is not configured")
    claims = verifier.verify(token)
    role = components()["user_service"].role_for(claims["uid"]) or claims.get("role") or UserRole.USER.value
    g.claims = claims
    g.user = {
        "uid": claims["uid"],
        "email": claims.get("email", ""),
        "emailVerified": bool(claims.get("email_verified")),
        "role": role,
    }
    return g.user


def is_admin() -> bool:
    user = getattr(g, "user", None)
    return bool(user) and user.get("role") == UserRole.ADMIN.value


def require_auth(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        authenticate()
        return view(*args, **kwargs)

    return wrapper


def require_admin(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        authenticate()
        if not is_admin():
            raise AuthorizationError("Admin access required")
        return view(*args, **kwargs)

    return wrapper
