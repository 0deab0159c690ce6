"""Profile endpoints behind the identity provider's bearer token."""

from __future__ import annotations

from flask import Blueprint, g

from ..common.utils.validators import optional_str, require_email, require_str
from .gate import components, json_body, ok, require_auth


auth_bp = Blueprint("gamestore_auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
@require_auth
def register():
    payload = json_body()
    user = components()["user_service"].register(
        g.claims,
        email=require_email(payload, "email"),
        username=require_str(payload, "username"),
        first_name=require_str(payload, "firstName"),
        last_name=require_str(payload, "lastName"),
        phone=optional_str(payload, "phone"),
    )
    return ok({"user": user}, "User registered successfully", 201)


@auth_bp.post("/login")
@require_auth
def login():
    user = components()["user_service"].upsert_from_claims(g.claims)
    return ok({"user": user}, "Login successful")


@auth_bp.get("/me")
@require_auth
def me():
    user = components()["user_service"].get_by_uid(g.user["uid"])
    return ok({"user": user})
