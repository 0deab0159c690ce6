"""Bearer token verification against the identity provider."""

from __future__ import annotations

import time
from typing import Dict, Optional

import firebase_admin
import jwt
from firebase_admin import auth, credentials

from ..common.errors import AuthError
from ..common.services.logging import log_event
from ..config import StoreConfig

IDENTITY_APP_NAME = "gamestore"


def initialize_identity_app(config: StoreConfig):
    """Return the process-wide Firebase app, creating it on first call.

    Missing or unusable credentials are not fatal: ``None`` is returned and
    callers fall back to rejecting tokens.
    """
    try:
        return firebase_admin.get_app(IDENTITY_APP_NAME)
    except ValueError:
        pass

    if not config.firebase_configured:
        log_event("warning", "identity.unconfigured")
        return None

    try:
        cred = credentials.Certificate(
            {
                "type": "service_account",
                "project_id": config.firebase_project_id,
                "client_email": config.firebase_client_email,
                "private_key": config.firebase_private_key.replace("\\n", "\n"),
                "token_uri": "https://oauth2.googleapis.com/token",
            }
        )
        return firebase_admin.initialize_app(
            cred, {"projectId": config.firebase_project_id}, name=IDENTITY_APP_NAME
        )
    except (ValueError, IOError) as exc:
        log_event("warning", "identity.init_failed", error=str(exc))
        return None


class FirebaseTokenVerifier:
    def __init__(self, app) -> None:
        self._app = app

    def verify(self, token: str) -> Dict:
        try:
            decoded = auth.verify_id_token(token, app=self._app)
        except auth.ExpiredIdTokenError as exc:
            raise AuthError("ID token expired") from exc
        except (auth.InvalidIdTokenError, auth.CertificateFetchError, ValueError) as exc:
            raise AuthError() from exc
        return {
            "uid": decoded.get("uid") or decoded.get("sub"),
            "email": decoded.get("email", ""),
            "email_verified": bool(decoded.get("email_verified")),
            "name": decoded.get("name", ""),
            "role": decoded.get("role"),
        }


class LocalTokenVerifier:
    """HS256 tokens signed with ``AUTH_DEV_SECRET``, for development and tests."""

    def __init__(self, secret: str) -> None:
        self._secret = secret

    def issue(self, uid: str, *, email: str = "", role: Optional[str] = None, ttl: int = 3600) -> str:
        now = int(time.time())
        payload = {
            "sub": uid,
            "email": email,
            "email_verified": bool(email),
            "iat": now,
            "exp": now + ttl,
        }
        if role:
            payload["role"] = role
        return jwt.encode(payload, self._secret, algorithm="HS256")

    def verify(self, token: str) -> Dict:
        try:
            decoded = jwt.decode(token, self._secret, algorithms=["HS256"])
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("ID token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthError() from exc
        uid = decoded.get("uid") or decoded.get("sub")
        if not uid:
            raise AuthError()
        return {
            "uid": uid,
            "email": decoded.get("email", ""),
            "email_verified": bool(decoded.get("email_verified")),
            "name": decoded.get("name", ""),
            "role": decoded.get("role"),
        }


def build_token_verifier(config: StoreConfig):
    """Firebase when credentials are present, dev tokens when a secret is set, else ``None``."""
    app = initialize_identity_app(config)
    if app is not None:
        return FirebaseTokenVerifier(app)
    if config.auth_dev_secret:
        log_event("warning", "identity.dev_tokens_enabled")
        return LocalTokenVerifier(config.auth_dev_secret)
    return None
