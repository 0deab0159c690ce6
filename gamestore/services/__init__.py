"""Integration services: identity provider and local order storage."""

from .identity import FirebaseTokenVerifier, LocalTokenVerifier, build_token_verifier, initialize_identity_app
from .local_order_repository import LocalOrderRepository

__all__ = [
    "FirebaseTokenVerifier",
    "LocalTokenVerifier",
    "build_token_verifier",
    "initialize_identity_app",
    "LocalOrderRepository",
]
