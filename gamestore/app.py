"""Game top-up storefront Flask application."""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .common.db.session import create_session_factory
from .common.errors import StoreError
from .common.services import CartService, CatalogService, OrderService, PaymentService, UserService
from .common.services.logging import configure_logging, log_event
from .config import StoreConfig
from .routes import admin, auth, cart, catalog, orders, payments
from .services.identity import build_token_verifier

logger = logging.getLogger(__name__)

_UNSET = object()


def create_app(
    config: Optional[StoreConfig] = None,
    *,
    session_factory=None,
    token_verifier=_UNSET,
) -> Flask:
    config = config or StoreConfig.load()
    configure_logging(config.log_level)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["GAMESTORE_CONFIG"] = config
    app.json.sort_keys = False

    session_factory = session_factory or create_session_factory(config.database_url)
    if token_verifier is _UNSET:
        token_verifier = build_token_verifier(config)

    components = {
        "session_factory": session_factory,
        "token_verifier": token_verifier,
        "catalog_service": CatalogService(session_factory),
        "cart_service": CartService(session_factory),
        "order_service": OrderService(session_factory),
        "payment_service": PaymentService(session_factory),
        "user_service": UserService(session_factory),
    }
    app.extensions["gamestore_components"] = components

    app.register_blueprint(auth.auth_bp)
    app.register_blueprint(catalog.categories_bp)
    app.register_blueprint(catalog.products_bp)
    app.register_blueprint(cart.cart_bp)
    app.register_blueprint(orders.orders_bp)
    app.register_blueprint(payments.payments_bp)
    app.register_blueprint(admin.admin_bp)

    _register_error_handlers(app, config)

    @app.get("/health")
    def health():
        return jsonify({"status": "OK", "environment": config.environment})

    return app


def _register_error_handlers(app: Flask, config: StoreConfig) -> None:
    @app.errorhandler(StoreError)
    def handle_store_error(exc: StoreError):
        if exc.status_code >= 500:
            log_event("error", "request.failed", error=exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(404)
    def handle_not_found(_exc):
        return jsonify({"success": False, "message": "Route not found"}), 404

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"success": False, "message": exc.description or exc.name}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error")
        message = str(exc) if config.is_development else "Internal Server Error"
        return jsonify({"success": False, "message": message}), 500


def main() -> None:
    config = StoreConfig.load()
    app = create_app(config)
    app.run(host="0.0.0.0", port=config.port, debug=False)


if __name__ == "__main__":
    main()
