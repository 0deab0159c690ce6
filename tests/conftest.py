from decimal import Decimal

import pytest

from gamestore.app import create_app
from gamestore.common.db.session import create_session_factory
from gamestore.common.services import CatalogService
from gamestore.config import StoreConfig
from gamestore.services.identity import LocalTokenVerifier

DEV_SECRET = "test-dev-secret"


@pytest.fixture
def config(tmp_path):
    return StoreConfig(
        database_url="sqlite://",
        secret_key="test",
        environment="production",
        log_level="WARNING",
        port=3001,
        currency="BDT",
        data_dir=tmp_path,
        api_base_url="http://store.test/api",
        local_orders_file=tmp_path / "guest_orders.json",
        auth_dev_secret=DEV_SECRET,
    )


@pytest.fixture
def session_factory():
    return create_session_factory("sqlite://")


@pytest.fixture
def verifier():
    return LocalTokenVerifier(DEV_SECRET)


@pytest.fixture
def app(config, session_factory, verifier):
    return create_app(config, session_factory=session_factory, token_verifier=verifier)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(verifier):
    def make(uid="user-1", role=None, email="player@example.com"):
        return {"Authorization": f"Bearer {verifier.issue(uid, email=email, role=role)}"}

    return make


@pytest.fixture
def admin_header(auth_header):
    return auth_header("admin-1", role="ADMIN", email="admin@example.com")


@pytest.fixture
def catalog(session_factory):
    """Two categories, a game with three packs and a gift card."""
    service = CatalogService(session_factory)
    games = service.create_category(name="Mobile Games", sort_order=1)
    cards = service.create_category(name="Gift Cards", sort_order=2)
    free_fire = service.create_product(
        name="Free Fire",
        category_id=games["id"],
        description="Garena Free Fire diamonds",
        is_featured=True,
        denominations=[
            {"amount": 520, "price": 799},
            {"amount": 100, "price": 299},
            {"amount": 310, "price": 499, "discount": 5},
        ],
    )
    steam = service.create_product(
        name="Steam Wallet",
        category_id=cards["id"],
        denominations=[{"amount": 20, "price": Decimal("2450.50")}],
    )
    by_amount = {d["amount"]: d for d in free_fire["denominations"]}
    return {
        "service": service,
        "games": games,
        "cards": cards,
        "free_fire": free_fire,
        "steam": steam,
        "diamonds_100": by_amount[100],
        "diamonds_310": by_amount[310],
        "diamonds_520": by_amount[520],
        "steam_20": steam["denominations"][0],
    }


@pytest.fixture
def order_payload(catalog):
    def make(quantity=2, denomination=None, **overrides):
        payload = {
            "items": [
                {
                    "productId": catalog["free_fire"]["id"],
                    "denominationId": (denomination or catalog["diamonds_100"])["id"],
                    "quantity": quantity,
                    "gameUid": "123456789",
                }
            ],
            "billingInfo": {"fullName": "Rahim Uddin", "email": "rahim@example.com", "phone": "01700000000"},
            "paymentMethod": "BKASH",
        }
        payload.update(overrides)
        return payload

    return make
