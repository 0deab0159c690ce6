import json
import logging
from decimal import Decimal

import pytest
import requests

from gamestore.checkout import (
    ApiCheckoutTier,
    BillingInfo,
    CheckoutDraft,
    CheckoutError,
    CheckoutLine,
    CheckoutOrchestrator,
    FirestoreCheckoutTier,
    LocalCheckoutTier,
    ManualPaymentForm,
    build_orchestrator,
)
from gamestore.services.local_order_repository import LocalOrderRepository


def make_draft(id_token=None, game_uid="123456789", category="mobile-games", lines=None):
    return CheckoutDraft(
        lines=lines
        if lines is not None
        else [CheckoutLine("prod-1", "denom-1", "Free Fire", Decimal("299"), quantity=2, category=category)],
        billing=BillingInfo("Rahim Uddin", "rahim@example.com", "01700000000"),
        payment=ManualPaymentForm("BKASH", "01711111111", "TX1", sender_name="Rahim", game_uid=game_uid),
        id_token=id_token,
    )


class FakeTier:
    def __init__(self, name, fail_on=None):
        self.name = name
        self.fail_on = fail_on
        self.calls = []

    def create_order(self, draft):
        self.calls.append("order")
        if self.fail_on == "order":
            raise RuntimeError(f"{self.name} down")
        return {"id": f"{self.name}-order", "orderNumber": f"ORD-{self.name}"}

    def create_payment(self, order, draft):
        self.calls.append("payment")
        if self.fail_on == "payment":
            raise RuntimeError(f"{self.name} payment rejected")
        return {"orderId": order["id"]}


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class StubSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeDocRef:
    def __init__(self, doc_id):
        self.id = doc_id


class FakeCollection:
    def __init__(self, name, store):
        self.name = name
        self.store = store

    def add(self, data):
        docs = self.store.setdefault(self.name, [])
        docs.append(data)
        return None, FakeDocRef(f"{self.name}-{len(docs)}")


class FakeFirestore:
    def __init__(self):
        self.store = {}

    def collection(self, name):
        return FakeCollection(name, self.store)


def test_first_success_wins():
    api, firestore, local = FakeTier("api"), FakeTier("firestore"), FakeTier("local")
    receipt = CheckoutOrchestrator([api, firestore, local]).place_order(make_draft())
    assert receipt.tier == "api"
    assert receipt.message == "Order placed successfully!"
    assert firestore.calls == [] and local.calls == []


def test_falls_through_failures_with_same_message(caplog):
    api = FakeTier("api", fail_on="payment")
    firestore = FakeTier("firestore", fail_on="order")
    local = FakeTier("local")
    with caplog.at_level(logging.WARNING, logger="gamestore.events"):
        receipt = CheckoutOrchestrator([api, firestore, local]).place_order(make_draft())
    assert receipt.tier == "local"
    assert receipt.message == "Order placed successfully!"
    assert receipt.failures == ["api: api payment rejected", "firestore: firestore down"]
    failed = [json.loads(r.getMessage()) for r in caplog.records if "checkout.tier_failed" in r.getMessage()]
    assert [f["tier"] for f in failed] == ["api", "firestore"]


def test_all_tiers_failing_raises():
    tiers = [FakeTier("api", fail_on="order"), FakeTier("local", fail_on="order")]
    with pytest.raises(CheckoutError):
        CheckoutOrchestrator(tiers).place_order(make_draft())


@pytest.mark.parametrize(
    "draft, message",
    [
        (make_draft(lines=[]), "Your cart is empty"),
        (make_draft(game_uid=""), "Please enter your Game UID for game items"),
    ],
)
def test_client_validation_runs_before_any_tier(draft, message):
    tier = FakeTier("api")
    with pytest.raises(CheckoutError, match=message):
        CheckoutOrchestrator([tier]).place_order(draft)
    assert tier.calls == []


def test_gift_cards_do_not_need_game_uid():
    draft = make_draft(game_uid="", category="gift-card")
    assert CheckoutOrchestrator([FakeTier("api")]).place_order(draft).tier == "api"


def test_payment_details_are_required():
    draft = make_draft()
    draft.payment.transaction_id = ""
    with pytest.raises(CheckoutError, match="payment details"):
        CheckoutOrchestrator([FakeTier("api")]).place_order(draft)


def test_api_tier_guest_flow():
    session = StubSession(
        [
            FakeResponse(201, {"success": True, "data": {"order": {"id": "o-1", "orderNumber": "ORD-240101-ABC123"}}}),
            FakeResponse(201, {"success": True, "data": {"payment": {"id": "p-1"}}}),
        ]
    )
    tier = ApiCheckoutTier("http://store.test/api/", session=session)
    draft = make_draft()
    order = tier.create_order(draft)
    tier.create_payment(order, draft)

    order_request, payment_request = session.requests
    assert order_request["url"] == "http://store.test/api/orders/guest"
    assert "Authorization" not in order_request["headers"]
    assert order_request["json"]["items"][0] == {
        "productId": "prod-1",
        "denominationId": "denom-1",
        "gameUid": "123456789",
        "quantity": 2,
    }
    assert payment_request["url"] == "http://store.test/api/payments/manual"
    assert payment_request["json"]["amount"] == 598.0
    assert payment_request["json"]["orderId"] == "o-1"


def test_api_tier_authenticated_flow_uses_bearer_token():
    session = StubSession([FakeResponse(201, {"success": True, "data": {"order": {"id": "o-1"}}})])
    ApiCheckoutTier("http://store.test/api", session=session).create_order(make_draft(id_token="tok"))
    assert session.requests[0]["url"] == "http://store.test/api/orders"
    assert session.requests[0]["headers"]["Authorization"] == "Bearer tok"


@pytest.mark.parametrize(
    "result",
    [
        FakeResponse(400, {"success": False, "message": "This transaction ID has already been used"}),
        FakeResponse(502, None),
        requests.exceptions.ConnectionError("refused"),
    ],
)
def test_api_tier_failures_fall_back(tmp_path, result):
    session = StubSession([FakeResponse(201, {"success": True, "data": {"order": {"id": "o-1"}}}), result])
    local = LocalCheckoutTier(LocalOrderRepository(tmp_path / "orders.json"))
    receipt = CheckoutOrchestrator([ApiCheckoutTier("http://store.test/api", session=session), local]).place_order(
        make_draft()
    )
    assert receipt.tier == "local"


def test_firestore_tier_writes_order_and_payment():
    client = FakeFirestore()
    tier = FirestoreCheckoutTier(client, clock=lambda: 1700000000.5)
    draft = make_draft()
    order = tier.create_order(draft)
    payment = tier.create_payment(order, draft)

    assert order["id"] == "orders-1"
    assert order["orderNumber"] == "ORD-1700000000500"
    assert order["status"] == "pending"
    assert order["userId"] == "guest"
    assert order["items"] == [{"productId": "prod-1", "productName": "Free Fire", "quantity": 2, "price": 299.0}]
    assert order["shippingInfo"]["address"] == "123456789"
    assert payment["orderId"] == "orders-1"
    assert client.store["payments"][0]["paymentDetails"]["senderNumber"] == "01711111111"
    assert "createdAt" in client.store["orders"][0]


def test_local_tier_appends_demo_orders(tmp_path):
    path = tmp_path / "nested" / "orders.json"
    ticks = iter([1700000000.0, 1700000001.0])
    tier = LocalCheckoutTier(LocalOrderRepository(path), clock=lambda: next(ticks))
    receipt = CheckoutOrchestrator([tier]).place_order(make_draft())
    CheckoutOrchestrator([tier]).place_order(make_draft())

    assert receipt.order["id"] == "demo-1700000000000"
    stored = json.loads(path.read_text(encoding="utf-8"))
    assert [o["id"] for o in stored] == ["demo-1700000000000", "demo-1700000001000"]
    assert stored[0]["status"] == "PENDING"
    assert stored[0]["totalAmount"] == 598.0


def test_local_repository_rejects_corrupt_file(tmp_path):
    path = tmp_path / "orders.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        LocalOrderRepository(path).list_orders()


def test_local_tier_survives_corrupt_file(tmp_path, caplog):
    path = tmp_path / "orders.json"
    path.write_text("{not json", encoding="utf-8")
    tier = LocalCheckoutTier(LocalOrderRepository(path), clock=lambda: 1700000000.0)
    with caplog.at_level(logging.ERROR, logger="gamestore.events"):
        receipt = CheckoutOrchestrator([tier]).place_order(make_draft())

    assert receipt.tier == "local"
    assert receipt.message == "Order placed successfully!"
    assert receipt.order["id"] == "demo-1700000000000"
    assert receipt.failures == []
    events = [json.loads(r.getMessage()) for r in caplog.records if "checkout.local_store_failed" in r.getMessage()]
    assert events[0]["order_id"] == "demo-1700000000000"
    assert path.read_text(encoding="utf-8") == "{not json"


def test_build_orchestrator_default_tiers(config):
    assert build_orchestrator(config).tier_names == ["api", "local"]
    assert build_orchestrator(config, firestore_client=FakeFirestore()).tier_names == ["api", "firestore", "local"]
