import pytest


@pytest.fixture
def place_order(client, order_payload):
    def make(headers=None, quantity=2):
        if headers is None:
            response = client.post("/api/orders/guest", json=order_payload(quantity=quantity))
        else:
            response = client.post("/api/orders", json=order_payload(quantity=quantity), headers=headers)
        return response.get_json()["data"]["order"]

    return make


def _manual(order_id, amount, transaction_id="TX1", method="BKASH"):
    return {
        "orderId": order_id,
        "paymentMethod": method,
        "senderNumber": "01711111111",
        "transactionId": transaction_id,
        "amount": amount,
        "senderName": "Rahim",
    }


def test_checkout_scenario(client, catalog, auth_header, place_order):
    headers = auth_header()
    order = place_order(headers)
    assert order["totalAmount"] == 598.0

    response = client.post("/api/payments/manual", json=_manual(order["id"], 598), headers=headers)
    assert response.status_code == 201
    payment = response.get_json()["data"]["payment"]
    assert payment["status"] == "PENDING"
    assert payment["transactionId"] == "TX1"

    fetched = client.get(f"/api/orders/{order['id']}", headers=headers).get_json()["data"]["order"]
    assert fetched["paymentStatus"] == "PROCESSING"
    assert fetched["status"] == "PENDING"

    other = place_order(headers)
    response = client.post("/api/payments/manual", json=_manual(other["id"], 598), headers=headers)
    assert response.status_code == 400
    assert "already been used" in response.get_json()["message"]

    response = client.get(f"/api/orders/number/{order['orderNumber']}")
    assert response.status_code == 200

    response = client.patch(f"/api/admin/orders/{order['id']}", json={"status": "COMPLETED"}, headers=headers)
    assert response.status_code == 403


@pytest.mark.parametrize("amount, expected", [(597, 201), (599, 201), (596.99, 400), (599.01, 400)])
def test_amount_tolerance(client, catalog, auth_header, place_order, amount, expected):
    headers = auth_header()
    order = place_order(headers)
    response = client.post("/api/payments/manual", json=_manual(order["id"], amount), headers=headers)
    assert response.status_code == expected
    if expected == 400:
        assert response.get_json()["message"] == "Amount does not match order total"


def test_payment_for_someone_elses_order_is_forbidden(client, catalog, auth_header, place_order):
    order = place_order(auth_header("alice"))
    response = client.post("/api/payments/manual", json=_manual(order["id"], 598), headers=auth_header("mallory"))
    assert response.status_code == 403


def test_any_caller_may_pay_for_guest_order(client, catalog, auth_header, place_order):
    order = place_order()
    response = client.post("/api/payments/manual", json=_manual(order["id"], 598, method="NAGAD"), headers=auth_header("anyone"))
    assert response.status_code == 201


def test_missing_order_is_404(client, catalog, auth_header):
    response = client.post("/api/payments/manual", json=_manual("nope", 598), headers=auth_header())
    assert response.status_code == 404


def test_manual_payment_validates_fields(client, catalog, auth_header, place_order):
    headers = auth_header()
    order = place_order(headers)
    payload = _manual(order["id"], 598, method="CARD")
    response = client.post("/api/payments/manual", json=payload, headers=headers)
    assert response.status_code == 400
    assert response.get_json()["errors"][0]["field"] == "paymentMethod"

    payload = _manual(order["id"], 598)
    payload["transactionId"] = "   "
    response = client.post("/api/payments/manual", json=payload, headers=headers)
    assert response.get_json()["errors"][0]["field"] == "transactionId"


def test_resubmission_allowed_until_payment_settles(client, catalog, auth_header, admin_header, place_order):
    headers = auth_header()
    order = place_order(headers)
    client.post("/api/payments/manual", json=_manual(order["id"], 598, "TX-A"), headers=headers)
    response = client.post("/api/payments/manual", json=_manual(order["id"], 598, "TX-B"), headers=headers)
    assert response.status_code == 201

    client.post(f"/api/admin/orders/{order['id']}/complete", headers=admin_header)
    response = client.post("/api/payments/manual", json=_manual(order["id"], 598, "TX-C"), headers=headers)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Order payment is already COMPLETED"


def test_card_payment_stub(client, catalog, auth_header, place_order):
    headers = auth_header()
    order = place_order(headers)
    response = client.post("/api/payments/card", json={"orderId": order["id"]}, headers=headers)
    assert response.status_code == 200
    assert response.get_json()["data"] == {"orderId": order["id"], "amount": 598.0, "status": "processing"}

    status = client.get(f"/api/payments/order/{order['id']}", headers=headers).get_json()["data"]
    assert status["order"]["paymentStatus"] == "PROCESSING"
    assert status["payment"]["paymentMethod"] == "CARD"
    assert status["payment"]["transactionId"].startswith("CARD-")


def test_payment_status_access(client, catalog, auth_header, admin_header, place_order):
    order = place_order(auth_header("alice"))
    assert client.get(f"/api/payments/order/{order['id']}", headers=auth_header("bob")).status_code == 403
    response = client.get(f"/api/payments/order/{order['id']}", headers=admin_header)
    assert response.status_code == 200
    assert response.get_json()["data"]["payment"] is None


def test_admin_review_settles_payment(client, catalog, auth_header, admin_header, place_order):
    headers = auth_header()
    order = place_order(headers)
    payment = client.post("/api/payments/manual", json=_manual(order["id"], 598), headers=headers).get_json()["data"][
        "payment"
    ]

    listed = client.get("/api/admin/payments?status=PENDING", headers=admin_header).get_json()["data"]["payments"]
    assert [p["id"] for p in listed] == [payment["id"]]

    response = client.post(
        f"/api/admin/payments/{payment['id']}/review", json={"approved": True, "notes": "ok"}, headers=admin_header
    )
    result = response.get_json()["data"]
    assert result["payment"]["status"] == "COMPLETED"
    assert result["order"]["paymentStatus"] == "COMPLETED"

    response = client.post(f"/api/admin/payments/{payment['id']}/review", json={"approved": False}, headers=admin_header)
    assert response.status_code == 400


def test_admin_review_rejection(client, catalog, auth_header, admin_header, place_order):
    headers = auth_header()
    order = place_order(headers)
    payment = client.post("/api/payments/manual", json=_manual(order["id"], 598), headers=headers).get_json()["data"][
        "payment"
    ]
    response = client.post(f"/api/admin/payments/{payment['id']}/review", json={"approved": "yes"}, headers=admin_header)
    assert response.status_code == 400
    response = client.post(f"/api/admin/payments/{payment['id']}/review", json={"approved": False}, headers=admin_header)
    assert response.get_json()["data"]["order"]["paymentStatus"] == "FAILED"


def test_card_payment_id_collision_is_a_conflict(client, catalog, auth_header, place_order, monkeypatch):
    from types import SimpleNamespace

    from gamestore.common.services import payment_service

    monkeypatch.setattr(payment_service, "time", SimpleNamespace(time=lambda: 1700000000.0))
    headers = auth_header()
    first = place_order(headers)
    second = place_order(headers)
    assert client.post("/api/payments/card", json={"orderId": first["id"]}, headers=headers).status_code == 200

    response = client.post("/api/payments/card", json={"orderId": second["id"]}, headers=headers)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Card payment could not be started, please try again"

    status = client.get(f"/api/payments/order/{second['id']}", headers=headers).get_json()["data"]
    assert status["order"]["paymentStatus"] == "PENDING"
    assert status["payment"] is None
