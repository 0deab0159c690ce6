def _add(client, headers, catalog, denomination="diamonds_100", quantity=1, game_uid="123456789"):
    return client.post(
        "/api/cart",
        json={
            "productId": catalog["free_fire"]["id"],
            "denominationId": catalog[denomination]["id"],
            "quantity": quantity,
            "gameUid": game_uid,
        },
        headers=headers,
    )


def test_cart_requires_authentication(client):
    response = client.get("/api/cart")
    assert response.status_code == 401
    assert response.get_json()["message"] == "No authentication token provided"

    response = client.get("/api/cart", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid authentication token"


def test_expired_token_is_rejected(client, verifier):
    token = verifier.issue("user-1", ttl=-60)
    response = client.get("/api/cart", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.get_json()["message"] == "ID token expired"


def test_empty_cart(client, auth_header):
    cart = client.get("/api/cart", headers=auth_header()).get_json()["data"]["cart"]
    assert cart == {"items": [], "totalItems": 0, "totalPrice": 0}


def test_same_line_is_merged(client, catalog, auth_header):
    headers = auth_header()
    _add(client, headers, catalog, quantity=1)
    response = _add(client, headers, catalog, quantity=2)
    cart = response.get_json()["data"]["cart"]
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 3
    assert cart["totalPrice"] == 897.0


def test_different_game_uid_is_a_separate_line(client, catalog, auth_header):
    headers = auth_header()
    _add(client, headers, catalog, game_uid="111")
    cart = _add(client, headers, catalog, game_uid="222").get_json()["data"]["cart"]
    assert cart["totalItems"] == 2
    assert [item["gameUid"] for item in cart["items"]] == ["111", "222"]


def test_cart_is_priced_from_live_denominations(client, catalog, auth_header, admin_header):
    headers = auth_header()
    _add(client, headers, catalog, denomination="diamonds_310", quantity=2)
    client.put(f"/api/admin/denominations/{catalog['diamonds_310']['id']}", json={"price": 450}, headers=admin_header)
    cart = client.get("/api/cart", headers=headers).get_json()["data"]["cart"]
    assert cart["totalPrice"] == 900.0
    assert cart["items"][0]["denomination"]["price"] == 450.0


def test_inactive_denomination_is_hidden_not_deleted(client, catalog, auth_header, admin_header):
    headers = auth_header()
    _add(client, headers, catalog, denomination="diamonds_100")
    _add(client, headers, catalog, denomination="diamonds_520")
    client.put(
        f"/api/admin/denominations/{catalog['diamonds_520']['id']}", json={"isActive": False}, headers=admin_header
    )
    cart = client.get("/api/cart", headers=headers).get_json()["data"]["cart"]
    assert [item["denomination"]["amount"] for item in cart["items"]] == [100]
    assert cart["totalPrice"] == 299.0

    client.put(
        f"/api/admin/denominations/{catalog['diamonds_520']['id']}", json={"isActive": True}, headers=admin_header
    )
    cart = client.get("/api/cart", headers=headers).get_json()["data"]["cart"]
    assert cart["totalItems"] == 2


def test_add_rejects_unknown_or_mismatched_denomination(client, catalog, auth_header):
    headers = auth_header()
    response = client.post(
        "/api/cart",
        json={"productId": catalog["free_fire"]["id"], "denominationId": catalog["steam_20"]["id"]},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.get_json()["message"] == "Denomination not found"

    response = client.post(
        "/api/cart", json={"productId": "missing", "denominationId": catalog["steam_20"]["id"]}, headers=headers
    )
    assert response.status_code == 400
    assert response.get_json()["message"] == "Product not found"

    response = client.post("/api/cart", json={"productId": catalog["free_fire"]["id"]}, headers=headers)
    assert response.status_code == 400
    assert response.get_json()["errors"][0]["field"] == "denominationId"


def test_update_quantity_and_zero_removes(client, catalog, auth_header):
    headers = auth_header()
    item_id = _add(client, headers, catalog).get_json()["data"]["cart"]["items"][0]["id"]

    response = client.put(f"/api/cart/{item_id}", json={"quantity": 4}, headers=headers)
    assert response.get_json()["data"]["cart"]["items"][0]["quantity"] == 4

    response = client.put(f"/api/cart/{item_id}", json={"quantity": 0}, headers=headers)
    assert response.status_code == 200
    assert response.get_json()["message"] == "Item removed from cart"
    assert response.get_json()["data"]["cart"]["items"] == []


def test_changing_game_uid_onto_existing_line_merges(client, catalog, auth_header):
    headers = auth_header()
    _add(client, headers, catalog, game_uid="111")
    items = _add(client, headers, catalog, game_uid="222").get_json()["data"]["cart"]["items"]
    first_id, second_id = items[0]["id"], items[1]["id"]

    response = client.put(f"/api/cart/{second_id}", json={"quantity": 2, "gameUid": "111"}, headers=headers)
    assert response.status_code == 200
    cart = response.get_json()["data"]["cart"]
    assert [(item["id"], item["gameUid"], item["quantity"]) for item in cart["items"]] == [(first_id, "111", 3)]
    assert cart["totalPrice"] == 897.0


def test_negative_quantity_is_rejected(client, catalog, auth_header):
    headers = auth_header()
    item_id = _add(client, headers, catalog).get_json()["data"]["cart"]["items"][0]["id"]
    response = client.put(f"/api/cart/{item_id}", json={"quantity": -1}, headers=headers)
    assert response.status_code == 400


def test_remove_missing_item_is_404(client, catalog, auth_header):
    headers = auth_header()
    assert client.delete("/api/cart/unknown", headers=headers).status_code == 404
    _add(client, headers, catalog)
    response = client.delete("/api/cart/unknown", headers=headers)
    assert response.status_code == 404
    assert response.get_json()["message"] == "Cart item not found"


def test_carts_are_per_user(client, catalog, auth_header):
    _add(client, auth_header("alice"), catalog)
    cart = client.get("/api/cart", headers=auth_header("bob")).get_json()["data"]["cart"]
    assert cart["items"] == []


def test_clear_cart(client, catalog, auth_header):
    headers = auth_header()
    _add(client, headers, catalog)
    assert client.delete("/api/cart", headers=headers).status_code == 200
    assert client.get("/api/cart", headers=headers).get_json()["data"]["cart"]["totalItems"] == 0
