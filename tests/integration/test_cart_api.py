from fastapi.testclient import TestClient

ITEM = {"id": "p1", "name": "Ebook", "price": 2500}


def test_empty_cart_snapshot(client):
    r = client.get("/api/v1/cart")
    assert r.status_code == 200
    data = r.json()
    assert data["items"] == []
    assert data["subtotal"] == 0
    assert data["fee"] == 0
    assert data["total"] == 0
    assert data["fee_percentage"] == 5


def test_add_merge_update_remove_flow(client):
    # Arrange / Act: ajout puis fusion sur le même id
    client.post("/api/v1/cart/items", json={**ITEM, "quantity": 1})
    r = client.post("/api/v1/cart/items", json={**ITEM, "quantity": 2})

    # Assert
    data = r.json()
    assert len(data["items"]) == 1
    assert data["items"][0]["quantity"] == 3
    assert data["subtotal"] == 7500
    assert data["fee"] == 375
    assert data["total"] == 7875
    assert data["is_open"] is True

    r = client.patch("/api/v1/cart/items/p1", json={"quantity": 1})
    assert r.json()["items"][0]["quantity"] == 1

    r = client.patch("/api/v1/cart/items/ghost", json={"quantity": 4})
    assert [it["id"] for it in r.json()["items"]] == ["p1"]

    r = client.patch("/api/v1/cart/items/p1", json={"quantity": 0})
    assert r.json()["items"] == []


def test_cart_persists_across_requests_of_same_session(client, cart_storage):
    client.post("/api/v1/cart/items", json=ITEM)

    r = client.get("/api/v1/cart")

    assert [it["id"] for it in r.json()["items"]] == ["p1"]
    # Une seule clé panier, préfixée par la clé de stockage
    assert len(cart_storage._data) == 1
    assert next(iter(cart_storage._data)).startswith("digital_store_cart:")


def test_carts_are_isolated_per_session(app, client):
    client.post("/api/v1/cart/items", json=ITEM)

    with TestClient(app) as other:
        assert other.get("/api/v1/cart").json()["items"] == []


def test_remove_and_clear(client):
    client.post("/api/v1/cart/items", json=ITEM)
    client.post("/api/v1/cart/items", json={"id": "p2", "name": "Cours", "price": 1000})

    r = client.delete("/api/v1/cart/items/p1")
    assert [it["id"] for it in r.json()["items"]] == ["p2"]

    r = client.delete("/api/v1/cart")
    assert r.json()["items"] == []


def test_add_item_validation(client):
    assert client.post("/api/v1/cart/items", json={**ITEM, "quantity": 0}).status_code == 422
    assert client.post("/api/v1/cart/items", json={**ITEM, "price": -1}).status_code == 422
    assert client.post("/api/v1/cart/items", json={"name": "sans id", "price": 10}).status_code == 422


def test_cart_checkout_uses_session_cart(client, provider):
    client.post("/api/v1/cart/items", json={**ITEM, "quantity": 4})

    r = client.post("/api/v1/cart/checkout", json={"customer_id": "cus_42"})

    assert r.status_code == 200
    assert r.json()["session_id"] == "cs_test_1"
    request = provider.requests[0]
    assert request.customer_id == "cus_42"
    assert request.line_items[-1].unit_amount == 500
    # Le panier n'est pas vidé par le checkout
    assert client.get("/api/v1/cart").json()["items"][0]["quantity"] == 4


def test_cart_checkout_empty_cart(client, provider):
    r = client.post("/api/v1/cart/checkout")
    assert r.status_code == 400
    assert r.json() == {"error": "Cart is empty"}
    assert provider.requests == []
