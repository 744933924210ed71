from conftest import png_bytes, stock_of


def _create(client, headers, product_id, quantity=2, **extra):
    return client.post("/api/orders", json={"product_id": product_id, "quantity": quantity, **extra}, headers=headers)


def test_product_listing_is_public(client, product):
    resp = client.get("/api/products")
    assert resp.status_code == 200
    [row] = resp.get_json()["products"]
    assert row["id"] == product
    assert row["price"] == 10.0
    assert row["stock"] == 5

    assert client.get(f"/api/products/{product}").get_json()["product"]["name"] == "Silver ring"
    assert client.get("/api/products/999").status_code == 404


def test_create_order_over_http(app, client, users, product, auth_header):
    resp = _create(client, auth_header(users.customer), product, notes="please hurry")
    body = resp.get_json()

    assert resp.status_code == 201
    order = body["order"]
    assert order["status"] == "pending"
    assert order["total_amount"] == 20.0
    assert order["items"][0]["quantity"] == 2
    assert order["payment"]["status"] == "unpaid"
    assert order["payment"]["amount"] == 20.0

    with app.app_context():
        assert stock_of(product) == 3


def test_create_order_requires_login(client, product):
    assert _create(client, {}, product).status_code == 401


def test_create_order_error_responses(client, users, product, auth_header):
    headers = auth_header(users.customer)

    resp = _create(client, headers, product, quantity=0)
    assert resp.status_code == 400
    assert "quantity" in resp.get_json()["fields"]

    assert _create(client, headers, product, quantity="lots").status_code == 400
    assert _create(client, headers, 999).status_code == 404

    resp = _create(client, headers, product, quantity=6)
    assert resp.status_code == 409
    assert resp.get_json()["ok"] is False

    resp = client.post("/api/orders", data="not json", headers=headers)
    assert resp.status_code == 400


def test_create_order_refuses_fractional_numbers(app, client, users, product, auth_header):
    headers = auth_header(users.customer)

    for quantity in (2.9, "2.9", 1.0, True):
        resp = _create(client, headers, product, quantity=quantity)
        assert resp.status_code == 400
        assert "quantity" in resp.get_json()["fields"]

    resp = client.post("/api/orders", json={"product_id": float(product), "quantity": 1}, headers=headers)
    assert resp.status_code == 400
    assert "product_id" in resp.get_json()["fields"]

    assert _create(client, headers, product, quantity="3").status_code == 201
    with app.app_context():
        assert stock_of(product) == 2


def test_order_reads_respect_ownership(client, users, product, auth_header):
    order_id = _create(client, auth_header(users.customer), product).get_json()["order"]["id"]

    assert client.get(f"/api/orders/{order_id}", headers=auth_header(users.customer)).status_code == 200
    assert client.get(f"/api/orders/{order_id}", headers=auth_header(users.other)).status_code == 403
    assert client.get(f"/api/orders/{order_id}", headers=auth_header(users.admin)).status_code == 200
    assert client.get("/api/orders/9999", headers=auth_header(users.customer)).status_code == 404

    mine = client.get("/api/orders", headers=auth_header(users.customer)).get_json()["orders"]
    theirs = client.get("/api/orders", headers=auth_header(users.other)).get_json()["orders"]
    assert [o["id"] for o in mine] == [order_id]
    assert theirs == []


def test_admin_order_listing_and_filter(client, users, product, auth_header):
    admin = auth_header(users.admin)
    first = _create(client, auth_header(users.customer), product, quantity=1).get_json()["order"]["id"]
    second = _create(client, auth_header(users.other), product, quantity=1).get_json()["order"]["id"]
    client.post(f"/api/admin/orders/{second}/cancel", headers=admin)

    all_ids = {o["id"] for o in client.get("/api/admin/orders", headers=admin).get_json()["orders"]}
    assert all_ids == {first, second}

    pending = client.get("/api/admin/orders?status=pending", headers=admin).get_json()["orders"]
    assert [o["id"] for o in pending] == [first]

    resp = client.get("/api/admin/orders?status=lost", headers=admin)
    assert resp.status_code == 400


def test_admin_status_update(app, client, users, product, auth_header):
    admin = auth_header(users.admin)
    order_id = _create(client, auth_header(users.customer), product).get_json()["order"]["id"]

    resp = client.put("/api/admin/orders/status", json={"order_id": order_id, "status": "confirmed"}, headers=admin)
    assert resp.status_code == 409

    resp = client.put("/api/admin/orders/status", json={"order_id": order_id, "status": "cancelled"}, headers=admin)
    assert resp.status_code == 200
    assert resp.get_json()["order"]["status"] == "cancelled"
    assert resp.get_json()["order"]["payment"]["status"] == "rejected"
    with app.app_context():
        assert stock_of(product) == 5

    resp = client.put("/api/admin/orders/status", json={"order_id": "x", "status": "cancelled"}, headers=admin)
    assert resp.status_code == 400
    resp = client.put("/api/admin/orders/status", json={"order_id": order_id + 0.5, "status": "cancelled"}, headers=admin)
    assert resp.status_code == 400
    resp = client.put("/api/admin/orders/status", json={"order_id": 9999, "status": "confirmed"}, headers=admin)
    assert resp.status_code == 404


def test_admin_status_update_moves_the_payment(app, client, users, product, auth_header):
    customer, admin = auth_header(users.customer), auth_header(users.admin)
    order_id = _create(client, customer, product).get_json()["order"]["id"]

    resp = client.put("/api/admin/orders/status", json={"order_id": order_id, "status": "waiting_confirmation"}, headers=admin)
    assert resp.status_code == 409
    assert client.get(f"/api/orders/{order_id}", headers=customer).get_json()["order"]["status"] == "pending"

    resp = client.post(
        "/api/payments",
        data={"order_id": str(order_id), "proof_image": (png_bytes(), "proof.png")},
        headers=customer,
        content_type="multipart/form-data",
    )
    assert resp.status_code == 200

    resp = client.put("/api/admin/orders/status", json={"order_id": order_id, "status": "confirmed"}, headers=admin)
    assert resp.status_code == 200
    order = resp.get_json()["order"]
    assert order["status"] == "confirmed"
    assert order["payment"]["status"] == "approved"

    assert client.get("/api/admin/payments/pending", headers=admin).get_json()["payments"] == []
    assert client.post(f"/api/admin/payments/{order['payment']['id']}/reject", headers=admin).status_code == 409
    with app.app_context():
        assert stock_of(product) == 3


def test_admin_cancel_is_idempotent(app, client, users, product, auth_header):
    admin = auth_header(users.admin)
    order_id = _create(client, auth_header(users.customer), product).get_json()["order"]["id"]

    first = client.post(f"/api/admin/orders/{order_id}/cancel", headers=admin).get_json()
    second = client.post(f"/api/admin/orders/{order_id}/cancel", headers=admin).get_json()

    assert first["cancelled"] is True
    assert second["cancelled"] is False
    with app.app_context():
        assert stock_of(product) == 5


def test_admin_product_management(app, client, users, auth_header):
    admin = auth_header(users.admin)

    resp = client.post("/api/admin/products", json={"name": "Ear cuff", "sku": "CUFF-1", "price": "12.50", "stock": 2}, headers=admin)
    assert resp.status_code == 201
    product_id = resp.get_json()["product"]["id"]
    assert resp.get_json()["product"]["price"] == 12.5

    dup = client.post("/api/admin/products", json={"name": "Other", "sku": "CUFF-1", "price": "1"}, headers=admin)
    assert dup.status_code == 409

    bad = client.post("/api/admin/products", json={"name": "", "price": "free", "stock": -1}, headers=admin)
    assert bad.status_code == 400
    assert set(bad.get_json()["fields"]) == {"name", "price", "stock"}

    resp = client.post(f"/api/admin/products/{product_id}/stock", json={"quantity": 3}, headers=admin)
    assert resp.get_json()["product"]["stock"] == 5
    assert client.post(f"/api/admin/products/{product_id}/stock", json={"quantity": 0}, headers=admin).status_code == 400
    assert client.post("/api/admin/products/999/stock", json={"quantity": 1}, headers=admin).status_code == 404

    customer = client.post("/api/admin/products", json={"name": "x", "price": "1"}, headers=auth_header(users.customer))
    assert customer.status_code == 403
