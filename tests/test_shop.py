from pathlib import Path

import pytest

from conftest import png_upload


def create_product(client, account, name="Blue Lamp", price="19.50", description="A lamp that is blue"):
    resp = client.post(
        "/products",
        data={"name": name, "price": price, "description": description, "image": png_upload()},
        content_type="multipart/form-data",
        headers=account.headers,
    )
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["product"]


# ── Products ─────────────────────────────────────────────────────────────────


def test_products_require_auth(client):
    assert client.get("/products").status_code == 401


def test_create_and_get_product(app, client, alice):
    product = create_product(client, alice)
    assert product["name"] == "Blue Lamp"
    assert product["price"] == pytest.approx(19.5)
    assert product["creator"] == alice.id
    assert (Path(app.config["UPLOAD_FOLDER"]) / Path(product["imageUrl"]).name).exists()

    resp = client.get(f"/products/{product['_id']}", headers=alice.headers)
    assert resp.status_code == 200
    assert resp.get_json()["product"]["_id"] == product["_id"]


def test_create_product_requires_image(client, alice):
    resp = client.post(
        "/products",
        json={"name": "Blue Lamp", "price": 3, "description": "A lamp that is blue"},
        headers=alice.headers,
    )
    assert resp.status_code == 422
    assert resp.get_json()["message"] == "No image provided"


def test_create_product_validation(client, alice):
    resp = client.post(
        "/products",
        data={"name": "abc", "price": "-1", "description": "tiny", "image": png_upload()},
        content_type="multipart/form-data",
        headers=alice.headers,
    )
    assert resp.status_code == 422
    paths = {detail["path"] for detail in resp.get_json()["details"]}
    assert paths == {"name", "price", "description"}


def test_create_product_rejects_file_type(client, alice):
    resp = client.post(
        "/products",
        data={"name": "Blue Lamp", "price": "1", "description": "A lamp that is blue", "image": png_upload("x.exe")},
        content_type="multipart/form-data",
        headers=alice.headers,
    )
    assert resp.status_code == 422
    assert resp.get_json()["message"].startswith("File type not allowed")


def test_get_missing_product(client, alice):
    resp = client.get("/products/42", headers=alice.headers)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Could not find the product with id: 42"


def test_list_products_pagination(client, alice, app):
    app.config["SETTINGS"].products_per_page = 2
    for i in range(3):
        create_product(client, alice, name=f"Product {i}")

    everything = client.get("/products", headers=alice.headers).get_json()
    assert everything["totalItems"] == 3
    assert len(everything["products"]) == 3

    page2 = client.get("/products?page=2", headers=alice.headers).get_json()
    assert page2["totalItems"] == 3
    assert [p["name"] for p in page2["products"]] == ["Product 2"]


def test_update_product_keeps_or_replaces_image(app, client, alice):
    product = create_product(client, alice)
    folder = Path(app.config["UPLOAD_FOLDER"])

    resp = client.put(
        f"/products/{product['_id']}",
        json={"name": "Red Lamp", "price": 5, "description": "A lamp that is red", "image": product["imageUrl"]},
        headers=alice.headers,
    )
    assert resp.status_code == 200
    assert resp.get_json()["product"]["imageUrl"] == product["imageUrl"]
    assert (folder / Path(product["imageUrl"]).name).exists()

    resp = client.put(
        f"/products/{product['_id']}",
        data={"name": "Red Lamp", "price": "5", "description": "A lamp that is red", "image": png_upload()},
        content_type="multipart/form-data",
        headers=alice.headers,
    )
    updated = resp.get_json()["product"]
    assert updated["imageUrl"] != product["imageUrl"]
    assert not (folder / Path(product["imageUrl"]).name).exists()


def test_update_product_without_image(client, alice):
    product = create_product(client, alice)
    resp = client.put(
        f"/products/{product['_id']}",
        json={"name": "Red Lamp", "price": 5, "description": "A lamp that is red"},
        headers=alice.headers,
    )
    assert resp.status_code == 422
    assert resp.get_json()["message"] == "No file picked"


def test_only_owner_or_admin_mutates_product(client, alice, bob, admin):
    product = create_product(client, alice)
    payload = {"name": "Hijacked", "price": 1, "description": "Not yours at all", "image": product["imageUrl"]}

    resp = client.put(f"/products/{product['_id']}", json=payload, headers=bob.headers)
    assert resp.status_code == 403
    assert resp.get_json()["message"] == "Not authorized"
    assert client.delete(f"/products/{product['_id']}", headers=bob.headers).status_code == 403

    resp = client.put(f"/products/{product['_id']}", json=payload, headers=admin.headers)
    assert resp.status_code == 200


def test_product_cannot_take_another_users_image(app, client, alice, bob):
    alices = create_product(client, alice)
    bobs = create_product(client, bob, name="Green Lamp")
    folder = Path(app.config["UPLOAD_FOLDER"])

    payload = {"name": "Green Lamp", "price": 3, "description": "A lamp that is green", "image": alices["imageUrl"]}
    resp = client.put(f"/products/{bobs['_id']}", json=payload, headers=bob.headers)
    assert resp.status_code == 422
    assert resp.get_json()["message"] == "Images must be uploaded as a file"

    assert client.delete(f"/products/{bobs['_id']}", headers=bob.headers).status_code == 200
    assert (folder / Path(alices["imageUrl"]).name).is_file()


def test_failed_product_create_removes_upload(app, client, alice, monkeypatch):
    def broken_insert(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr("app.services.shop.create_product", broken_insert)
    resp = client.post(
        "/products",
        data={"name": "Blue Lamp", "price": "2", "description": "A lamp that is blue", "image": png_upload()},
        content_type="multipart/form-data",
        headers=alice.headers,
    )
    assert resp.status_code == 500
    assert resp.get_json()["message"] == "Product creation failed"
    assert list(Path(app.config["UPLOAD_FOLDER"]).iterdir()) == []


def test_delete_product_removes_image(app, client, alice):
    product = create_product(client, alice)
    resp = client.delete(f"/products/{product['_id']}", headers=alice.headers)
    assert resp.status_code == 200
    assert not (Path(app.config["UPLOAD_FOLDER"]) / Path(product["imageUrl"]).name).exists()
    assert client.get(f"/products/{product['_id']}", headers=alice.headers).status_code == 404


# ── Cart ─────────────────────────────────────────────────────────────────────


def test_cart_lifecycle(client, alice):
    product = create_product(client, alice)

    resp = client.get("/cart", headers=alice.headers)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Cart not found"

    resp = client.post("/cart", json={"productId": product["_id"], "quantity": 2}, headers=alice.headers)
    assert resp.status_code == 201
    resp = client.post("/cart", json={"productId": product["_id"], "quantity": 3}, headers=alice.headers)
    lines = resp.get_json()["cart"]["products"]
    assert len(lines) == 1
    assert lines[0]["quantity"] == 5
    assert lines[0]["product"]["_id"] == product["_id"]

    resp = client.delete(f"/cart/{product['_id']}", headers=alice.headers)
    assert resp.status_code == 200
    assert resp.get_json()["cart"]["products"] == []

    resp = client.delete(f"/cart/{product['_id']}", headers=alice.headers)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Product not found in cart"


def test_cart_rules(client, alice):
    resp = client.post("/cart", json={"productId": 999, "quantity": 1}, headers=alice.headers)
    assert resp.status_code == 404

    resp = client.post("/cart", json={"productId": 1, "quantity": 0}, headers=alice.headers)
    assert resp.status_code == 422

    resp = client.delete("/cart/1", headers=alice.headers)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Cart not found"


# ── Orders ───────────────────────────────────────────────────────────────────


def test_order_snapshots_cart(client, alice, bob):
    lamp = create_product(client, alice, price="10")
    chair = create_product(client, alice, name="Green Chair", price="2.5")
    client.post("/cart", json={"productId": lamp["_id"], "quantity": 2}, headers=bob.headers)
    client.post("/cart", json={"productId": chair["_id"], "quantity": 4}, headers=bob.headers)

    resp = client.post("/orders", headers=bob.headers)
    assert resp.status_code == 201
    order = resp.get_json()["order"]
    assert order["creator"] == bob.id
    assert order["total"] == pytest.approx(30.0)
    assert [(line["productItem"]["name"], line["quantity"]) for line in order["orderList"]] == [
        ("Blue Lamp", 2),
        ("Green Chair", 4),
    ]

    assert client.get("/cart", headers=bob.headers).get_json()["cart"]["products"] == []
    resp = client.post("/orders", headers=bob.headers)
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Cart is empty"

    # Deleting a product keeps the order's snapshot intact.
    client.delete(f"/products/{lamp['_id']}", headers=alice.headers)
    resp = client.get(f"/orders/{order['_id']}", headers=bob.headers)
    assert resp.status_code == 200
    assert resp.get_json()["order"]["total"] == pytest.approx(30.0)


def test_order_without_cart(client, alice):
    resp = client.post("/orders", headers=alice.headers)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Cart not found"


def test_orders_are_private(client, alice, bob, admin):
    product = create_product(client, alice)
    client.post("/cart", json={"productId": product["_id"], "quantity": 1}, headers=bob.headers)
    order_id = client.post("/orders", headers=bob.headers).get_json()["order"]["_id"]

    assert client.get("/orders", headers=alice.headers).get_json()["orders"] == []
    assert len(client.get("/orders", headers=bob.headers).get_json()["orders"]) == 1

    assert client.get(f"/orders/{order_id}", headers=alice.headers).status_code == 403
    assert client.get(f"/orders/{order_id}", headers=admin.headers).status_code == 200
    assert client.delete(f"/orders/{order_id}", headers=alice.headers).status_code == 403

    resp = client.delete(f"/orders/{order_id}", headers=bob.headers)
    assert resp.status_code == 200
    assert client.get(f"/orders/{order_id}", headers=bob.headers).get_json()["message"] == "Order not found"
