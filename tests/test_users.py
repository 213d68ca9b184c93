from pathlib import Path

from conftest import login, png_upload


def test_list_users_requires_admin(client, admin, alice):
    resp = client.get("/users", headers=alice.headers)
    assert resp.status_code == 403
    assert resp.get_json()["message"] == "Access denied. Admins only."

    resp = client.get("/users", headers=admin.headers)
    assert resp.status_code == 200
    users = resp.get_json()["users"]
    emails = [user["email"] for user in users]
    assert "admin@test.com" in emails and "alice@test.com" in emails
    assert all("password_hash" not in user and "password" not in user for user in users)


def test_admin_check_for_vanished_account(client, admin):
    assert client.delete(f"/users/{admin.id}", headers=admin.headers).status_code == 200
    resp = client.get("/users", headers=admin.headers)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "User not found."


def test_get_user_is_public(client, alice):
    resp = client.get(f"/users/{alice.id}")
    assert resp.status_code == 200
    user = resp.get_json()["user"]
    assert user["name"] == "Alice"
    assert user["questions"] == [] and user["tweets"] == []
    assert user["followers"] == [] and user["following"] == []


def test_get_unknown_user(client):
    resp = client.get("/users/999")
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "User not found"


def test_admin_creates_user_with_image(app, client, admin):
    resp = client.post(
        "/users",
        data={"email": "gina@test.com", "password": "secret", "name": "Gina", "isAdmin": "true", "image": png_upload()},
        content_type="multipart/form-data",
        headers=admin.headers,
    )
    assert resp.status_code == 201
    user = resp.get_json()["user"]
    assert user["isAdmin"] is True
    assert user["image"].startswith("images/") and user["image"].endswith(".png")
    assert (Path(app.config["UPLOAD_FOLDER"]) / Path(user["image"]).name).exists()

    gina = login(client, "gina@test.com", "secret")
    assert client.get("/users", headers=gina.headers).status_code == 200


def test_admin_create_rejects_duplicate(client, admin, alice):
    resp = client.post(
        "/users",
        json={"email": "alice@test.com", "password": "secret", "name": "Again"},
        headers=admin.headers,
    )
    assert resp.status_code == 422
    assert resp.get_json()["details"][0]["msg"] == "Email address already exists!"


def test_admin_partial_update_rehashes_password(client, admin, alice):
    resp = client.put(
        f"/users/{alice.id}",
        json={"name": "Alice B", "password": "newsecret"},
        headers=admin.headers,
    )
    assert resp.status_code == 200
    user = resp.get_json()["user"]
    assert user["name"] == "Alice B"
    assert user["email"] == "alice@test.com"

    bad = client.post("/auth/login", json={"email": "alice@test.com", "password": "secret"})
    assert bad.status_code == 422
    assert login(client, "alice@test.com", "newsecret").id == alice.id


def test_update_replaces_uploaded_image(app, client, admin, alice):
    folder = Path(app.config["UPLOAD_FOLDER"])
    first = client.put(
        f"/users/{alice.id}",
        data={"image": png_upload()},
        content_type="multipart/form-data",
        headers=admin.headers,
    ).get_json()["user"]["image"]
    assert (folder / Path(first).name).exists()

    second = client.put(
        f"/users/{alice.id}",
        data={"image": png_upload("other.png")},
        content_type="multipart/form-data",
        headers=admin.headers,
    ).get_json()["user"]["image"]
    assert second != first
    assert not (folder / Path(first).name).exists()
    assert (folder / Path(second).name).exists()


def test_failed_update_removes_new_avatar(app, client, admin, alice, bob):
    resp = client.put(
        f"/users/{alice.id}",
        data={"email": bob.email, "image": png_upload()},
        content_type="multipart/form-data",
        headers=admin.headers,
    )
    assert resp.status_code == 422
    assert list(Path(app.config["UPLOAD_FOLDER"]).iterdir()) == []


def test_delete_user_cascades_content(client, admin, alice, bob):
    resp = client.post("/tweets", json={"text": "hello"}, headers=alice.headers)
    tweet_id = resp.get_json()["tweet"]["_id"]
    client.post("/comments", json={"tweet": tweet_id, "text": "hi alice"}, headers=bob.headers)

    resp = client.delete(f"/users/{alice.id}", headers=admin.headers)
    assert resp.status_code == 200
    assert resp.get_json()["user"]["email"] == "alice@test.com"

    assert client.get(f"/tweets/{tweet_id}").status_code == 404
    assert client.get("/comments").get_json()["total"] == 0
    assert client.get(f"/users/{alice.id}").status_code == 404


def test_follow_toggle(client, alice, bob):
    resp = client.put(f"/users/follow/{bob.id}", headers=alice.headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["followed"] is True
    assert [u["_id"] for u in body["user"]["following"]] == [bob.id]

    bob_profile = client.get(f"/users/{bob.id}").get_json()["user"]
    assert [u["_id"] for u in bob_profile["followers"]] == [alice.id]

    resp = client.put(f"/users/follow/{bob.id}", headers=alice.headers)
    assert resp.get_json()["followed"] is False
    assert client.get(f"/users/{bob.id}").get_json()["user"]["followers"] == []


def test_follow_rules(client, alice):
    resp = client.put(f"/users/follow/{alice.id}", headers=alice.headers)
    assert resp.status_code == 422
    assert resp.get_json()["message"] == "You cannot follow yourself"

    assert client.put("/users/follow/999", headers=alice.headers).status_code == 404
