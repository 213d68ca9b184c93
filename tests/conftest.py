"""Shared pytest fixtures for the API test suite.

Fixture overview
----------------
app          - application bound to a throwaway SQLite file and upload folder,
               with e-mail verification off and a seeded admin account
client       - Flask test client for ``app``
register     - factory that signs a user up, logs in and returns its token
admin        - logged-in seeded admin
alice / bob  - two ordinary logged-in users
sent_mail    - records verification mails instead of calling SendGrid
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Callable

import pytest

from app import create_app
from backend.mailer import MailClient

ADMIN_EMAIL = "admin@test.com"
ADMIN_PASSWORD = "adminpass"
TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@dataclass
class Account:
    id: int
    email: str
    token: str

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}


def png_upload(name: str = "pic.png") -> tuple:
    """A tiny fake image suitable for a multipart ``image`` field."""
    return (io.BytesIO(b"\x89PNG\r\n\x1a\nfake"), name)


def build_app(tmp_path, **overrides):
    settings = dict(
        jwt_secret=TEST_SECRET,
        database_path=str(tmp_path / "test.db"),
        upload_folder=str(tmp_path / "images"),
        require_email_verification=False,
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        sendgrid_api_key=None,
        log_level="WARNING",
        log_file=None,
    )
    settings.update(overrides)
    app = create_app(**settings)
    app.config["TESTING"] = True
    return app


# ── App / client ─────────────────────────────────────────────────────────────


@pytest.fixture
def app(tmp_path):
    return build_app(tmp_path)


@pytest.fixture
def client(app):
    return app.test_client()


# ── Accounts ─────────────────────────────────────────────────────────────────


def login(client, email: str, password: str) -> Account:
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()
    return Account(id=body["userId"], email=body["email"], token=body["token"])


@pytest.fixture
def register(client) -> Callable[..., Account]:
    def _register(email: str, password: str = "secret", name: str = "Tester") -> Account:
        resp = client.put("/auth/signup", json={"email": email, "password": password, "name": name})
        assert resp.status_code == 201, resp.get_json()
        return login(client, email, password)

    return _register


@pytest.fixture
def admin(client) -> Account:
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def alice(register) -> Account:
    return register("alice@test.com", name="Alice")


@pytest.fixture
def bob(register) -> Account:
    return register("bob@test.com", name="Bob")


# ── Mail ─────────────────────────────────────────────────────────────────────


@pytest.fixture
def sent_mail(monkeypatch) -> list:
    sent: list[dict] = []

    def fake_send(self, to, subject, html):
        sent.append({"to": to, "subject": subject, "html": html})

    monkeypatch.setattr(MailClient, "send", fake_send)
    return sent
