"""Tests for registration, login and token rotation."""

from conftest import PASSWORD, auth_headers
from pharmacy.security.utils import create_refresh_token


def register(client, **overrides):
    payload = {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "password": "correct-horse",
        "password_confirmation": "correct-horse",
    }
    payload.update(overrides)
    return client.post("/api/v1/auth/register", json=payload)


class TestRegister:
    def test_register_customer(self, client):
        resp = register(client)

        assert resp.status_code == 201
        body = resp.json()
        assert body["email"] == "jane@example.com"
        assert body["role"] == "customer"
        assert "password_hash" not in body

    def test_register_with_user_type(self, client):
        resp = register(client, user_type="pharmacist")

        assert resp.json()["role"] == "pharmacist"

    def test_password_confirmation_must_match(self, client):
        resp = register(client, password_confirmation="something-else")
        assert resp.status_code == 422

    def test_short_password_rejected(self, client):
        resp = register(client, password="short", password_confirmation="short")
        assert resp.status_code == 422

    def test_duplicate_email_conflicts(self, client):
        register(client)
        resp = register(client)

        assert resp.status_code == 409
        assert resp.json()["code"] == "conflict"


class TestLogin:
    def test_login_returns_token_pair(self, client, customer):
        resp = client.post("/api/v1/auth/login", json={"email": customer.email, "password": PASSWORD})

        assert resp.status_code == 200
        body = resp.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["id"] == customer.id

        cart = client.get("/api/v1/cart/", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert cart.status_code == 200

    def test_wrong_password(self, client, customer):
        resp = client.post("/api/v1/auth/login", json={"email": customer.email, "password": "wrong-password"})

        assert resp.status_code == 401
        assert resp.json()["code"] == "unauthenticated"

    def test_unknown_email(self, client):
        resp = client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
        assert resp.status_code == 401


class TestTokens:
    def _login(self, client, user):
        return client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD}).json()

    def test_refresh_rotates_token(self, client, customer):
        tokens = self._login(client, customer)

        resp = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

        assert resp.status_code == 200
        assert resp.json()["refresh_token"] != tokens["refresh_token"]

        # the presented token is revoked once used
        again = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert again.status_code == 401

    def test_logout_revokes_refresh_token(self, client, customer):
        tokens = self._login(client, customer)

        resp = client.post("/api/v1/auth/logout", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 200

        again = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert again.status_code == 401

    def test_unknown_refresh_token(self, client, customer):
        token, _, _ = create_refresh_token(customer.email)

        resp = client.post("/api/v1/auth/refresh", json={"refresh_token": token})

        assert resp.status_code == 401

    def test_access_token_cannot_refresh(self, client, customer):
        access = auth_headers(customer)["Authorization"].split(" ", 1)[1]

        resp = client.post("/api/v1/auth/refresh", json={"refresh_token": access})

        assert resp.status_code == 401

    def test_garbage_bearer_token(self, client):
        resp = client.get("/api/v1/cart/", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401
