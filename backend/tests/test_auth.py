"""Tests for registration, login, refresh rotation and profile edits."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from lineups.middleware.auth import decode_token, hash_password, verify_password
from lineups.services import auth_service
from lineups.services.errors import AccountConflict, AuthError, InvalidCredentials, InvalidRefreshToken


class TestPasswordHashing:
    """bcrypt helpers."""

    def test_round_trip(self):
        """A bcrypt hash verifies the right password and rejects others."""
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_hash(self):
        """A stored value that is not a bcrypt hash never verifies."""
        assert verify_password("secret123", "not-a-bcrypt-hash") is False


class TestRegisterAndLogin:
    """POST /auth/register and /auth/login."""

    def test_register(self, client):
        """Registering returns 201 and a confirmation message."""
        response = client.post("/auth/register", json={"email": "A@Example.com", "password": "secret123"})
        assert response.status_code == 201
        assert response.json() == {"message": "User registered successfully"}

    def test_duplicate_email(self, client):
        """Registering the same email twice is a conflict."""
        client.post("/auth/register", json={"email": "a@example.com", "password": "secret123"})
        response = client.post("/auth/register", json={"email": "a@example.com", "password": "secret123"})
        assert response.status_code == 409

    def test_weak_password(self, client):
        """Passwords shorter than the minimum are rejected."""
        response = client.post("/auth/register", json={"email": "a@example.com", "password": "123"})
        assert response.status_code == 400

    def test_bad_email(self, client):
        """A malformed email address is rejected."""
        response = client.post("/auth/register", json={"email": "not-an-email", "password": "secret123"})
        assert response.status_code == 400

    def test_login_returns_token_pair(self, client):
        """Login returns an access token with the expected claims and a refresh token."""
        client.post("/auth/register", json={"email": "a@example.com", "password": "secret123"})
        response = client.post("/auth/login", json={"email": "a@example.com", "password": "secret123"})
        assert response.status_code == 200
        data = response.json()
        assert data["token"]
        assert data["refreshToken"]

        claims = decode_token(data["token"])
        assert claims["email"] == "a@example.com"
        assert claims["role"] == "user"
        assert claims["sub"]
        assert claims["jti"]

    def test_login_wrong_password(self, client):
        """A wrong password is a 401."""
        client.post("/auth/register", json={"email": "a@example.com", "password": "secret123"})
        response = client.post("/auth/login", json={"email": "a@example.com", "password": "wrong-pass"})
        assert response.status_code == 401

    def test_login_unknown_user(self, client):
        """An unknown email is a 401, same as a wrong password."""
        response = client.post("/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
        assert response.status_code == 401


class TestRefresh:
    """Refresh tokens rotate on every use."""

    def test_rotation(self, client):
        """Refreshing issues a new pair and the old refresh token stops working."""
        client.post("/auth/register", json={"email": "a@example.com", "password": "secret123"})
        first = client.post("/auth/login", json={"email": "a@example.com", "password": "secret123"}).json()

        rotated = client.post("/auth/refresh", json={"refreshToken": first["refreshToken"]})
        assert rotated.status_code == 200
        second = rotated.json()
        assert second["refreshToken"] != first["refreshToken"]
        assert client.get("/profile", headers={"Authorization": f"Bearer {second['token']}"}).status_code == 200

        reused = client.post("/auth/refresh", json={"refreshToken": first["refreshToken"]})
        assert reused.status_code == 401

    def test_unknown_token(self, client):
        """An unknown refresh token is a 401."""
        assert client.post("/auth/refresh", json={"refreshToken": "nope"}).status_code == 401

    def test_service_rejects_blank_token(self, db):
        """A blank refresh token is rejected before any lookup."""
        with pytest.raises(InvalidRefreshToken):
            auth_service.refresh(db, "   ")


class TestProfile:
    """GET and PUT /profile."""

    def test_get(self, client, login_headers):
        """The profile exposes id, username, email and creation time."""
        headers = login_headers("a@example.com")
        data = client.get("/profile", headers=headers).json()
        assert data["email"] == "a@example.com"
        assert data["username"] == "a@example.com"
        assert set(data) == {"id", "username", "email", "createdAt"}

    def test_requires_token(self, client):
        """The profile needs a bearer token."""
        assert client.get("/profile").status_code == 401

    def test_update_username_and_password(self, client, login_headers):
        """Profile edits apply and the new password works for login."""
        headers = login_headers("a@example.com")
        response = client.put(
            "/profile",
            json={"username": "coach_a", "currentPassword": "secret123", "newPassword": "better456"},
            headers=headers,
        )
        assert response.status_code == 200
        new_headers = {"Authorization": f"Bearer {response.json()['token']}"}
        assert client.get("/profile", headers=new_headers).json()["username"] == "coach_a"

        login = client.post("/auth/login", json={"email": "a@example.com", "password": "better456"})
        assert login.status_code == 200

    def test_wrong_current_password(self, client, login_headers):
        """Profile edits need the current password."""
        headers = login_headers("a@example.com")
        response = client.put("/profile", json={"username": "x", "currentPassword": "wrong"}, headers=headers)
        assert response.status_code == 400

    def test_email_conflict(self, db, make_user):
        """Taking another user's email is a conflict."""
        make_user("a@example.com")
        bob = make_user("b@example.com")
        with pytest.raises(AccountConflict):
            auth_service.update_profile(db, bob.id, "secret123", email="a@example.com")

    def test_short_new_password(self, db, make_user):
        """A new password must meet the minimum length."""
        user = make_user("a@example.com")
        with pytest.raises(AuthError):
            auth_service.update_profile(db, user.id, "secret123", new_password="123")

    def test_unknown_user(self, db):
        """Editing a missing account fails as invalid credentials."""
        with pytest.raises(InvalidCredentials):
            auth_service.update_profile(db, "missing", "secret123")
