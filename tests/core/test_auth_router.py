"""
Integration tests for the authentication router.

Run tests:
    pytest tests/core/test_auth_router.py -v
"""

from datetime import timedelta
from unittest.mock import patch

from vault.core.config import settings
from vault.core.utils import create_jwt_token, verify_password

PASSWORD = "secret123"


class TestRegister:

    async def test_register_success(self, client):
        response = await client.post(
            "/auth/register",
            json={
                "name": "  Ada Student ",
                "email": "Ada@College.edu",
                "phone": "+1 555 123 0000",
                "password": PASSWORD,
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Account created successfully"
        assert data["user"]["email"] == "ada@college.edu"
        assert data["user"]["name"] == "Ada Student"
        assert "password_hash" not in data["user"]
        assert data["token"]

    async def test_register_duplicate_email_ignores_case(self, client, test_account):
        response = await client.post(
            "/auth/register",
            json={
                "name": "Someone",
                "email": "ADA@college.edu",
                "phone": "+1 555 999 0000",
                "password": PASSWORD,
            },
        )

        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "message": "An account already exists with this email address",
        }

    async def test_register_short_password(self, client):
        response = await client.post(
            "/auth/register",
            json={
                "name": "Ada",
                "email": "ada@college.edu",
                "phone": "+1 555 123 0000",
                "password": "123",
            },
        )

        assert response.status_code == 422
        assert response.json()["success"] is False
        assert response.json()["message"] == "Password must be at least 6 characters long"

    async def test_register_bad_phone(self, client):
        response = await client.post(
            "/auth/register",
            json={
                "name": "Ada",
                "email": "ada@college.edu",
                "phone": "12",
                "password": PASSWORD,
            },
        )

        assert response.status_code == 422
        assert response.json()["message"] == "Please enter a valid phone number"


class TestLogin:

    async def test_login_success(self, client, test_account):
        response = await client.post(
            "/auth/login", json={"email": "ada@college.edu", "password": PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["user"]["id"] == str(test_account.id)

    async def test_wrong_password_and_unknown_email_look_the_same(
        self, client, test_account
    ):
        wrong_password = await client.post(
            "/auth/login", json={"email": "ada@college.edu", "password": "nope-nope"}
        )
        unknown = await client.post(
            "/auth/login", json={"email": "nobody@college.edu", "password": PASSWORD}
        )

        assert wrong_password.status_code == unknown.status_code == 401
        assert wrong_password.json() == unknown.json()
        assert wrong_password.json()["message"] == "Invalid credentials."

    async def test_unknown_email_still_checks_a_password_hash(self, client):
        with patch(
            "vault.core.services.auth.verify_password", wraps=verify_password
        ) as checked:
            response = await client.post(
                "/auth/login", json={"email": "nobody@college.edu", "password": PASSWORD}
            )

        assert response.status_code == 401
        checked.assert_called_once()
        password, hashed = checked.call_args.args
        assert password == PASSWORD
        assert hashed.startswith("$2b$")

    async def test_login_rate_limited(self, client, test_account):
        for _ in range(settings.AUTH_RATE_LIMIT_REQUESTS):
            await client.post(
                "/auth/login", json={"email": "ada@college.edu", "password": "x"}
            )

        response = await client.post(
            "/auth/login", json={"email": "ada@college.edu", "password": PASSWORD}
        )

        assert response.status_code == 429
        assert "Retry-After" in response.headers


class TestSessionToken:

    async def test_me(self, client, test_account, auth_headers):
        response = await client.get("/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "ada@college.edu"

    async def test_missing_token(self, client):
        response = await client.get("/auth/me")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["success"] is False

    async def test_expired_token(self, client, test_account):
        token = create_jwt_token(
            {"sub": str(test_account.id), "type": "access"},
            expires_delta=timedelta(seconds=-1),
        )

        response = await client.get(
            "/auth/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    async def test_download_token_is_not_a_session(self, client, test_account):
        token = create_jwt_token({"sub": str(test_account.id), "type": "download"})

        response = await client.get(
            "/auth/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401


class TestProfile:

    async def test_update_profile(self, client, test_account, auth_headers):
        response = await client.put(
            "/auth/profile",
            headers=auth_headers,
            json={"name": "Ada L.", "phone": "+44 20 7946 0000"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Profile updated successfully"
        assert data["user"]["name"] == "Ada L."
        assert data["user"]["phone"] == "+44 20 7946 0000"
        assert data["user"]["email"] == "ada@college.edu"

    async def test_update_email_taken(
        self, client, test_account, other_account, auth_headers
    ):
        response = await client.put(
            "/auth/profile", headers=auth_headers, json={"email": "grace@college.edu"}
        )

        assert response.status_code == 409

    async def test_change_password(self, client, test_account, auth_headers):
        response = await client.post(
            "/auth/change-password",
            headers=auth_headers,
            json={"current_password": PASSWORD, "new_password": "n3w-secret"},
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Password changed successfully"

        login = await client.post(
            "/auth/login", json={"email": "ada@college.edu", "password": "n3w-secret"}
        )
        assert login.status_code == 200

    async def test_change_password_wrong_current(
        self, client, test_account, auth_headers
    ):
        response = await client.post(
            "/auth/change-password",
            headers=auth_headers,
            json={"current_password": "wrong-one", "new_password": "n3w-secret"},
        )

        assert response.status_code == 401


class TestDeleteAccount:

    async def test_delete_account_removes_everything(
        self, client, db_session, test_account, secure_document, auth_headers
    ):
        from vault.apps.documents.db.crud import document_db

        response = await client.delete("/auth/account", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Account deleted successfully"
        assert await document_db.count(db_session) == 0

        me = await client.get("/auth/me", headers=auth_headers)
        assert me.status_code == 401
