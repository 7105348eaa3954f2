"""
Football Academy Backend — Profile API Tests
==============================================

What:  /api/profile: reading and editing one's own account.
"""

import pytest

from academy.models.user import Role

PASSWORD = "secret123"


class TestProfile:

    @pytest.mark.asyncio
    async def test_get_own_profile(self, test_client, auth, parent_user):
        response = await test_client.get("/api/profile", headers=auth(parent_user))
        assert response.status_code == 200
        body = response.json()
        assert body["username"] == "parent_nagy"
        assert "password_hash" not in body

    @pytest.mark.asyncio
    async def test_update_name_and_email(self, test_client, auth, parent_user):
        response = await test_client.put(
            "/api/profile",
            json={"full_name": "Nagy Eszter", "email": "Eszter.Nagy@Example.com"},
            headers=auth(parent_user),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["full_name"] == "Nagy Eszter"
        assert body["email"] == "eszter.nagy@example.com"
        assert body["role"] == "parent"

    @pytest.mark.asyncio
    async def test_role_cannot_be_changed_here(self, test_client, auth, parent_user):
        response = await test_client.put(
            "/api/profile", json={"role": "admin"}, headers=auth(parent_user)
        )
        assert response.status_code == 200
        assert response.json()["role"] == "parent"

    @pytest.mark.asyncio
    async def test_taken_username_conflicts(self, test_client, auth, parent_user, coach_user):
        response = await test_client.put(
            "/api/profile", json={"username": "coach_kovacs"}, headers=auth(parent_user)
        )
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_taken_email_conflicts(self, test_client, auth, parent_user, coach_user):
        response = await test_client.put(
            "/api/profile", json={"email": "COACH_KOVACS@academy.hu"}, headers=auth(parent_user)
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_keeping_own_email_is_fine(self, test_client, auth, parent_user):
        response = await test_client.put(
            "/api/profile", json={"email": "parent_nagy@academy.hu"}, headers=auth(parent_user)
        )
        assert response.status_code == 200


class TestProfilePassword:

    @pytest.mark.asyncio
    async def test_change_password_then_login(self, test_client, auth, make_user):
        user = await make_user(Role.PARENT.value, "parent_kiss")
        response = await test_client.put(
            "/api/profile/password",
            json={"current_password": PASSWORD, "new_password": "n3w-secret",
                  "confirm_password": "n3w-secret"},
            headers=auth(user),
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Password changed successfully"

        login = await test_client.post(
            "/api/auth/login", json={"username": "parent_kiss", "password": "n3w-secret"}
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_confirmation_must_match(self, test_client, auth, parent_user):
        response = await test_client.put(
            "/api/profile/password",
            json={"current_password": PASSWORD, "new_password": "n3w-secret",
                  "confirm_password": "other-secret"},
            headers=auth(parent_user),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, test_client, auth, parent_user):
        response = await test_client.put(
            "/api/profile/password",
            json={"current_password": "wrong-one", "new_password": "n3w-secret",
                  "confirm_password": "n3w-secret"},
            headers=auth(parent_user),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_requires_login(self, test_client):
        response = await test_client.get("/api/profile")
        assert response.status_code == 401
