"""
Football Academy Backend — Auth & User Management API Tests
=============================================================

What:  /api/auth/* and /api/users/* through the full HTTP stack
       (middleware, dependencies, exception handlers).
"""

import pytest

PASSWORD = "secret123"


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_with_username(self, test_client, coach_user):
        response = await test_client.post(
            "/api/auth/login", json={"username": "coach_kovacs", "password": PASSWORD}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["expires_in"] == 24 * 3600
        assert body["user"]["role"] == "coach"
        assert body["user"]["last_login"] is not None
        assert "password_hash" not in body["user"]

    @pytest.mark.asyncio
    async def test_login_with_email_is_case_insensitive(self, test_client, coach_user):
        response = await test_client.post(
            "/api/auth/login", json={"email": "Coach_Kovacs@Academy.hu", "password": PASSWORD}
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client, coach_user):
        response = await test_client.post(
            "/api/auth/login", json={"username": "coach_kovacs", "password": "nope"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_unknown_user_gets_same_message(self, test_client):
        response = await test_client.post(
            "/api/auth/login", json={"username": "ghost", "password": PASSWORD}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_deactivated_account(self, test_client, make_user):
        await make_user("parent", "former_parent", active=False)
        response = await test_client.post(
            "/api/auth/login", json={"username": "former_parent", "password": PASSWORD}
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Account is deactivated"

    @pytest.mark.asyncio
    async def test_missing_identifier_is_schema_error(self, test_client):
        response = await test_client.post("/api/auth/login", json={"password": PASSWORD})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_login_rate_limit(self, test_client, monkeypatch):
        from academy.middleware import rate_limit

        monkeypatch.setattr(rate_limit.settings, "login_rate_limit_requests", 2)
        for _ in range(2):
            response = await test_client.post(
                "/api/auth/login", json={"username": "ghost", "password": PASSWORD}
            )
            assert response.status_code == 401

        response = await test_client.post(
            "/api/auth/login", json={"username": "ghost", "password": PASSWORD}
        )
        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) > 0
        assert response.json()["error"] == "rate_limit_exceeded"


class TestTokenEndpoints:

    @pytest.mark.asyncio
    async def test_me_requires_token(self, test_client):
        response = await test_client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["message"] == "Authentication required"

    @pytest.mark.asyncio
    async def test_me_and_verify(self, test_client, auth, parent_user):
        response = await test_client.get("/api/auth/me", headers=auth(parent_user))
        assert response.status_code == 200
        assert response.json()["username"] == "parent_nagy"

        response = await test_client.get("/api/auth/verify", headers=auth(parent_user))
        assert response.json()["valid"] is True

    @pytest.mark.asyncio
    async def test_invalid_bearer(self, test_client):
        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": "Bearer garbage"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_deactivated_user_token_stops_working(
        self, test_client, auth, db_session, parent_user
    ):
        headers = auth(parent_user)
        parent_user.active = False
        await db_session.commit()

        response = await test_client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh(self, test_client, coach_user):
        login = await test_client.post(
            "/api/auth/login", json={"username": "coach_kovacs", "password": PASSWORD}
        )
        refresh_token = login.json()["refresh_token"]

        response = await test_client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
        assert response.status_code == 200
        new_token = response.json()["token"]

        me = await test_client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_token}"})
        assert me.status_code == 200

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, test_client, coach_user):
        login = await test_client.post(
            "/api/auth/login", json={"username": "coach_kovacs", "password": PASSWORD}
        )
        response = await test_client.post(
            "/api/auth/refresh", json={"refresh_token": login.json()["token"]}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_permissions(self, test_client, auth, coach_user):
        response = await test_client.get("/api/auth/permissions", headers=auth(coach_user))
        body = response.json()
        assert body["role"] == "coach"
        assert "attendance:record" in body["permissions"]
        assert "users:manage" not in body["permissions"]
        assert "injuries:own_team" in body["permissions"]


class TestPasswordAndEmail:

    @pytest.mark.asyncio
    async def test_change_password(self, test_client, auth, coach_user):
        response = await test_client.put(
            "/api/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "newsecret1"},
            headers=auth(coach_user),
        )
        assert response.status_code == 200

        old = await test_client.post(
            "/api/auth/login", json={"username": "coach_kovacs", "password": PASSWORD}
        )
        assert old.status_code == 401
        new = await test_client.post(
            "/api/auth/login", json={"username": "coach_kovacs", "password": "newsecret1"}
        )
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, test_client, auth, coach_user):
        response = await test_client.put(
            "/api/auth/change-password",
            json={"current_password": "wrong", "new_password": "newsecret1"},
            headers=auth(coach_user),
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "current_password"

    @pytest.mark.asyncio
    async def test_check_email(self, test_client, coach_user):
        taken = await test_client.get("/api/auth/check-email", params={"email": "coach_kovacs@academy.hu"})
        assert taken.json()["available"] is False
        free = await test_client.get("/api/auth/check-email", params={"email": "new@academy.hu"})
        assert free.json()["available"] is True


class TestUserManagement:

    @pytest.mark.asyncio
    async def test_register_requires_admin(self, test_client, auth, coach_user):
        response = await test_client.post(
            "/api/auth/register",
            json={"username": "newparent", "email": "p@academy.hu", "password": PASSWORD, "role": "parent"},
            headers=auth(coach_user),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_creates_and_lists_users(self, test_client, auth, admin_user, team):
        response = await test_client.post(
            "/api/users",
            json={
                "username": "coach_szabo",
                "email": "szabo@academy.hu",
                "password": PASSWORD,
                "role": "coach",
                "team_id": team.id,
            },
            headers=auth(admin_user),
        )
        assert response.status_code == 201
        assert response.json()["team_id"] == team.id

        listing = await test_client.get("/api/users", params={"role": "coach"}, headers=auth(admin_user))
        assert [u["username"] for u in listing.json()] == ["coach_szabo"]

    @pytest.mark.asyncio
    async def test_duplicate_username_conflict(self, test_client, auth, admin_user):
        response = await test_client.post(
            "/api/users",
            json={"username": "head_admin", "email": "other@academy.hu", "password": PASSWORD, "role": "admin"},
            headers=auth(admin_user),
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_create_coach_for_missing_team(self, test_client, auth, admin_user):
        response = await test_client.post(
            "/api/users",
            json={"username": "lost_coach", "email": "lost@academy.hu", "password": PASSWORD,
                  "role": "coach", "team_id": 999},
            headers=auth(admin_user),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_admin_cannot_deactivate_self(self, test_client, auth, admin_user):
        response = await test_client.delete(f"/api/users/{admin_user.id}", headers=auth(admin_user))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_deactivate_and_statistics(self, test_client, auth, admin_user, coach_user, parent_user):
        response = await test_client.delete(f"/api/users/{parent_user.id}", headers=auth(admin_user))
        assert response.status_code == 200
        assert response.json()["active"] is False

        stats = (await test_client.get("/api/users/statistics", headers=auth(admin_user))).json()
        assert stats["total"] == 3
        assert stats["inactive"] == 1
        assert stats["by_role"]["coach"] == 1

    @pytest.mark.asyncio
    async def test_non_admin_cannot_list_users(self, test_client, auth, coach_user):
        response = await test_client.get("/api/users", headers=auth(coach_user))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_responses_carry_request_id(self, test_client, auth, admin_user):
        response = await test_client.get(
            "/api/users", headers={**auth(admin_user), "X-Request-ID": "abcd1234"}
        )
        assert response.headers["X-Request-ID"] == "abcd1234"

    @pytest.mark.asyncio
    async def test_admin_can_update_self_with_null_role(self, test_client, auth, admin_user):
        response = await test_client.put(
            f"/api/users/{admin_user.id}",
            json={"role": None, "full_name": "Head Admin"},
            headers=auth(admin_user),
        )
        assert response.status_code == 200
        assert response.json()["role"] == "admin"
        assert response.json()["full_name"] == "Head Admin"

    @pytest.mark.asyncio
    async def test_admin_cannot_demote_self(self, test_client, auth, admin_user):
        response = await test_client.put(
            f"/api/users/{admin_user.id}", json={"role": "coach"}, headers=auth(admin_user)
        )
        assert response.status_code == 400


class TestOneCoachPerTeam:

    @pytest.mark.asyncio
    async def test_registering_second_coach_replaces_first(
        self, test_client, auth, admin_user, coach_user, team
    ):
        response = await test_client.post(
            "/api/auth/register",
            json={"username": "coach_szabo", "email": "szabo@academy.hu", "password": PASSWORD,
                  "role": "coach", "team_id": team.id},
            headers=auth(admin_user),
        )
        assert response.status_code == 201

        coaches = (
            await test_client.get("/api/users", params={"role": "coach"}, headers=auth(admin_user))
        ).json()
        by_name = {c["username"]: c["team_id"] for c in coaches}
        assert by_name == {"coach_kovacs": None, "coach_szabo": team.id}

    @pytest.mark.asyncio
    async def test_create_user_replaces_previous_coach(
        self, test_client, auth, admin_user, coach_user, team
    ):
        response = await test_client.post(
            "/api/users",
            json={"username": "coach_szabo", "email": "szabo@academy.hu", "password": PASSWORD,
                  "role": "coach", "team_id": team.id},
            headers=auth(admin_user),
        )
        assert response.status_code == 201

        old = (await test_client.get(f"/api/users/{coach_user.id}", headers=auth(admin_user))).json()
        assert old["team_id"] is None

    @pytest.mark.asyncio
    async def test_update_moves_coach_onto_occupied_team(
        self, test_client, auth, make_user, admin_user, coach_user, team, other_team
    ):
        newcomer = await make_user("coach", "coach_szabo", team_id=other_team.id)
        response = await test_client.put(
            f"/api/users/{newcomer.id}", json={"team_id": team.id}, headers=auth(admin_user)
        )
        assert response.status_code == 200
        assert response.json()["team_id"] == team.id

        old = (await test_client.get(f"/api/users/{coach_user.id}", headers=auth(admin_user))).json()
        assert old["team_id"] is None

    @pytest.mark.asyncio
    async def test_promoting_to_coach_replaces_previous_coach(
        self, test_client, auth, make_user, admin_user, coach_user, team
    ):
        assistant = await make_user("parent", "assistant", team_id=None)
        response = await test_client.put(
            f"/api/users/{assistant.id}",
            json={"role": "coach", "team_id": team.id},
            headers=auth(admin_user),
        )
        assert response.status_code == 200

        old = (await test_client.get(f"/api/users/{coach_user.id}", headers=auth(admin_user))).json()
        assert old["team_id"] is None
