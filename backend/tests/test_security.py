"""
Football Academy Backend — Security & Access Policy Unit Tests
================================================================

What:  Password hashing, JWT issue/verify, and the role/team scope table.
How:   Tokens are decoded with the real PyJWT; scope checks run against the
       per-test SQLite database.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from academy.config import settings
from academy.exceptions import AuthenticationError, PermissionDeniedError
from academy.models.user import Role
from academy.services.access import access_policy
from academy.services.security import (
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    subject_id,
    verify_password,
)


class TestPasswordHashing:

    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("goal2024")
        assert hashed != "goal2024"
        assert hashed.startswith("$2")
        assert verify_password("goal2024", hashed)

    def test_wrong_password_rejected(self):
        assert not verify_password("offside", hash_password("goal2024"))

    def test_malformed_hash_counts_as_mismatch(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestTokens:

    @pytest.mark.asyncio
    async def test_access_token_carries_identity_claims(self, coach_user):
        payload = decode_token(create_access_token(coach_user))
        assert payload["sub"] == str(coach_user.id)
        assert payload["type"] == "access"
        assert payload["role"] == "coach"
        assert payload["team_id"] == coach_user.team_id
        assert payload["iss"] == settings.jwt_issuer
        assert subject_id(payload) == coach_user.id

    @pytest.mark.asyncio
    async def test_refresh_token_is_not_an_access_token(self, admin_user):
        refresh = create_refresh_token(admin_user)
        with pytest.raises(AuthenticationError, match="Invalid token"):
            decode_token(refresh)
        assert decode_token(refresh, expected_type=REFRESH)["type"] == REFRESH

    def test_expired_token(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "1",
                "type": "access",
                "iss": settings.jwt_issuer,
                "iat": now - timedelta(hours=2),
                "exp": now - timedelta(hours=1),
            },
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError, match="Token expired"):
            decode_token(token)

    def test_wrong_signature(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "1", "type": "access", "iss": settings.jwt_issuer, "iat": now,
             "exp": now + timedelta(hours=1)},
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError, match="Invalid token"):
            decode_token(token)

    def test_garbage_token(self):
        with pytest.raises(AuthenticationError):
            decode_token("not.a.jwt")

    def test_subject_must_be_numeric(self):
        with pytest.raises(AuthenticationError):
            subject_id({"sub": "abc"})


class TestAccessPolicy:

    @pytest.mark.asyncio
    async def test_require_roles(self, coach_user):
        access_policy.require_roles(coach_user, Role.ADMIN.value, Role.COACH.value)
        with pytest.raises(PermissionDeniedError):
            access_policy.require_roles(coach_user, Role.ADMIN.value)

    @pytest.mark.asyncio
    async def test_visible_teams_by_role(
        self, db_session, admin_user, coach_user, parent_user, player_user, team, other_team
    ):
        assert await access_policy.visible_team_ids(db_session, admin_user) is None
        assert await access_policy.visible_team_ids(db_session, coach_user) == {team.id}
        assert await access_policy.visible_team_ids(db_session, player_user) == {team.id}
        # Parent sees the team of their linked child
        assert await access_policy.visible_team_ids(db_session, parent_user) == {team.id}
        assert not await access_policy.can_access_team(db_session, coach_user, other_team.id)

    @pytest.mark.asyncio
    async def test_player_team_comes_from_roster_record(
        self, db_session, make_user, player_user, player, team, other_team
    ):
        linked_only = await make_user(Role.PLAYER.value, "bence_nagy", player_id=player.id)
        assert await access_policy.visible_team_ids(db_session, linked_only) == {team.id}

        player.team_id = other_team.id
        await db_session.commit()
        assert await access_policy.visible_team_ids(db_session, player_user) == {other_team.id}

        player.team_id = None
        await db_session.commit()
        assert await access_policy.visible_team_ids(db_session, player_user) == set()

    @pytest.mark.asyncio
    async def test_coach_only_manages_own_team(self, coach_user, team, other_team):
        access_policy.ensure_team_staff(coach_user, team.id)
        with pytest.raises(PermissionDeniedError, match="own team"):
            access_policy.ensure_team_staff(coach_user, other_team.id)

    @pytest.mark.asyncio
    async def test_player_access(
        self, db_session, make_player, other_team, player, coach_user, parent_user, player_user
    ):
        stranger = await make_player("Outsider", team_id=other_team.id)

        for user in (coach_user, parent_user, player_user):
            assert await access_policy.can_access_player(db_session, user, player)
            assert not await access_policy.can_access_player(db_session, user, stranger)

        with pytest.raises(PermissionDeniedError):
            await access_policy.ensure_player_access(db_session, parent_user, stranger)

    @pytest.mark.asyncio
    async def test_visible_player_ids(self, db_session, coach_user, parent_user, player_user, player):
        assert await access_policy.visible_player_ids(db_session, coach_user) == {player.id}
        assert await access_policy.visible_player_ids(db_session, parent_user) == {player.id}
        assert await access_policy.visible_player_ids(db_session, player_user) == {player.id}
