"""
Football Academy Backend — Team & Player Tests
================================================

What:  Team CRUD, roster limits, coach assignment, player records,
       parent links and profile photos.
How:   Service-level tests for the rules, API tests for role gates and
       response shapes.
"""

from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from academy.exceptions import ConflictError, PermissionDeniedError, ValidationError
from academy.schemas.player import AssignParentRequest, PlayerCreate, PlayerUpdate
from academy.schemas.team import TeamCreate, TeamUpdate
from academy.services.player_service import player_service
from academy.services.team_service import team_service


class TestTeamService:

    @pytest.mark.asyncio
    async def test_coach_without_team_takes_charge_of_new_team(self, db_session, make_user):
        coach = await make_user("coach", "fresh_coach")
        team = await team_service.create_team(db_session, coach, TeamCreate(name="U10 Sparrows"))
        assert coach.team_id == team.id

    @pytest.mark.asyncio
    async def test_team_names_are_unique_case_insensitive(self, db_session, admin_user, team):
        with pytest.raises(ConflictError):
            await team_service.create_team(db_session, admin_user, TeamCreate(name="u12 eagles"))

    @pytest.mark.asyncio
    async def test_parent_cannot_create_team(self, db_session, parent_user):
        with pytest.raises(PermissionDeniedError):
            await team_service.create_team(db_session, parent_user, TeamCreate(name="Parents XI"))

    @pytest.mark.asyncio
    async def test_roster_limit(self, db_session, admin_user, make_team, make_player):
        small = await make_team("U8 Minis", max_players=1)
        first = await make_player("Ádám Tóth")
        second = await make_player("Máté Kiss")

        await team_service.add_player(db_session, admin_user, small.id, first.id)
        with pytest.raises(ConflictError, match="full"):
            await team_service.add_player(db_session, admin_user, small.id, second.id)

    @pytest.mark.asyncio
    async def test_max_players_cannot_drop_below_roster(
        self, db_session, admin_user, team, player, make_player
    ):
        await team_service.update_team(db_session, admin_user, team.id, TeamUpdate(max_players=1))
        await make_player("Second Striker", team_id=team.id)
        with pytest.raises(ValidationError, match="roster size"):
            await team_service.update_team(db_session, admin_user, team.id, TeamUpdate(max_players=1))

    @pytest.mark.asyncio
    async def test_coach_cannot_take_player_from_another_team(
        self, db_session, coach_user, make_player, other_team
    ):
        poached = await make_player("Levente Varga", team_id=other_team.id)
        with pytest.raises(ConflictError, match="another team"):
            await team_service.add_player(db_session, coach_user, coach_user.team_id, poached.id)

    @pytest.mark.asyncio
    async def test_delete_team_with_players_conflicts(self, db_session, admin_user, team, player):
        with pytest.raises(ConflictError, match="still has 1 player"):
            await team_service.delete_team(db_session, admin_user, team.id)

    @pytest.mark.asyncio
    async def test_assign_coach_replaces_previous(
        self, db_session, admin_user, coach_user, make_user, team
    ):
        newcomer = await make_user("coach", "coach_new")
        await team_service.assign_coach(db_session, admin_user, team.id, newcomer.id)
        assert newcomer.team_id == team.id
        assert coach_user.team_id is None

    @pytest.mark.asyncio
    async def test_assign_coach_rejects_parent(self, db_session, admin_user, parent_user, team):
        with pytest.raises(ValidationError, match="not an active coach"):
            await team_service.assign_coach(db_session, admin_user, team.id, parent_user.id)


class TestTeamApi:

    @pytest.mark.asyncio
    async def test_list_includes_counts_and_coach(self, test_client, auth, admin_user, coach_user, player):
        response = await test_client.get("/api/teams", headers=auth(admin_user))
        assert response.status_code == 200
        [eagles] = response.json()
        assert eagles["player_count"] == 1
        assert eagles["coach"]["username"] == "coach_kovacs"

    @pytest.mark.asyncio
    async def test_coach_sees_only_own_team(self, test_client, auth, coach_user, other_team):
        response = await test_client.get("/api/teams", headers=auth(coach_user))
        assert [t["name"] for t in response.json()] == ["U12 Eagles"]

        forbidden = await test_client.get(f"/api/teams/{other_team.id}", headers=auth(coach_user))
        assert forbidden.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_team_is_404(self, test_client, auth, admin_user):
        response = await test_client.get("/api/teams/4242", headers=auth(admin_user))
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_available_coaches_admin_only(self, test_client, auth, admin_user, coach_user, make_user):
        await make_user("coach", "coach_free")
        response = await test_client.get("/api/teams/available-coaches", headers=auth(admin_user))
        assert [c["username"] for c in response.json()] == ["coach_free"]

        denied = await test_client.get("/api/teams/available-coaches", headers=auth(coach_user))
        assert denied.status_code == 403

    @pytest.mark.asyncio
    async def test_roster_add_and_remove(self, test_client, auth, coach_user, make_player, team):
        newcomer = await make_player("Dávid Horváth")
        added = await test_client.post(
            f"/api/teams/{team.id}/players/{newcomer.id}", headers=auth(coach_user)
        )
        assert added.json()["team_id"] == team.id

        removed = await test_client.delete(
            f"/api/teams/{team.id}/players/{newcomer.id}", headers=auth(coach_user)
        )
        assert removed.json()["team_id"] is None


class TestPlayerService:

    @pytest.mark.asyncio
    async def test_coach_creates_player_on_own_team_by_default(self, db_session, coach_user, team):
        created = await player_service.create_player(
            db_session,
            coach_user,
            PlayerCreate(name="Zsombor Balogh", birth_date=date(2013, 3, 1), position="defender"),
        )
        assert created.team_id == team.id

    @pytest.mark.asyncio
    async def test_coach_cannot_create_for_other_team(self, db_session, coach_user, other_team):
        with pytest.raises(PermissionDeniedError):
            await player_service.create_player(
                db_session,
                coach_user,
                PlayerCreate(name="X", birth_date=date(2013, 3, 1), team_id=other_team.id),
            )

    @pytest.mark.asyncio
    async def test_coach_cannot_move_player(self, db_session, coach_user, player, other_team):
        with pytest.raises(PermissionDeniedError, match="move players"):
            await player_service.update_player(
                db_session, coach_user, player.id, PlayerUpdate(team_id=other_team.id)
            )

    @pytest.mark.asyncio
    async def test_coach_list_for_other_team_forbidden(self, db_session, coach_user, other_team):
        with pytest.raises(PermissionDeniedError):
            await player_service.list_players(db_session, coach_user, team_id=other_team.id)

    @pytest.mark.asyncio
    async def test_age_in_whole_years(self, db_session, admin_user, make_player):
        kid = await make_player("Birthday Kid", birth_date=date(2012, 6, 15))
        before = await player_service.age(db_session, admin_user, kid.id, today=date(2024, 6, 14))
        on_day = await player_service.age(db_session, admin_user, kid.id, today=date(2024, 6, 15))
        assert (before.age, on_day.age) == (11, 12)

    @pytest.mark.asyncio
    async def test_parent_link_is_reactivated(self, db_session, admin_user, parent_user, player):
        await player_service.remove_parent(db_session, admin_user, player.id, parent_user.id)
        assert await player_service.children_of(db_session, parent_user, parent_user.id) == []

        link = await player_service.assign_parent(
            db_session,
            admin_user,
            player.id,
            AssignParentRequest(parent_user_id=parent_user.id, primary_contact=True),
        )
        assert link.active and link.primary_contact
        children = await player_service.children_of(db_session, parent_user, parent_user.id)
        assert [c.id for c in children] == [player.id]

    @pytest.mark.asyncio
    async def test_only_parents_can_be_linked(self, db_session, admin_user, coach_user, player):
        with pytest.raises(ValidationError, match="not an active parent"):
            await player_service.assign_parent(
                db_session, admin_user, player.id, AssignParentRequest(parent_user_id=coach_user.id)
            )

    @pytest.mark.asyncio
    async def test_parent_cannot_view_other_parents_children(self, db_session, parent_user, make_user):
        other = await make_user("parent", "parent_other")
        with pytest.raises(PermissionDeniedError):
            await player_service.children_of(db_session, parent_user, other.id)


class TestPlayerApi:

    @pytest.mark.asyncio
    async def test_future_birth_date_is_schema_error(self, test_client, auth, admin_user):
        response = await test_client.post(
            "/api/players",
            json={"name": "Time Traveller", "birth_date": "2999-01-01"},
            headers=auth(admin_user),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_parent_sees_child_but_not_others(
        self, test_client, auth, parent_user, player, make_player
    ):
        stranger = await make_player("Stranger")
        mine = await test_client.get(f"/api/players/{player.id}", headers=auth(parent_user))
        assert mine.status_code == 200
        other = await test_client.get(f"/api/players/{stranger.id}", headers=auth(parent_user))
        assert other.status_code == 403

        children = await test_client.get("/api/players/my-children", headers=auth(parent_user))
        assert [c["name"] for c in children.json()] == ["Bence Nagy"]

    @pytest.mark.asyncio
    async def test_parent_cannot_list_all_players(self, test_client, auth, parent_user):
        response = await test_client.get("/api/players", headers=auth(parent_user))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_search_and_position_filters(self, test_client, auth, admin_user, player, make_player, team):
        await make_player("Gergő Kovács", team_id=team.id, position="goalkeeper")
        response = await test_client.get(
            "/api/players", params={"position": "goalkeeper"}, headers=auth(admin_user)
        )
        assert [p["name"] for p in response.json()] == ["Gergő Kovács"]

        response = await test_client.get("/api/players", params={"search": "bence"}, headers=auth(admin_user))
        assert [p["name"] for p in response.json()] == ["Bence Nagy"]

    @pytest.mark.asyncio
    async def test_delete_is_admin_only(self, test_client, auth, coach_user, admin_user, player):
        denied = await test_client.delete(f"/api/players/{player.id}", headers=auth(coach_user))
        assert denied.status_code == 403
        deleted = await test_client.delete(f"/api/players/{player.id}", headers=auth(admin_user))
        assert deleted.status_code == 200
        gone = await test_client.get(f"/api/players/{player.id}", headers=auth(admin_user))
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_photo_upload_and_download(
        self, test_client, auth, coach_user, player, sample_png_bytes, tmp_path
    ):
        with patch("academy.services.file_service.settings.storage_root", str(tmp_path)), \
             patch("academy.services.file_service.magic.from_buffer", return_value="image/png"):
            uploaded = await test_client.post(
                f"/api/players/{player.id}/photo",
                files={"file": ("bence.png", sample_png_bytes, "image/png")},
                headers=auth(coach_user),
            )
            assert uploaded.status_code == 200
            assert uploaded.json()["profile_image"].startswith("players/")

            downloaded = await test_client.get(f"/api/players/{player.id}/photo", headers=auth(coach_user))
            assert downloaded.status_code == 200
            assert downloaded.headers["content-type"] == "image/png"
            assert downloaded.content == sample_png_bytes

    @pytest.mark.asyncio
    async def test_replacing_photo_removes_old_file_after_commit(
        self, test_client, auth, coach_user, player, sample_png_bytes, tmp_path
    ):
        with patch("academy.services.file_service.settings.storage_root", str(tmp_path)), \
             patch("academy.services.file_service.magic.from_buffer", return_value="image/png"):
            first = await test_client.post(
                f"/api/players/{player.id}/photo",
                files={"file": ("first.png", sample_png_bytes, "image/png")},
                headers=auth(coach_user),
            )
            old_file = tmp_path / first.json()["profile_image"]
            assert old_file.exists()

            second = await test_client.post(
                f"/api/players/{player.id}/photo",
                files={"file": ("second.png", sample_png_bytes, "image/png")},
                headers=auth(coach_user),
            )
            assert second.status_code == 200
            assert not old_file.exists()
            assert (tmp_path / second.json()["profile_image"]).exists()

    @pytest.mark.asyncio
    async def test_failed_commit_keeps_old_photo(
        self, test_client, auth, coach_user, player, sample_png_bytes, tmp_path
    ):
        with patch("academy.services.file_service.settings.storage_root", str(tmp_path)), \
             patch("academy.services.file_service.magic.from_buffer", return_value="image/png"):
            first = await test_client.post(
                f"/api/players/{player.id}/photo",
                files={"file": ("first.png", sample_png_bytes, "image/png")},
                headers=auth(coach_user),
            )
            old_file = tmp_path / first.json()["profile_image"]

            with patch(
                "sqlalchemy.ext.asyncio.AsyncSession.commit",
                side_effect=SQLAlchemyError("disk full"),
            ):
                failed = await test_client.post(
                    f"/api/players/{player.id}/photo",
                    files={"file": ("second.png", sample_png_bytes, "image/png")},
                    headers=auth(coach_user),
                )
            assert failed.status_code == 500
            assert old_file.exists()
            stored = [p for p in (tmp_path / "players").rglob("*") if p.is_file()]
            assert stored == [old_file]

    @pytest.mark.asyncio
    async def test_service_leaves_photo_for_caller(
        self, db_session, admin_user, player, sample_png_bytes, tmp_path
    ):
        with patch("academy.services.file_service.settings.storage_root", str(tmp_path)), \
             patch("academy.services.file_service.magic.from_buffer", return_value="image/png"):
            updated, replaced = await player_service.upload_photo(
                db_session, admin_user, player.id, "bence.png", sample_png_bytes
            )
            assert replaced is None
            stored = tmp_path / updated.profile_image

            photo = await player_service.delete_player(db_session, admin_user, player.id)
        assert photo == updated.profile_image
        assert stored.exists()

    @pytest.mark.asyncio
    async def test_photo_rejects_gif(self, test_client, auth, coach_user, player):
        response = await test_client.post(
            f"/api/players/{player.id}/photo",
            files={"file": ("anim.gif", b"GIF89a....", "image/gif")},
            headers=auth(coach_user),
        )
        assert response.status_code == 400
        assert "not supported" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_no_photo_is_404(self, test_client, auth, coach_user, player):
        response = await test_client.get(f"/api/players/{player.id}/photo", headers=auth(coach_user))
        assert response.status_code == 404
