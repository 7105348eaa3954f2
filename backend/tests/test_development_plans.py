"""
Football Academy Backend — Development Plan Tests
===================================================
"""

from datetime import date

import pytest

from academy.exceptions import PermissionDeniedError, ValidationError
from academy.schemas.development import PlanCreate, PlanReview, PlanUpdate, ProgressUpdate
from academy.services.development_service import development_service


async def create(db, user, player_id, **fields):
    fields.setdefault("plan_type", "technical")
    fields.setdefault("current_level", 4)
    fields.setdefault("target_level", 7)
    return await development_service.create_plan(
        db,
        user,
        PlanCreate(
            player_id=player_id,
            season="2024/25",
            goals="Weak-foot passing",
            action_steps="Left foot wall passes, 15 min per session",
            **fields,
        ),
    )


class TestDevelopmentService:

    @pytest.mark.asyncio
    async def test_coach_creates_plan_for_own_player(self, db_session, coach_user, player):
        plan = await create(db_session, coach_user, player.id)
        assert plan.status == "active"
        assert plan.completion_percentage == 0
        assert plan.created_by == coach_user.id

    @pytest.mark.asyncio
    async def test_coach_cannot_plan_for_other_team(
        self, db_session, coach_user, make_player, other_team
    ):
        rival = await make_player("Zoli Kiss", team_id=other_team.id)
        with pytest.raises(PermissionDeniedError):
            await create(db_session, coach_user, rival.id)

    @pytest.mark.asyncio
    async def test_target_below_current_rejected(self, db_session, coach_user, player):
        with pytest.raises(ValidationError):
            await create(db_session, coach_user, player.id, current_level=6, target_level=5)

        plan = await create(db_session, coach_user, player.id)
        with pytest.raises(ValidationError):
            await development_service.update_plan(
                db_session, coach_user, plan.id, PlanUpdate(target_level=2)
            )

    @pytest.mark.asyncio
    async def test_full_progress_completes_plan(self, db_session, coach_user, player):
        plan = await create(db_session, coach_user, player.id)

        halfway = await development_service.update_progress(
            db_session, coach_user, plan.id, ProgressUpdate(completion_percentage=50)
        )
        assert halfway.status == "active"

        done = await development_service.update_progress(
            db_session, coach_user, plan.id,
            ProgressUpdate(completion_percentage=100, progress_notes="Consistent in matches"),
        )
        assert done.status == "completed"
        assert done.progress_notes == "Consistent in matches"

    @pytest.mark.asyncio
    async def test_cancelled_plan_progress_rejected(self, db_session, coach_user, player):
        plan = await create(db_session, coach_user, player.id)
        await development_service.update_plan(
            db_session, coach_user, plan.id, PlanUpdate(status="cancelled")
        )
        with pytest.raises(ValidationError):
            await development_service.update_progress(
                db_session, coach_user, plan.id, ProgressUpdate(completion_percentage=20)
            )

    @pytest.mark.asyncio
    async def test_review_stamps_reviewer(self, db_session, admin_user, coach_user, player):
        plan = await create(db_session, coach_user, player.id)
        reviewed = await development_service.review_plan(
            db_session, admin_user, plan.id, PlanReview(coach_notes="On track"),
            today=date(2024, 11, 1),
        )
        assert reviewed.reviewed_by == admin_user.id
        assert reviewed.review_date == date(2024, 11, 1)
        assert reviewed.coach_notes == "On track"

    @pytest.mark.asyncio
    async def test_family_reads_player_plans(
        self, db_session, coach_user, parent_user, player_user, player
    ):
        plan = await create(db_session, coach_user, player.id)
        for reader in (parent_user, player_user):
            plans = await development_service.by_player(db_session, reader, player.id)
            assert [p.id for p in plans] == [plan.id]
        with pytest.raises(PermissionDeniedError):
            await development_service.update_progress(
                db_session, parent_user, plan.id, ProgressUpdate(completion_percentage=90)
            )

    @pytest.mark.asyncio
    async def test_statistics_scoped_to_coach_team(
        self, db_session, admin_user, coach_user, player, make_player, other_team
    ):
        rival = await make_player("Zoli Kiss", team_id=other_team.id)
        mine = await create(db_session, coach_user, player.id)
        await create(db_session, admin_user, rival.id, plan_type="physical")
        await development_service.update_progress(
            db_session, coach_user, mine.id, ProgressUpdate(completion_percentage=40)
        )

        stats = await development_service.statistics(db_session, coach_user)
        assert stats.total == 1
        assert stats.by_type == {"technical": 1}
        assert stats.average_completion == 40.0

        overall = await development_service.statistics(db_session, admin_user)
        assert overall.total == 2
        assert overall.average_completion == 20.0


class TestDevelopmentPlanApi:

    @pytest.mark.asyncio
    async def test_create_and_filter(self, test_client, auth, coach_user, player):
        response = await test_client.post(
            "/api/development-plans",
            json={"player_id": player.id, "season": "2024/25", "plan_type": "tactical",
                  "current_level": 3, "target_level": 6, "goals": "Pressing triggers",
                  "action_steps": "Video sessions"},
            headers=auth(coach_user),
        )
        assert response.status_code == 201

        active = await test_client.get("/api/development-plans/active", headers=auth(coach_user))
        assert [p["plan_type"] for p in active.json()] == ["tactical"]

        completed = await test_client.get(
            "/api/development-plans", params={"status": "completed"}, headers=auth(coach_user)
        )
        assert completed.json() == []

    @pytest.mark.asyncio
    async def test_level_out_of_range(self, test_client, auth, coach_user, player):
        response = await test_client.post(
            "/api/development-plans",
            json={"player_id": player.id, "season": "2024/25", "plan_type": "mental",
                  "current_level": 0, "target_level": 11, "goals": "Focus",
                  "action_steps": "Breathing drills"},
            headers=auth(coach_user),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_only_admin_deletes(self, test_client, auth, admin_user, coach_user, player):
        created = await test_client.post(
            "/api/development-plans",
            json={"player_id": player.id, "season": "2024/25", "plan_type": "physical",
                  "current_level": 5, "target_level": 8, "goals": "Sprint speed",
                  "action_steps": "Interval runs"},
            headers=auth(coach_user),
        )
        plan_id = created.json()["id"]
        denied = await test_client.delete(
            f"/api/development-plans/{plan_id}", headers=auth(coach_user)
        )
        assert denied.status_code == 403
        deleted = await test_client.delete(
            f"/api/development-plans/{plan_id}", headers=auth(admin_user)
        )
        assert deleted.status_code == 200
