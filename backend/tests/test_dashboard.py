"""
Football Academy Backend — Dashboard & Notification Tests
===========================================================

What:  Role-specific dashboards, their fallback messages, section
       isolation, and upcoming-training reminders.
"""

from datetime import date, time, timedelta
from unittest.mock import patch

import pytest

from academy.schemas.training import TrainingCreate
from academy.services.dashboard_service import (
    NO_CHILD_MESSAGE,
    NO_PLAYER_MESSAGE,
    NO_TEAM_MESSAGE,
    dashboard_service,
)
from academy.services.notification_service import notification_service
from academy.services.training_service import training_service


async def schedule(db, user, team_id, day, location=None):
    return await training_service.create_training(
        db,
        user,
        TrainingCreate(date=day, time=time(17, 30), type="technical", team_id=team_id, location=location),
    )


class TestDashboards:

    @pytest.mark.asyncio
    async def test_coach_without_team(self, db_session, make_user):
        coach = await make_user("coach", "coach_idle")
        dashboard = await dashboard_service.build(db_session, coach)
        assert dashboard.role == "coach"
        assert dashboard.message == NO_TEAM_MESSAGE
        assert dashboard.players == []

    @pytest.mark.asyncio
    async def test_parent_without_children(self, db_session, make_user):
        parent = await make_user("parent", "parent_waiting")
        dashboard = await dashboard_service.build(db_session, parent)
        assert dashboard.message == NO_CHILD_MESSAGE

    @pytest.mark.asyncio
    async def test_player_without_profile(self, db_session, make_user):
        user = await make_user("player", "unlinked_player")
        dashboard = await dashboard_service.build(db_session, user)
        assert dashboard.message == NO_PLAYER_MESSAGE

    @pytest.mark.asyncio
    async def test_coach_dashboard(self, db_session, coach_user, team, player):
        await schedule(db_session, coach_user, team.id, date.today() + timedelta(days=2))
        dashboard = await dashboard_service.build(db_session, coach_user)
        assert dashboard.team.name == "U12 Eagles"
        assert [p.name for p in dashboard.players] == ["Bence Nagy"]
        assert len(dashboard.upcoming_trainings) == 1
        assert dashboard.performance.played == 0

    @pytest.mark.asyncio
    async def test_parent_dashboard_per_child(self, db_session, coach_user, parent_user, team, player):
        await schedule(db_session, coach_user, team.id, date.today() + timedelta(days=1))
        dashboard = await dashboard_service.build(db_session, parent_user)
        [child] = dashboard.children
        assert child.player.name == "Bence Nagy"
        assert child.team.name == "U12 Eagles"
        assert len(child.upcoming_trainings) == 1
        assert child.attendance.total_sessions == 0

    @pytest.mark.asyncio
    async def test_admin_counts(self, db_session, admin_user, coach_user, parent_user, player):
        dashboard = await dashboard_service.build(db_session, admin_user)
        assert dashboard.counts.users_by_role == {"admin": 1, "coach": 1, "parent": 1}
        assert dashboard.counts.players == 1
        assert dashboard.financial.total_invoices == 0

    @pytest.mark.asyncio
    async def test_player_linked_only_by_record(self, db_session, make_user, coach_user, team, player):
        user = await make_user("player", "bence_nagy", player_id=player.id)
        await schedule(db_session, coach_user, team.id, date.today() + timedelta(days=1))
        dashboard = await dashboard_service.build(db_session, user)
        assert dashboard.team.name == "U12 Eagles"
        assert len(dashboard.upcoming_trainings) == 1

    @pytest.mark.asyncio
    async def test_player_follows_roster_move(
        self, db_session, admin_user, coach_user, player_user, team, other_team, player
    ):
        await schedule(db_session, coach_user, team.id, date.today() + timedelta(days=1))
        await schedule(db_session, admin_user, other_team.id, date.today() + timedelta(days=2))
        player.team_id = other_team.id
        await db_session.flush()

        dashboard = await dashboard_service.build(db_session, player_user)
        assert dashboard.team.name == "U14 Falcons"
        assert [t.team_id for t in dashboard.upcoming_trainings] == [other_team.id]

    @pytest.mark.asyncio
    async def test_failing_section_falls_back(self, db_session, coach_user, team):
        with patch(
            "academy.services.dashboard_service.match_service.team_performance",
            side_effect=RuntimeError("boom"),
        ):
            dashboard = await dashboard_service.build(db_session, coach_user)
        assert dashboard.performance is None
        assert dashboard.team.name == "U12 Eagles"

    @pytest.mark.asyncio
    async def test_dashboard_endpoint(self, test_client, auth, player_user):
        response = await test_client.get("/api/dashboard", headers=auth(player_user))
        assert response.status_code == 200
        body = response.json()
        assert body["role"] == "player"
        assert body["player"]["name"] == "Bence Nagy"


class TestNotifications:

    @pytest.mark.asyncio
    async def test_lookahead_by_role(self, db_session, coach_user, parent_user, team, player):
        today = date(2024, 9, 9)
        await schedule(db_session, coach_user, team.id, today, location="Pitch 1")
        await schedule(db_session, coach_user, team.id, today + timedelta(days=1))
        await schedule(db_session, coach_user, team.id, today + timedelta(days=2))
        await schedule(db_session, coach_user, team.id, today + timedelta(days=3))

        coach = await notification_service.upcoming(db_session, coach_user, today=today)
        assert [r.date for r in coach] == [today, today + timedelta(days=1)]
        assert coach[0].message == "U12 Eagles training today at 17:30 (Pitch 1)"
        assert coach[1].message == "U12 Eagles training 2024-09-10 at 17:30"

        parent = await notification_service.upcoming(db_session, parent_user, today=today)
        assert len(parent) == 3

    @pytest.mark.asyncio
    async def test_nothing_upcoming(self, db_session, admin_user):
        assert await notification_service.upcoming(db_session, admin_user) == []
