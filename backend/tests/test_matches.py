"""
Football Academy Backend — Match & Statistics Tests
=====================================================

What:  Fixtures, scores, events and the derived statistics.

Test Strategy:
    ✅ Opponent rules (academy team or outside club, never itself)
    ✅ Score recording completes the match; negative scores rejected
    ✅ Event validation (team played, player on that team, assistant)
    ✅ Team record, form guide and player form from completed matches only
    ✅ Coach scoping on writes and statistics
"""

from datetime import date

import pytest
from pydantic import ValidationError as SchemaError

from academy.exceptions import PermissionDeniedError, ValidationError
from academy.schemas.match import MatchCreate, MatchEventCreate, ScoreUpdate
from academy.services.match_service import match_service


@pytest.fixture
def play(db_session, admin_user):
    """Create a completed match with the given score in one call."""

    async def _play(home_team_id, home, away, day, away_team_id=None, opponent="Ferencváros U12"):
        match = await match_service.create_match(
            db_session,
            admin_user,
            MatchCreate(
                home_team_id=home_team_id,
                away_team_id=away_team_id,
                opponent_name=None if away_team_id else opponent,
                match_date=day,
                season="2024/25",
                match_type="league",
            ),
        )
        await match_service.update_score(
            db_session, admin_user, match.id, ScoreUpdate(home_score=home, away_score=away)
        )
        return match

    return _play


class TestMatchCreation:

    def test_needs_an_opponent(self):
        with pytest.raises(SchemaError):
            MatchCreate(home_team_id=1, match_date=date(2024, 9, 14))

    def test_cannot_play_itself(self):
        with pytest.raises(SchemaError):
            MatchCreate(home_team_id=1, away_team_id=1, match_date=date(2024, 9, 14))

    @pytest.mark.asyncio
    async def test_unknown_away_team(self, db_session, admin_user, team):
        with pytest.raises(ValidationError, match="does not exist"):
            await match_service.create_match(
                db_session,
                admin_user,
                MatchCreate(home_team_id=team.id, away_team_id=999, match_date=date(2024, 9, 14)),
            )

    @pytest.mark.asyncio
    async def test_coach_limited_to_own_team(self, db_session, coach_user, other_team):
        with pytest.raises(PermissionDeniedError):
            await match_service.create_match(
                db_session,
                coach_user,
                MatchCreate(home_team_id=other_team.id, opponent_name="Honvéd", match_date=date(2024, 9, 14)),
            )

    @pytest.mark.asyncio
    async def test_coach_may_create_as_away_side(self, db_session, coach_user, team, other_team):
        match = await match_service.create_match(
            db_session,
            coach_user,
            MatchCreate(home_team_id=other_team.id, away_team_id=team.id, match_date=date(2024, 9, 14)),
        )
        assert match.match_status == "scheduled"
        assert match.team_ids() == {team.id, other_team.id}


class TestScoresAndEvents:

    @pytest.mark.asyncio
    async def test_score_completes_match(self, db_session, coach_user, team):
        match = await match_service.create_match(
            db_session, coach_user,
            MatchCreate(home_team_id=team.id, opponent_name="MTK", match_date=date(2024, 9, 14)),
        )
        scored = await match_service.update_score(
            db_session, coach_user, match.id, ScoreUpdate(home_score=2, away_score=1)
        )
        assert (scored.home_score, scored.away_score, scored.match_status) == (2, 1, "completed")

    @pytest.mark.asyncio
    async def test_negative_score_rejected(self, db_session, admin_user, team):
        match = await match_service.create_match(
            db_session, admin_user,
            MatchCreate(home_team_id=team.id, opponent_name="MTK", match_date=date(2024, 9, 14)),
        )
        with pytest.raises(ValidationError, match="negative"):
            await match_service.update_score(
                db_session, admin_user, match.id, ScoreUpdate(home_score=-1, away_score=0)
            )

    @pytest.mark.asyncio
    async def test_event_player_must_belong_to_team(
        self, db_session, admin_user, team, other_team, make_player
    ):
        outsider = await make_player("Outsider", team_id=other_team.id)
        match = await match_service.create_match(
            db_session, admin_user,
            MatchCreate(home_team_id=team.id, opponent_name="MTK", match_date=date(2024, 9, 14)),
        )
        with pytest.raises(ValidationError, match="did not play"):
            await match_service.add_event(
                db_session, admin_user, match.id,
                MatchEventCreate(player_id=outsider.id, team_id=other_team.id, event_type="goal"),
            )
        with pytest.raises(ValidationError, match="not in the given team"):
            await match_service.add_event(
                db_session, admin_user, match.id,
                MatchEventCreate(player_id=outsider.id, team_id=team.id, event_type="goal"),
            )

    @pytest.mark.asyncio
    async def test_self_assist_rejected(self, db_session, admin_user, team, player):
        match = await match_service.create_match(
            db_session, admin_user,
            MatchCreate(home_team_id=team.id, opponent_name="MTK", match_date=date(2024, 9, 14)),
        )
        with pytest.raises(ValidationError, match="assisting"):
            await match_service.add_event(
                db_session, admin_user, match.id,
                MatchEventCreate(player_id=player.id, team_id=team.id, event_type="goal", assisted_by=player.id),
            )

    @pytest.mark.asyncio
    async def test_events_ordered_by_minute(self, db_session, admin_user, team, player):
        match = await match_service.create_match(
            db_session, admin_user,
            MatchCreate(home_team_id=team.id, opponent_name="MTK", match_date=date(2024, 9, 14)),
        )
        for minute in (70, None, 12):
            await match_service.add_event(
                db_session, admin_user, match.id,
                MatchEventCreate(player_id=player.id, team_id=team.id, event_type="yellow_card", minute=minute),
            )
        events = await match_service.list_events(db_session, admin_user, match.id)
        assert [e.minute for e in events] == [12, 70, None]


class TestStatistics:

    @pytest.mark.asyncio
    async def test_team_performance_and_form(self, db_session, admin_user, team, other_team, play):
        await play(team.id, 3, 1, date(2024, 9, 1))
        await play(team.id, 0, 0, date(2024, 9, 8))
        await play(other_team.id, 2, 1, date(2024, 9, 15), away_team_id=team.id)
        # Scheduled match without a score is ignored
        await match_service.create_match(
            db_session, admin_user,
            MatchCreate(home_team_id=team.id, opponent_name="Újpest", match_date=date(2024, 9, 22)),
        )

        perf = await match_service.team_performance(db_session, admin_user, team.id)
        assert (perf.played, perf.wins, perf.draws, perf.losses) == (3, 1, 1, 1)
        assert (perf.goals_for, perf.goals_against, perf.goal_difference) == (4, 3, 1)
        assert perf.points == 4

        form = await match_service.team_form(db_session, admin_user, team.id)
        assert form.form == ["L", "D", "W"]

        falcons = await match_service.team_performance(db_session, admin_user, other_team.id)
        assert (falcons.wins, falcons.points) == (1, 3)

    @pytest.mark.asyncio
    async def test_top_scorers_and_player_form(
        self, db_session, admin_user, team, player, make_player, play
    ):
        winger = await make_player("Márk Szalai", team_id=team.id)
        first = await play(team.id, 2, 0, date(2024, 9, 1))
        second = await play(team.id, 1, 1, date(2024, 9, 8))
        await play(team.id, 0, 2, date(2024, 9, 15))

        async def goal(match, scorer, assistant=None):
            await match_service.add_event(
                db_session, admin_user, match.id,
                MatchEventCreate(player_id=scorer.id, team_id=team.id, event_type="goal", assisted_by=assistant),
            )

        await goal(first, player, assistant=winger.id)
        await goal(first, player)
        await goal(second, winger)
        await match_service.add_event(
            db_session, admin_user, second.id,
            MatchEventCreate(player_id=player.id, team_id=team.id, event_type="assist"),
        )

        scorers = await match_service.top_scorers(db_session, admin_user, season="2024/25")
        assert [(s.player_name, s.goals) for s in scorers] == [("Bence Nagy", 2), ("Márk Szalai", 1)]

        form = await match_service.player_form(db_session, admin_user, winger.id)
        by_date = {entry.match_date: (entry.goals, entry.assists) for entry in form.matches}
        assert by_date == {
            date(2024, 9, 15): (0, 0),
            date(2024, 9, 8): (1, 0),
            date(2024, 9, 1): (0, 1),
        }
        striker = await match_service.player_form(db_session, admin_user, player.id, last=2)
        assert [(e.goals, e.assists) for e in striker.matches] == [(0, 0), (0, 1)]

    @pytest.mark.asyncio
    async def test_coach_cannot_read_other_team_stats(self, db_session, coach_user, other_team):
        with pytest.raises(PermissionDeniedError):
            await match_service.team_performance(db_session, coach_user, other_team.id)


class TestMatchApi:

    @pytest.mark.asyncio
    async def test_lifecycle(self, test_client, auth, coach_user, admin_user, team, player):
        headers = auth(coach_user)
        created = await test_client.post(
            "/api/matches",
            json={"home_team_id": team.id, "opponent_name": "Vasas", "match_date": "2024-10-05"},
            headers=headers,
        )
        assert created.status_code == 201
        match_id = created.json()["id"]

        score = await test_client.put(
            f"/api/matches/{match_id}/score", json={"home_score": 4, "away_score": 2}, headers=headers
        )
        assert score.json()["match_status"] == "completed"

        results = await test_client.get("/api/matches/stats/results", headers=headers)
        assert [m["id"] for m in results.json()] == [match_id]

        denied = await test_client.delete(f"/api/matches/{match_id}", headers=headers)
        assert denied.status_code == 403
        deleted = await test_client.delete(f"/api/matches/{match_id}", headers=auth(admin_user))
        assert deleted.status_code == 200

    @pytest.mark.asyncio
    async def test_negative_score_is_400(self, test_client, auth, admin_user, team):
        created = await test_client.post(
            "/api/matches",
            json={"home_team_id": team.id, "opponent_name": "Vasas", "match_date": "2024-10-05"},
            headers=auth(admin_user),
        )
        response = await test_client.put(
            f"/api/matches/{created.json()['id']}/score",
            json={"home_score": -2, "away_score": 0},
            headers=auth(admin_user),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_parent_sees_child_team_matches_only(
        self, test_client, auth, admin_user, parent_user, team, other_team
    ):
        for home in (team.id, other_team.id):
            await test_client.post(
                "/api/matches",
                json={"home_team_id": home, "opponent_name": "Vasas", "match_date": "2024-10-05"},
                headers=auth(admin_user),
            )
        response = await test_client.get("/api/matches", headers=auth(parent_user))
        assert [m["home_team_id"] for m in response.json()] == [team.id]
