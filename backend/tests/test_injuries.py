"""
Football Academy Backend — Injury Tests
=========================================

What:  Injury log permissions, recovery date rules, treatments and
       statistics.
"""

from datetime import date, timedelta

import pytest

from academy.exceptions import PermissionDeniedError, ValidationError
from academy.models.user import Role
from academy.schemas.injury import InjuryCreate, InjuryUpdate, RecoveryUpdate, TreatmentCreate
from academy.services.injury_service import injury_service

TODAY = date(2024, 10, 15)


async def record(db, user, player_id, injury_date=date(2024, 10, 1), **fields):
    fields.setdefault("injury_type", "muscle_strain")
    fields.setdefault("injury_severity", "minor")
    fields.setdefault("injury_location", "training")
    return await injury_service.create_injury(
        db, user, InjuryCreate(player_id=player_id, injury_date=injury_date, **fields), today=TODAY
    )


class TestInjuryService:

    @pytest.mark.asyncio
    async def test_coach_records_injury_for_own_player(self, db_session, coach_user, player):
        injury = await record(db_session, coach_user, player.id, body_part="hamstring")
        assert injury.status == "active"
        assert injury.created_by == coach_user.id

    @pytest.mark.asyncio
    async def test_coach_cannot_record_for_other_team(
        self, db_session, coach_user, make_player, other_team
    ):
        rival = await make_player("Zoli Kiss", team_id=other_team.id)
        with pytest.raises(PermissionDeniedError):
            await record(db_session, coach_user, rival.id)

    @pytest.mark.asyncio
    async def test_parent_cannot_record(self, db_session, parent_user, player):
        with pytest.raises(PermissionDeniedError):
            await record(db_session, parent_user, player.id)

    @pytest.mark.asyncio
    async def test_future_injury_date_rejected(self, db_session, admin_user, player):
        with pytest.raises(ValidationError):
            await record(db_session, admin_user, player.id, injury_date=TODAY + timedelta(days=1))

    @pytest.mark.asyncio
    async def test_recovery_dates_are_ordered(self, db_session, admin_user, player):
        injury = await record(db_session, admin_user, player.id)

        with pytest.raises(ValidationError):
            await injury_service.record_recovery(
                db_session, admin_user, injury.id,
                RecoveryUpdate(recovery_date=date(2024, 9, 30)), today=TODAY,
            )
        with pytest.raises(ValidationError):
            await injury_service.record_recovery(
                db_session, admin_user, injury.id,
                RecoveryUpdate(recovery_date=TODAY + timedelta(days=1)), today=TODAY,
            )
        with pytest.raises(ValidationError):
            await injury_service.record_recovery(
                db_session, admin_user, injury.id,
                RecoveryUpdate(recovery_date=date(2024, 10, 11),
                               return_to_play_date=date(2024, 10, 10)),
                today=TODAY,
            )

        recovered = await injury_service.record_recovery(
            db_session, admin_user, injury.id,
            RecoveryUpdate(return_to_play_date=TODAY, recovery_notes="Cleared by physio"),
            today=TODAY,
        )
        assert recovered.actual_recovery_date == TODAY
        assert recovered.status == "recovered"

    @pytest.mark.asyncio
    async def test_update_keeps_required_fields(self, db_session, admin_user, player):
        injury = await record(db_session, admin_user, player.id)
        updated = await injury_service.update_injury(
            db_session, admin_user, injury.id,
            InjuryUpdate(injury_severity=None, treatment_plan="Rest and ice"),
        )
        assert updated.injury_severity == "minor"
        assert updated.treatment_plan == "Rest and ice"

    @pytest.mark.asyncio
    async def test_statistics(self, db_session, admin_user, player, make_player, team):
        second = await make_player("Marci Szabo", team_id=team.id)
        first = await record(db_session, admin_user, player.id, injury_date=date(2024, 9, 1))
        await record(db_session, admin_user, second.id, injury_severity="severe",
                     injury_type="bone_fracture")
        await injury_service.record_recovery(
            db_session, admin_user, first.id, RecoveryUpdate(recovery_date=date(2024, 9, 11)),
            today=TODAY,
        )

        stats = await injury_service.statistics(db_session, admin_user)
        assert stats.total == 2
        assert stats.active == 1
        assert stats.recovered == 1
        assert stats.by_type == {"muscle_strain": 1, "bone_fracture": 1}
        assert stats.average_recovery_days == 10.0

        active = await injury_service.active_injuries(db_session, admin_user)
        assert [i.player_id for i in active] == [second.id]

    @pytest.mark.asyncio
    async def test_coach_list_scoped_to_team(
        self, db_session, admin_user, coach_user, player, make_player, other_team
    ):
        rival = await make_player("Zoli Kiss", team_id=other_team.id)
        await record(db_session, admin_user, player.id)
        await record(db_session, admin_user, rival.id)

        rows = await injury_service.list_injuries(db_session, coach_user)
        assert [i.player_id for i in rows] == [player.id]
        with pytest.raises(PermissionDeniedError):
            await injury_service.list_injuries(db_session, coach_user, team_id=other_team.id)

    @pytest.mark.asyncio
    async def test_history_follows_transfer(
        self, db_session, admin_user, coach_user, player, make_user, other_team
    ):
        injury = await record(db_session, admin_user, player.id)
        player.team_id = other_team.id
        await db_session.commit()

        new_coach = await make_user(Role.COACH.value, "coach_toth", team_id=other_team.id)
        history = await injury_service.player_history(db_session, new_coach, player.id)
        assert [i.id for i in history.injuries] == [injury.id]
        with pytest.raises(PermissionDeniedError):
            await injury_service.update_injury(
                db_session, coach_user, injury.id, InjuryUpdate(description="old coach")
            )

    @pytest.mark.asyncio
    async def test_treatments(self, db_session, coach_user, parent_user, player):
        injury = await record(db_session, coach_user, player.id)
        await injury_service.add_treatment(
            db_session, coach_user, injury.id,
            TreatmentCreate(treatment_type="physiotherapy", treatment_date=date(2024, 10, 3)),
        )
        with pytest.raises(ValidationError):
            await injury_service.add_treatment(
                db_session, coach_user, injury.id,
                TreatmentCreate(treatment_type="ice", treatment_date=date(2024, 9, 1)),
            )
        # Parents read their child's treatments
        rows = await injury_service.treatments(db_session, parent_user, injury.id)
        assert [t.treatment_type for t in rows] == ["physiotherapy"]


class TestInjuryApi:

    @pytest.mark.asyncio
    async def test_parent_reads_child_history(self, test_client, auth, coach_user, parent_user, player):
        created = await test_client.post(
            "/api/injuries",
            json={"player_id": player.id, "injury_type": "ligament_sprain",
                  "injury_severity": "moderate", "injury_date": "2024-09-20",
                  "injury_location": "match", "body_part": "ankle"},
            headers=auth(coach_user),
        )
        assert created.status_code == 201
        assert created.json()["status"] == "active"

        history = await test_client.get(
            f"/api/injuries/player/{player.id}", headers=auth(parent_user)
        )
        assert history.status_code == 200
        body = history.json()
        assert body["player_name"] == "Bence Nagy"
        assert body["statistics"]["active"] == 1

        staff_list = await test_client.get("/api/injuries", headers=auth(parent_user))
        assert staff_list.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_injury_type(self, test_client, auth, coach_user, player):
        response = await test_client.post(
            "/api/injuries",
            json={"player_id": player.id, "injury_type": "broken_heart",
                  "injury_severity": "minor", "injury_date": "2024-09-20",
                  "injury_location": "match"},
            headers=auth(coach_user),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_only_admin_deletes(self, test_client, auth, admin_user, coach_user, player):
        created = await test_client.post(
            "/api/injuries",
            json={"player_id": player.id, "injury_type": "bruise_contusion",
                  "injury_severity": "minor", "injury_date": "2024-09-20",
                  "injury_location": "training"},
            headers=auth(coach_user),
        )
        injury_id = created.json()["id"]

        denied = await test_client.delete(f"/api/injuries/{injury_id}", headers=auth(coach_user))
        assert denied.status_code == 403
        deleted = await test_client.delete(f"/api/injuries/{injury_id}", headers=auth(admin_user))
        assert deleted.status_code == 200
        missing = await test_client.get(f"/api/injuries/{injury_id}", headers=auth(admin_user))
        assert missing.status_code == 404
