"""
Football Academy Backend — QR Check-in Tests
==============================================

What:  QR issuing, token rotation and every scan rejection path.
How:   CheckInService gets a fixed wall clock so the check-in window is
       deterministic; the training starts 2024-09-10 17:00.
"""

import base64
import json
from datetime import date, datetime, time, timedelta

import pytest
from sqlalchemy import select

from academy.database import utcnow
from academy.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from academy.models.training import QR_CHECKIN_NOTE, TrainingQRToken
from academy.schemas.training import CheckInRequest, TrainingCreate
from academy.services.checkin_service import CheckInService, render_qr_png
from academy.services.training_service import training_service

START = datetime(2024, 9, 10, 17, 0)


def service_at(moment: datetime) -> CheckInService:
    return CheckInService(clock=lambda: moment)


@pytest.fixture
def training_factory(db_session, coach_user, team):
    async def _make():
        return await training_service.create_training(
            db_session,
            coach_user,
            TrainingCreate(date=date(2024, 9, 10), time=time(17, 0), type="technical", team_id=team.id),
        )

    return _make


async def issue(db_session, user, training, moment=START):
    qr = await service_at(moment).generate_qr(db_session, user, training.id)
    return qr, json.dumps({"training_id": training.id, "token": qr.token})


class TestQRGeneration:

    def test_render_returns_png_data_url(self):
        url = render_qr_png('{"training_id": 1}')
        assert url.startswith("data:image/png;base64,")
        assert base64.b64decode(url.split(",", 1)[1])[:8] == b"\x89PNG\r\n\x1a\n"

    @pytest.mark.asyncio
    async def test_new_code_deactivates_old_one(self, db_session, coach_user, training_factory):
        training = await training_factory()
        first, _ = await issue(db_session, coach_user, training)
        second, _ = await issue(db_session, coach_user, training)

        assert first.token != second.token
        assert len(second.token) == 64
        result = await db_session.execute(
            select(TrainingQRToken.token).where(TrainingQRToken.active.is_(True))
        )
        assert result.scalars().all() == [second.token]

    @pytest.mark.asyncio
    async def test_other_coach_cannot_issue(self, db_session, make_user, other_team, training_factory):
        training = await training_factory()
        rival = await make_user("coach", "rival_coach", team_id=other_team.id)
        with pytest.raises(PermissionDeniedError):
            await service_at(START).generate_qr(db_session, rival, training.id)


class TestCheckIn:

    @pytest.mark.asyncio
    async def test_on_time_check_in(self, db_session, coach_user, player, training_factory):
        training = await training_factory()
        _, qr_data = await issue(db_session, coach_user, training)

        moment = START - timedelta(minutes=10)
        result = await service_at(moment).check_in(
            db_session, coach_user, CheckInRequest(qr_data=qr_data, player_id=player.id)
        )
        assert result.attendance.present
        assert result.attendance.late_minutes == 0
        assert result.attendance.notes == QR_CHECKIN_NOTE
        assert result.attendance.checked_in_at == moment

    @pytest.mark.asyncio
    async def test_late_minutes_are_floored(self, db_session, coach_user, player, training_factory):
        training = await training_factory()
        _, qr_data = await issue(db_session, coach_user, training)

        result = await service_at(START + timedelta(minutes=7, seconds=50)).check_in(
            db_session, coach_user, CheckInRequest(qr_data=qr_data, player_id=player.id)
        )
        assert result.attendance.late_minutes == 7

    @pytest.mark.asyncio
    async def test_second_scan_conflicts(self, db_session, coach_user, player, training_factory):
        training = await training_factory()
        _, qr_data = await issue(db_session, coach_user, training)
        svc = service_at(START)
        request = CheckInRequest(qr_data=qr_data, player_id=player.id)

        await svc.check_in(db_session, coach_user, request)
        with pytest.raises(ConflictError, match="already checked in"):
            await svc.check_in(db_session, coach_user, request)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "offset, message",
        [
            (timedelta(minutes=-31), "not open yet"),
            (timedelta(minutes=16), "window closed"),
        ],
    )
    async def test_window(self, db_session, coach_user, player, training_factory, offset, message):
        training = await training_factory()
        _, qr_data = await issue(db_session, coach_user, training)
        with pytest.raises(ValidationError, match=message):
            await service_at(START + offset).check_in(
                db_session, coach_user, CheckInRequest(qr_data=qr_data, player_id=player.id)
            )

    @pytest.mark.asyncio
    async def test_window_edges_are_inclusive(self, db_session, coach_user, player, make_player, training_factory, team):
        training = await training_factory()
        early_bird = await make_player("Early Bird", team_id=team.id)
        _, qr_data = await issue(db_session, coach_user, training)

        await service_at(START - timedelta(minutes=30)).check_in(
            db_session, coach_user, CheckInRequest(qr_data=qr_data, player_id=early_bird.id)
        )
        last = await service_at(START + timedelta(minutes=15)).check_in(
            db_session, coach_user, CheckInRequest(qr_data=qr_data, player_id=player.id)
        )
        assert last.attendance.late_minutes == 15

    @pytest.mark.asyncio
    @pytest.mark.parametrize("qr_data", ["not json", "[1, 2]", '{"training_id": "1", "token": "x"}'])
    async def test_malformed_qr(self, db_session, coach_user, player, qr_data):
        with pytest.raises(ValidationError, match="^Invalid QR code$"):
            await service_at(START).check_in(
                db_session, coach_user, CheckInRequest(qr_data=qr_data, player_id=player.id)
            )

    @pytest.mark.asyncio
    async def test_missing_fields(self, db_session, coach_user):
        with pytest.raises(ValidationError, match="required"):
            await service_at(START).check_in(db_session, coach_user, CheckInRequest(qr_data="{}"))

    @pytest.mark.asyncio
    async def test_superseded_token_rejected(self, db_session, coach_user, player, training_factory):
        training = await training_factory()
        _, old_qr = await issue(db_session, coach_user, training)
        await issue(db_session, coach_user, training)

        with pytest.raises(ValidationError, match="Invalid or expired"):
            await service_at(START).check_in(
                db_session, coach_user, CheckInRequest(qr_data=old_qr, player_id=player.id)
            )

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, db_session, coach_user, player, training_factory):
        training = await training_factory()
        qr, qr_data = await issue(db_session, coach_user, training)
        row = (
            await db_session.execute(select(TrainingQRToken).where(TrainingQRToken.token == qr.token))
        ).scalar_one()
        row.expires_at = utcnow() - timedelta(seconds=1)
        await db_session.flush()

        with pytest.raises(ValidationError, match="Invalid or expired"):
            await service_at(START).check_in(
                db_session, coach_user, CheckInRequest(qr_data=qr_data, player_id=player.id)
            )

    @pytest.mark.asyncio
    async def test_token_for_other_training_rejected(self, db_session, coach_user, player, training_factory):
        first = await training_factory()
        second = await training_factory()
        qr, _ = await issue(db_session, coach_user, first)
        forged = json.dumps({"training_id": second.id, "token": qr.token})

        with pytest.raises(ValidationError, match="Invalid or expired"):
            await service_at(START).check_in(
                db_session, coach_user, CheckInRequest(qr_data=forged, player_id=player.id)
            )

    @pytest.mark.asyncio
    async def test_player_from_other_team(self, db_session, coach_user, make_player, other_team, training_factory):
        training = await training_factory()
        outsider = await make_player("Outsider", team_id=other_team.id)
        _, qr_data = await issue(db_session, coach_user, training)
        with pytest.raises(ValidationError, match="not in this training's team"):
            await service_at(START).check_in(
                db_session, coach_user, CheckInRequest(qr_data=qr_data, player_id=outsider.id)
            )

    @pytest.mark.asyncio
    async def test_parent_cannot_scan(self, db_session, parent_user, player):
        with pytest.raises(PermissionDeniedError):
            await service_at(START).check_in(
                db_session, parent_user, CheckInRequest(qr_data="{}", player_id=player.id)
            )

    @pytest.mark.asyncio
    async def test_list_checkins_only_scanned_rows(
        self, db_session, coach_user, player, make_player, team, training_factory
    ):
        training = await training_factory()
        await make_player("No Show", team_id=team.id)
        _, qr_data = await issue(db_session, coach_user, training)
        svc = service_at(START)
        await svc.check_in(db_session, coach_user, CheckInRequest(qr_data=qr_data, player_id=player.id))

        rows = await svc.list_checkins(db_session, coach_user, training.id)
        assert [r.player_id for r in rows] == [player.id]


class TestCheckInApi:

    @pytest.mark.asyncio
    async def test_generate_qr_endpoint(self, test_client, auth, coach_user, training_factory, db_session):
        training = await training_factory()
        await db_session.commit()

        response = await test_client.post(f"/api/checkin/trainings/{training.id}/qr", headers=auth(coach_user))
        assert response.status_code == 200
        body = response.json()
        assert body["qr_code"].startswith("data:image/png;base64,")
        assert body["training"]["id"] == training.id

    @pytest.mark.asyncio
    async def test_missing_training_is_404(self, test_client, auth, admin_user):
        response = await test_client.post("/api/checkin/trainings/999/qr", headers=auth(admin_user))
        assert response.status_code == 404
