"""
Football Academy Backend — QR Check-in Service
================================================

What:  Issues check-in QR codes for a training and marks players present
       when their code is scanned.
How:   A QR code carries JSON {training_id, token, team, date, time}. The
       token is 32 random bytes (hex) stored in training_qr_tokens with an
       expiry; issuing a new code deactivates the previous ones.
Who:   /api/checkin router.

Scan validation, in order (first failure wins):
    1. qr_data and player_id present                       → 400
    2. qr_data parses as JSON with training_id and token   → 400 "Invalid QR code"
    3. token known, active, unexpired, for that training   → 400 "Invalid or expired QR code"
    4. training exists                                     → 404
    5. coach belongs to the training's team                → 403
    6. now within [start - open, start + close]            → 400
    7. player on the training's team                       → 400
    8. player not already present                          → 409
"""

import base64
import io
import json
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import qrcode
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from academy.config import settings
from academy.database import utcnow
from academy.exceptions import ConflictError, NotFoundError, ValidationError
from academy.models.player import Player
from academy.models.team import Team
from academy.models.training import QR_CHECKIN_NOTE, Attendance, Training, TrainingQRToken
from academy.models.user import User
from academy.schemas.training import (
    AttendanceResponse,
    CheckInRequest,
    CheckInResponse,
    QRCodeResponse,
    TrainingResponse,
)
from academy.services.access import STAFF_ROLES, access_policy
from academy.services.training_service import attendance_response, training_service

logger = logging.getLogger(__name__)


def render_qr_png(payload: str) -> str:
    """Render text as a PNG QR code and return it as a data: URL."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


class CheckInService:
    """
    Args:
        clock: Returns the academy's local wall-clock time. Training dates
               and times are wall-clock values, so the check-in window is
               measured against this. Tests pass a fixed clock.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or datetime.now

    # ── QR Generation ─────────────────────────────────────────────────────

    async def generate_qr(self, db: AsyncSession, user: User, training_id: int) -> QRCodeResponse:
        training = await training_service.get_training(db, training_id)
        access_policy.ensure_team_staff(user, training.team_id)
        team = await db.get(Team, training.team_id)

        await db.execute(
            update(TrainingQRToken)
            .where(TrainingQRToken.training_id == training_id, TrainingQRToken.active.is_(True))
            .values(active=False)
        )
        token = TrainingQRToken(
            training_id=training_id,
            token=secrets.token_hex(32),
            expires_at=utcnow() + timedelta(hours=settings.qr_token_ttl_hours),
            created_by=user.id,
        )
        db.add(token)
        await db.flush()

        payload = json.dumps(
            {
                "training_id": training.id,
                "token": token.token,
                "team": team.name if team else None,
                "date": training.date.isoformat(),
                "time": training.time.strftime("%H:%M"),
            }
        )
        logger.info("QR code issued for training %d by %s", training_id, user.username)
        return QRCodeResponse(
            qr_code=render_qr_png(payload),
            token=token.token,
            expires_at=token.expires_at,
            training=TrainingResponse.model_validate(training),
        )

    # ── Scanning ──────────────────────────────────────────────────────────

    def _parse_qr(self, qr_data: str) -> dict:
        try:
            data = json.loads(qr_data)
        except (TypeError, ValueError):
            raise ValidationError("Invalid QR code", field="qr_data")
        if (
            not isinstance(data, dict)
            or not isinstance(data.get("training_id"), int)
            or not isinstance(data.get("token"), str)
        ):
            raise ValidationError("Invalid QR code", field="qr_data")
        return data

    async def _validate_token(self, db: AsyncSession, training_id: int, token: str) -> None:
        result = await db.execute(
            select(TrainingQRToken).where(TrainingQRToken.token == token)
        )
        row = result.scalar_one_or_none()
        if (
            row is None
            or not row.active
            or row.training_id != training_id
            or row.expires_at <= utcnow()
        ):
            raise ValidationError("Invalid or expired QR code", field="qr_data")

    def _check_window(self, training: Training, now: datetime) -> None:
        start = training.starts_at
        opens = start - timedelta(minutes=settings.checkin_open_minutes_before)
        closes = start + timedelta(minutes=settings.checkin_close_minutes_after)
        if now < opens:
            raise ValidationError(
                "Check-in not open yet",
                context={"opens_at": opens.isoformat()},
            )
        if now > closes:
            raise ValidationError(
                "Check-in window closed",
                context={"closed_at": closes.isoformat()},
            )

    async def check_in(self, db: AsyncSession, user: User, data: CheckInRequest) -> CheckInResponse:
        access_policy.require_roles(user, *STAFF_ROLES)
        if not data.qr_data or data.player_id is None:
            raise ValidationError("qr_data and player_id are required")

        payload = self._parse_qr(data.qr_data)
        training_id = payload["training_id"]
        await self._validate_token(db, training_id, payload["token"])

        training = await db.get(Training, training_id)
        if training is None:
            raise NotFoundError(resource="Training", resource_id=training_id)
        access_policy.ensure_team_staff(user, training.team_id)

        now = self.clock()
        self._check_window(training, now)

        player = await db.get(Player, data.player_id)
        if player is None or player.team_id != training.team_id:
            raise ValidationError("Player is not in this training's team", field="player_id")

        result = await db.execute(
            select(Attendance).where(
                Attendance.training_id == training.id,
                Attendance.player_id == player.id,
            )
        )
        row = result.scalar_one_or_none()
        if row is not None and row.present:
            raise ConflictError(
                "Player already checked in",
                context={"player_id": player.id, "training_id": training.id},
            )
        if row is None:
            row = Attendance(training_id=training.id, player_id=player.id)
            db.add(row)

        late = int((now - training.starts_at).total_seconds() // 60)
        row.present = True
        row.late_minutes = max(0, late)
        row.absence_reason = None
        row.notes = QR_CHECKIN_NOTE
        row.checked_in_at = now
        row.recorded_by = user.id
        await db.flush()

        logger.info(
            "Player %d checked in to training %d (late=%d min)",
            player.id, training.id, row.late_minutes,
        )
        return CheckInResponse(
            message=f"{player.name} checked in",
            attendance=attendance_response(row, player.name),
        )

    async def list_checkins(
        self, db: AsyncSession, user: User, training_id: int
    ) -> List[AttendanceResponse]:
        training = await training_service.get_training_for(db, user, training_id)
        return await training_service.attendance_rows(db, training.id, checked_in_only=True)


checkin_service = CheckInService()
