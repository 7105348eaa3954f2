"""
Football Academy Backend — Messaging Service
==============================================

What:  In-app messaging: direct conversations, staff broadcasts, read
       tracking and the per-role contact list.
Who:   /api/messages router.

Who may start a conversation with whom:
    admin   → any active account
    coach   → admins, coaches, player accounts and parents of their team
    parent  → admins and the coaches of their children's teams
    player  → admins, their team's coach and teammates

Once a conversation exists its participants can always reply in it.
Broadcasts are one-way: only the creator posts, recipients answer with a
direct message.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from academy.database import utcnow
from academy.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from academy.models.message import Conversation, ConversationParticipant, Message
from academy.models.player import ParentChildRelationship, Player
from academy.models.team import Team
from academy.models.user import Role, User
from academy.schemas.message import (
    BroadcastCreate,
    BroadcastResult,
    Contact,
    ConversationMessage,
    ConversationSummary,
    MessageCreate,
    Participant,
)
from academy.services.access import STAFF_ROLES, access_policy

logger = logging.getLogger(__name__)

MAX_PAGE = 100


def _display_name(user: User) -> str:
    return user.full_name or user.username


class MessageService:

    # ── Audiences ─────────────────────────────────────────────────────────

    async def _ids(self, db: AsyncSession, stmt) -> Set[int]:
        return set((await db.execute(stmt)).scalars().all())

    async def _admin_ids(self, db: AsyncSession) -> Set[int]:
        return await self._ids(db, select(User.id).where(User.role == Role.ADMIN.value))

    async def _coach_ids(self, db: AsyncSession, team_ids: Optional[Iterable[int]] = None) -> Set[int]:
        stmt = select(User.id).where(User.role == Role.COACH.value)
        if team_ids is not None:
            stmt = stmt.where(User.team_id.in_(list(team_ids)))
        return await self._ids(db, stmt)

    async def _player_account_ids(self, db: AsyncSession, team_ids: Iterable[int]) -> Set[int]:
        return await self._ids(
            db,
            select(User.id)
            .join(Player, Player.id == User.player_id)
            .where(User.role == Role.PLAYER.value, Player.team_id.in_(list(team_ids))),
        )

    async def _parent_ids(self, db: AsyncSession, team_ids: Iterable[int]) -> Set[int]:
        return await self._ids(
            db,
            select(ParentChildRelationship.parent_id)
            .join(Player, Player.id == ParentChildRelationship.child_id)
            .where(
                ParentChildRelationship.active.is_(True),
                Player.team_id.in_(list(team_ids)),
            ),
        )

    async def contact_ids(self, db: AsyncSession, user: User) -> Optional[Set[int]]:
        """Accounts the user may open a conversation with. None means everyone."""
        if user.role == Role.ADMIN.value:
            return None
        ids = await self._admin_ids(db)
        if user.role == Role.COACH.value:
            ids |= await self._coach_ids(db)
            if user.team_id is not None:
                ids |= await self._player_account_ids(db, [user.team_id])
                ids |= await self._parent_ids(db, [user.team_id])
        else:
            teams = await access_policy.visible_team_ids(db, user) or set()
            if teams:
                ids |= await self._coach_ids(db, teams)
                if user.role == Role.PLAYER.value:
                    ids |= await self._player_account_ids(db, teams)
        ids.discard(user.id)
        return ids

    async def contacts(
        self, db: AsyncSession, user: User, search: Optional[str] = None
    ) -> List[Contact]:
        stmt = select(User).where(User.active.is_(True), User.id != user.id)
        allowed = await self.contact_ids(db, user)
        if allowed is not None:
            if not allowed:
                return []
            stmt = stmt.where(User.id.in_(sorted(allowed)))
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(User.username).like(pattern),
                    func.lower(func.coalesce(User.full_name, "")).like(pattern),
                )
            )
        result = await db.execute(stmt.order_by(User.role, User.full_name, User.username))
        return [
            Contact(
                id=u.id,
                name=_display_name(u),
                display_name=f"{_display_name(u)} ({u.role.title()})",
                role=u.role,
            )
            for u in result.scalars().all()
        ]

    # ── Conversations ─────────────────────────────────────────────────────

    async def _participant(
        self, db: AsyncSession, conversation_id: int, user_id: int
    ) -> Optional[ConversationParticipant]:
        result = await db.execute(
            select(ConversationParticipant).where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def _require_participant(
        self, db: AsyncSession, user: User, conversation_id: int
    ) -> Tuple[Conversation, ConversationParticipant]:
        conversation = await db.get(Conversation, conversation_id)
        if conversation is None:
            raise NotFoundError(resource="Conversation", resource_id=conversation_id)
        participant = await self._participant(db, conversation_id, user.id)
        if participant is None:
            raise PermissionDeniedError(
                "Access denied to this conversation",
                context={"conversation_id": conversation_id},
            )
        return conversation, participant

    async def _direct_between(self, db: AsyncSession, a: int, b: int) -> Optional[Conversation]:
        first = aliased(ConversationParticipant)
        second = aliased(ConversationParticipant)
        result = await db.execute(
            select(Conversation)
            .join(first, first.conversation_id == Conversation.id)
            .join(second, second.conversation_id == Conversation.id)
            .where(Conversation.type == "direct", first.user_id == a, second.user_id == b)
            .order_by(Conversation.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _open_direct(
        self, db: AsyncSession, user: User, recipient_id: int
    ) -> Tuple[Conversation, ConversationParticipant]:
        if recipient_id == user.id:
            raise ValidationError("You cannot message yourself", field="recipient_id")
        recipient = await db.get(User, recipient_id)
        if recipient is None or not recipient.active:
            raise NotFoundError(resource="User", resource_id=recipient_id)
        allowed = await self.contact_ids(db, user)
        if allowed is not None and recipient_id not in allowed:
            raise PermissionDeniedError(
                "You cannot message this user", context={"recipient_id": recipient_id}
            )

        existing = await self._direct_between(db, user.id, recipient_id)
        if existing is not None:
            return existing, await self._participant(db, existing.id, user.id)

        conversation = Conversation(type="direct", created_by=user.id)
        db.add(conversation)
        await db.flush()
        mine = ConversationParticipant(conversation_id=conversation.id, user_id=user.id)
        db.add_all(
            [mine, ConversationParticipant(conversation_id=conversation.id, user_id=recipient_id)]
        )
        await db.flush()
        logger.info("Direct conversation %d opened: %s → %d", conversation.id, user.username, recipient_id)
        return conversation, mine

    async def _unread_by_conversation(
        self, db: AsyncSession, user: User, conversation_ids: Optional[List[int]] = None
    ) -> Dict[int, int]:
        stmt = (
            select(Message.conversation_id, func.count(Message.id))
            .join(
                ConversationParticipant,
                and_(
                    ConversationParticipant.conversation_id == Message.conversation_id,
                    ConversationParticipant.user_id == user.id,
                ),
            )
            .where(
                or_(Message.sender_id.is_(None), Message.sender_id != user.id),
                Message.id > func.coalesce(ConversationParticipant.last_read_message_id, 0),
            )
            .group_by(Message.conversation_id)
        )
        if conversation_ids is not None:
            stmt = stmt.where(Message.conversation_id.in_(conversation_ids))
        return {conv_id: count for conv_id, count in (await db.execute(stmt)).all()}

    async def list_conversations(self, db: AsyncSession, user: User) -> List[ConversationSummary]:
        """Inbox, most recently active first, with last message and unread count."""
        result = await db.execute(
            select(Conversation)
            .join(
                ConversationParticipant,
                ConversationParticipant.conversation_id == Conversation.id,
            )
            .where(ConversationParticipant.user_id == user.id)
            .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        )
        conversations = list(result.scalars().all())
        if not conversations:
            return []
        ids = [c.id for c in conversations]

        latest = (
            select(func.max(Message.id))
            .where(Message.conversation_id.in_(ids))
            .group_by(Message.conversation_id)
        )
        last_messages = {
            m.conversation_id: m
            for m in (await db.execute(select(Message).where(Message.id.in_(latest)))).scalars()
        }

        people: Dict[int, List[Participant]] = defaultdict(list)
        rows = await db.execute(
            select(ConversationParticipant.conversation_id, User)
            .join(User, User.id == ConversationParticipant.user_id)
            .where(ConversationParticipant.conversation_id.in_(ids), User.id != user.id)
            .order_by(User.username)
        )
        for conversation_id, other in rows.all():
            people[conversation_id].append(
                Participant(id=other.id, name=_display_name(other), role=other.role)
            )

        unread = await self._unread_by_conversation(db, user, ids)
        summaries = []
        for conversation in conversations:
            last = last_messages.get(conversation.id)
            summaries.append(
                ConversationSummary(
                    id=conversation.id,
                    name=conversation.name,
                    type=conversation.type,
                    team_id=conversation.team_id,
                    updated_at=conversation.updated_at,
                    participants=people.get(conversation.id, []),
                    last_message=ConversationMessage.model_validate(last) if last else None,
                    unread_count=unread.get(conversation.id, 0),
                )
            )
        return summaries

    async def get_messages(
        self,
        db: AsyncSession,
        user: User,
        conversation_id: int,
        page: int = 1,
        limit: int = 50,
    ) -> List[Message]:
        """One page of a conversation, returned oldest first; page 1 is the newest."""
        await self._require_participant(db, user, conversation_id)
        limit = max(1, min(limit, MAX_PAGE))
        result = await db.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.id.desc())
            .limit(limit)
            .offset((max(page, 1) - 1) * limit)
        )
        return list(reversed(result.scalars().all()))

    # ── Sending ───────────────────────────────────────────────────────────

    async def _post(
        self,
        db: AsyncSession,
        user: User,
        conversation: Conversation,
        sender: ConversationParticipant,
        content: str,
        subject: Optional[str],
        message_type: str,
        priority: str,
    ) -> Message:
        message = Message(
            conversation_id=conversation.id,
            sender_id=user.id,
            subject=subject,
            content=content,
            type=message_type,
            priority=priority,
        )
        db.add(message)
        await db.flush()
        # The sender has seen their own message
        sender.last_read_message_id = message.id
        conversation.updated_at = utcnow()
        await db.flush()
        return message

    async def send_message(self, db: AsyncSession, user: User, data: MessageCreate) -> Message:
        if data.type != "text":
            access_policy.require_roles(user, *STAFF_ROLES)
        if data.conversation_id is not None:
            conversation, sender = await self._require_participant(db, user, data.conversation_id)
            if conversation.type == "broadcast" and conversation.created_by != user.id:
                raise PermissionDeniedError(
                    "Broadcasts are read-only; reply with a direct message",
                    context={"conversation_id": conversation.id},
                )
        else:
            conversation, sender = await self._open_direct(db, user, data.recipient_id)

        message = await self._post(
            db, user, conversation, sender, data.content, data.subject, data.type, data.priority
        )
        logger.info(
            "Message %d sent by %s in conversation %d", message.id, user.username, conversation.id
        )
        return message

    async def broadcast(
        self, db: AsyncSession, user: User, data: BroadcastCreate
    ) -> BroadcastResult:
        """
        One message to a whole team (player accounts and coach, optionally
        parents) or, for admins, to every active account.
        """
        access_policy.require_roles(user, *STAFF_ROLES)
        if data.scope == "academy":
            access_policy.require_roles(user, Role.ADMIN.value)
            recipients = await self._ids(db, select(User.id).where(User.active.is_(True)))
            team_id = None
        else:
            team_id = data.team_id
            access_policy.ensure_team_staff(user, team_id)
            if await db.get(Team, team_id) is None:
                raise NotFoundError(resource="Team", resource_id=team_id)
            recipients = await self._player_account_ids(db, [team_id])
            recipients |= await self._coach_ids(db, [team_id])
            if data.include_parents:
                recipients |= await self._parent_ids(db, [team_id])
            if recipients:
                recipients = await self._ids(
                    db, select(User.id).where(User.id.in_(sorted(recipients)), User.active.is_(True))
                )
        recipients.discard(user.id)
        if not recipients:
            raise ValidationError("No recipients found for this broadcast", field="scope")

        conversation = Conversation(
            name=data.title, type="broadcast", team_id=team_id, created_by=user.id
        )
        db.add(conversation)
        await db.flush()
        sender = ConversationParticipant(conversation_id=conversation.id, user_id=user.id)
        db.add(sender)
        db.add_all(
            ConversationParticipant(conversation_id=conversation.id, user_id=uid)
            for uid in sorted(recipients)
        )
        await db.flush()
        await self._post(
            db, user, conversation, sender, data.content, data.title, "announcement", data.priority
        )
        logger.info(
            "Broadcast %d (%s) sent by %s to %d recipients",
            conversation.id, data.scope, user.username, len(recipients),
        )
        return BroadcastResult(conversation_id=conversation.id, recipients=len(recipients))

    # ── Read state ────────────────────────────────────────────────────────

    async def mark_read(self, db: AsyncSession, user: User, conversation_id: int) -> int:
        """Mark everything in the conversation read. Returns how many were unread."""
        _, participant = await self._require_participant(db, user, conversation_id)
        unread = (await self._unread_by_conversation(db, user, [conversation_id])).get(
            conversation_id, 0
        )
        newest = (
            await db.execute(
                select(func.max(Message.id)).where(Message.conversation_id == conversation_id)
            )
        ).scalar_one()
        if newest is not None:
            participant.last_read_message_id = newest
            await db.flush()
        return unread

    async def unread_count(self, db: AsyncSession, user: User) -> int:
        return sum((await self._unread_by_conversation(db, user)).values())


message_service = MessageService()
