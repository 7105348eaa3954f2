"""
Football Academy Backend — Messaging Routes
=============================================

What:  /api/messages — inbox, conversation history, direct messages,
       staff broadcasts and unread badges.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import User
from academy.routes.deps import get_current_user
from academy.schemas.common import ERROR_RESPONSES
from academy.schemas.message import (
    BroadcastCreate,
    BroadcastResult,
    Contact,
    ConversationMessage,
    ConversationSummary,
    MarkReadResult,
    MessageCreate,
    UnreadCount,
)
from academy.services.message_service import MAX_PAGE, message_service

router = APIRouter(prefix="/api/messages", tags=["Messages"], responses=ERROR_RESPONSES)


@router.get("/conversations", response_model=List[ConversationSummary], summary="Inbox")
async def list_conversations(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[ConversationSummary]:
    return await message_service.list_conversations(db, user)


@router.get(
    "/conversation/{conversation_id}",
    response_model=List[ConversationMessage],
    summary="Messages in a conversation",
)
async def get_messages(
    conversation_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=MAX_PAGE),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[ConversationMessage]:
    rows = await message_service.get_messages(db, user, conversation_id, page=page, limit=limit)
    return [ConversationMessage.model_validate(m) for m in rows]


@router.put(
    "/conversation/{conversation_id}/read",
    response_model=MarkReadResult,
    summary="Mark a conversation read",
)
async def mark_read(
    conversation_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MarkReadResult:
    updated = await message_service.mark_read(db, user, conversation_id)
    return MarkReadResult(conversation_id=conversation_id, updated=updated)


@router.post(
    "",
    response_model=ConversationMessage,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
async def send_message(
    body: MessageCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConversationMessage:
    return ConversationMessage.model_validate(await message_service.send_message(db, user, body))


@router.post(
    "/broadcast",
    response_model=BroadcastResult,
    status_code=status.HTTP_201_CREATED,
    summary="Broadcast to a team or the whole academy",
)
async def broadcast(
    body: BroadcastCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BroadcastResult:
    return await message_service.broadcast(db, user, body)


@router.get("/contacts", response_model=List[Contact], summary="People you can message")
async def contacts(
    search: Optional[str] = Query(default=None, max_length=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[Contact]:
    return await message_service.contacts(db, user, search=search)


@router.get("/unread-count", response_model=UnreadCount, summary="Unread message badge")
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UnreadCount:
    return UnreadCount(unread=await message_service.unread_count(db, user))
