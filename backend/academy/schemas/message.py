from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

MessageType = Literal["text", "announcement", "emergency"]
Priority = Literal["low", "normal", "high", "urgent"]


class MessageCreate(BaseModel):
    """Post into an existing conversation, or open a direct one with recipient_id."""
    content: str = Field(min_length=1, max_length=5000)
    conversation_id: Optional[int] = None
    recipient_id: Optional[int] = None
    subject: Optional[str] = Field(default=None, max_length=200)
    type: MessageType = "text"
    priority: Priority = "normal"

    @model_validator(mode="after")
    def _needs_target(self) -> "MessageCreate":
        if self.conversation_id is None and self.recipient_id is None:
            raise ValueError("conversation_id or recipient_id is required")
        return self


class BroadcastCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1, max_length=5000)
    scope: Literal["academy", "team"]
    team_id: Optional[int] = None
    include_parents: bool = False
    priority: Priority = "normal"

    @model_validator(mode="after")
    def _team_scope_needs_team(self) -> "BroadcastCreate":
        if self.scope == "team" and self.team_id is None:
            raise ValueError("team_id is required for team scope")
        return self


class Contact(BaseModel):
    id: int
    name: str
    display_name: str
    role: str


class Participant(BaseModel):
    id: int
    name: str
    role: str


class ConversationMessage(BaseModel):
    id: int
    conversation_id: int
    sender_id: Optional[int] = None
    subject: Optional[str] = None
    content: str
    type: str
    priority: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ConversationSummary(BaseModel):
    id: int
    name: Optional[str] = None
    type: str
    team_id: Optional[int] = None
    updated_at: datetime
    participants: List[Participant] = []
    last_message: Optional[ConversationMessage] = None
    unread_count: int = 0


class BroadcastResult(BaseModel):
    conversation_id: int
    recipients: int


class MarkReadResult(BaseModel):
    conversation_id: int
    updated: int


class UnreadCount(BaseModel):
    unread: int
