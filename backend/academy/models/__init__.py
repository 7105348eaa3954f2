"""ORM models. Importing this package registers every table on Base.metadata."""

from academy.models.announcement import Announcement
from academy.models.billing import (
    BillingSequence,
    Invoice,
    Payment,
    PaymentReminder,
    Scholarship,
    StudentSubscription,
    SubscriptionPlan,
)
from academy.models.development import DevelopmentPlan
from academy.models.injury import Injury, InjuryTreatment
from academy.models.match import Match, MatchEvent
from academy.models.message import Conversation, ConversationParticipant, Message
from academy.models.player import ParentChildRelationship, Player
from academy.models.team import Team
from academy.models.training import Attendance, Training, TrainingQRToken
from academy.models.user import Role, User

__all__ = [
    "Announcement",
    "Attendance",
    "BillingSequence",
    "Conversation",
    "ConversationParticipant",
    "DevelopmentPlan",
    "Injury",
    "InjuryTreatment",
    "Invoice",
    "Match",
    "MatchEvent",
    "Message",
    "ParentChildRelationship",
    "Payment",
    "PaymentReminder",
    "Player",
    "Role",
    "Scholarship",
    "StudentSubscription",
    "SubscriptionPlan",
    "Team",
    "Training",
    "TrainingQRToken",
    "User",
]
