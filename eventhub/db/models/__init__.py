"""Database models package."""
from eventhub.db.models.user import User, RoleEnum
from eventhub.db.models.event import Event, EventCategory, EventStatus
from eventhub.db.models.registration import Registration, RegistrationStatus, ACTIVE_REGISTRATION_STATUSES
from eventhub.db.models.comment import Comment

__all__ = [
    "User",
    "RoleEnum",
    "Event",
    "EventCategory",
    "EventStatus",
    "Registration",
    "RegistrationStatus",
    "ACTIVE_REGISTRATION_STATUSES",
    "Comment",
]
