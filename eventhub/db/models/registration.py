from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, Index, text
from sqlalchemy.orm import relationship
from eventhub.db.models.mixins import RecordMixin, utcnow
from eventhub.db.session import Base
import enum


class RegistrationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    ATTENDED = "ATTENDED"


# Statuses that occupy a seat against Event.capacity
ACTIVE_REGISTRATION_STATUSES = (RegistrationStatus.PENDING, RegistrationStatus.CONFIRMED)


class Registration(RecordMixin, Base):
    __tablename__ = "registrations"
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False)
    status = Column(Enum(RegistrationStatus), default=RegistrationStatus.PENDING, nullable=False)
    registered_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    notes = Column(String(500), nullable=True)

    user = relationship("User")
    event = relationship("Event")

    # At most one live registration per (user, event); the database rejects
    # the second of two concurrent identical inserts.
    __table_args__ = (
        Index(
            "uq_registration_user_event_active",
            "user_id",
            "event_id",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
        Index("idx_registration_user", "user_id"),
        Index("idx_registration_event", "event_id"),
        Index("idx_registration_status", "status"),
    )
