from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship
from eventhub.db.models.mixins import RecordMixin
from eventhub.db.session import Base
import enum


class EventStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class EventCategory(str, enum.Enum):
    """Event category enum."""
    CONFERENCE = "CONFERENCE"
    WORKSHOP = "WORKSHOP"
    SEMINAR = "SEMINAR"
    NETWORKING = "NETWORKING"
    CONCERT = "CONCERT"
    SPORTS = "SPORTS"
    OTHER = "OTHER"


class Event(RecordMixin, Base):
    __tablename__ = "events"
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(200), nullable=False)
    capacity = Column(Integer, nullable=False)
    organizer_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    status = Column(Enum(EventStatus), default=EventStatus.DRAFT, nullable=False)
    category = Column(Enum(EventCategory), nullable=False)
    image_url = Column(String(500), nullable=True)

    organizer = relationship("User")

    # Indexes for frequently queried fields
    __table_args__ = (
        Index("idx_event_date", "date"),
        Index("idx_event_organizer", "organizer_id"),
        Index("idx_event_status", "status"),
        Index("idx_event_category", "category"),
        Index("idx_event_deleted", "is_deleted"),
    )
