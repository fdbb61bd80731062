from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from eventhub.db.models.mixins import RecordMixin
from eventhub.db.session import Base


class Comment(RecordMixin, Base):
    __tablename__ = "comments"
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False)
    content = Column(Text, nullable=False)
    rating = Column(Integer, nullable=True)

    user = relationship("User")
    event = relationship("Event")

    __table_args__ = (
        Index("idx_comment_event", "event_id"),
        Index("idx_comment_user", "user_id"),
        Index("idx_comment_created_at", "created_at"),
    )
