import uuid
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, String


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class RecordMixin:
    """Opaque string id, soft-delete flag and timestamps shared by every table."""

    id = Column(String(36), primary_key=True, default=new_id)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
