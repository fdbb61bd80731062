from sqlalchemy import Column, String, Enum, Index
from eventhub.db.models.mixins import RecordMixin
from eventhub.db.session import Base
import enum


class RoleEnum(str, enum.Enum):
    USER = "USER"
    ORGANIZER = "ORGANIZER"
    ADMIN = "ADMIN"


class User(RecordMixin, Base):
    __tablename__ = "users"
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(RoleEnum), default=RoleEnum.USER, nullable=False)
    avatar = Column(String(500), nullable=True)

    __table_args__ = (
        Index("idx_user_deleted", "is_deleted"),
    )
