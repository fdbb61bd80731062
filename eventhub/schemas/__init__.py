from pydantic import BaseModel, EmailStr, Field, HttpUrl, ValidationError, field_validator
from typing import Any, Mapping, Optional, Type, TypeVar
from datetime import datetime, timezone
from eventhub.core.errors import InputValidationError
from eventhub.db.models import RoleEnum, EventCategory, EventStatus, RegistrationStatus

ModelT = TypeVar("ModelT", bound=BaseModel)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _require_future(value: datetime) -> datetime:
    value = _as_utc(value)
    if value <= datetime.now(timezone.utc):
        raise ValueError("Event date must be in the future")
    return value


class UserCreate(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)
    role: RoleEnum = RoleEnum.USER

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Name must be at least 2 characters")
        return value

    @field_validator("role")
    @classmethod
    def no_self_admin(cls, value: RoleEnum) -> RoleEnum:
        if value == RoleEnum.ADMIN:
            raise ValueError("ADMIN role cannot be self-assigned")
        return value


class LoginRequest(BaseModel):
    """Schema for user login request."""
    email: EmailStr
    password: str = Field(min_length=1)


class EventCreate(BaseModel):
    title: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=10, max_length=2000)
    date: datetime
    location: str = Field(min_length=3, max_length=200)
    capacity: int = Field(ge=1, le=10000)
    category: EventCategory
    image_url: Optional[HttpUrl] = None

    @field_validator("date")
    @classmethod
    def date_in_future(cls, value: datetime) -> datetime:
        return _require_future(value)


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, min_length=10, max_length=2000)
    date: Optional[datetime] = None
    location: Optional[str] = Field(default=None, min_length=3, max_length=200)
    capacity: Optional[int] = Field(default=None, ge=1, le=10000)
    category: Optional[EventCategory] = None
    image_url: Optional[HttpUrl] = None
    status: Optional[EventStatus] = None

    @field_validator("date")
    @classmethod
    def date_in_future(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return value
        return _require_future(value)


class RegistrationCreate(BaseModel):
    event_id: str = Field(min_length=1)
    notes: Optional[str] = Field(default=None, max_length=500)


class RegistrationUpdate(BaseModel):
    status: Optional[RegistrationStatus] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class CommentCreate(BaseModel):
    event_id: str = Field(min_length=1)
    content: str = Field(min_length=1, max_length=1000)
    rating: Optional[int] = Field(default=None, ge=1, le=5)

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Content must be at least 1 character")
        return value


class CommentUpdate(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    rating: Optional[int] = Field(default=None, ge=1, le=5)

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Content must be at least 1 character")
        return value


def changed_fields(payload: BaseModel, nullable: tuple = ()) -> dict:
    """
    Fields the caller actually supplied, for partial merges.

    An explicit null only clears columns listed in ``nullable``; for every
    other column it is treated as "not supplied".
    """
    data = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key in nullable
    }
    if data.get("image_url") is not None:
        data["image_url"] = str(data["image_url"])
    return data


def parse(model: Type[ModelT], data: Mapping[str, Any]) -> ModelT:
    """
    Validate external input into ``model``.

    Raises:
        InputValidationError: With one detail entry per invalid field
    """
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        raise InputValidationError.from_pydantic(e)
