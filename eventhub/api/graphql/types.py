from datetime import datetime
from typing import Optional
import strawberry
from strawberry.types import Info
from eventhub.api.graphql.refs import Related, related, resolve
from eventhub.core.errors import NotFoundError
from eventhub.db import repositories
from eventhub.db.models import (
    Comment,
    Event,
    EventCategory,
    EventStatus,
    Registration,
    RegistrationStatus,
    RoleEnum,
    User,
)

# Model enums double as GraphQL enums
strawberry.enum(RoleEnum, name="UserRole")
strawberry.enum(EventStatus, name="EventStatus")
strawberry.enum(EventCategory, name="EventCategory")
strawberry.enum(RegistrationStatus, name="RegistrationStatus")


async def _load_user(info: Info, ref: Related) -> "UserType":
    async with info.context.db() as session:
        user = await resolve(ref, lambda user_id: repositories.get_user(session, user_id))
    if user is None:
        raise NotFoundError("User not found")
    return UserType.from_model(user)


async def _load_event(info: Info, ref: Related) -> "EventType":
    async with info.context.db() as session:
        event = await resolve(ref, lambda event_id: repositories.get_event(session, event_id))
    if event is None:
        raise NotFoundError("Event not found")
    return EventType.from_model(event)


@strawberry.type(name="User")
class UserType:
    id: strawberry.ID
    name: str
    email: str
    role: RoleEnum
    avatar: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, user: User) -> "UserType":
        return cls(
            id=strawberry.ID(user.id),
            name=user.name,
            email=user.email,
            role=user.role,
            avatar=user.avatar,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


@strawberry.type(name="Event")
class EventType:
    id: strawberry.ID
    title: str
    description: str
    date: datetime
    location: str
    capacity: int
    organizer_id: strawberry.ID
    status: EventStatus
    category: EventCategory
    image_url: Optional[str]
    created_at: datetime
    updated_at: datetime
    organizer_ref: strawberry.Private[Related]
    known_registrations_count: strawberry.Private[Optional[int]] = None

    @classmethod
    def from_model(cls, event: Event, registrations_count: Optional[int] = None) -> "EventType":
        return cls(
            id=strawberry.ID(event.id),
            title=event.title,
            description=event.description,
            date=event.date,
            location=event.location,
            capacity=event.capacity,
            organizer_id=strawberry.ID(event.organizer_id),
            status=event.status,
            category=event.category,
            image_url=event.image_url,
            created_at=event.created_at,
            updated_at=event.updated_at,
            organizer_ref=related(event, "organizer", "organizer_id"),
            known_registrations_count=registrations_count,
        )

    @classmethod
    def from_view(cls, view) -> "EventType":
        return cls.from_model(view.event, view.registrations_count)

    @strawberry.field
    async def organizer(self, info: Info) -> UserType:
        return await _load_user(info, self.organizer_ref)

    @strawberry.field
    async def registrations_count(self, info: Info) -> int:
        if self.known_registrations_count is not None:
            return self.known_registrations_count
        async with info.context.db() as session:
            return await repositories.count_active_registrations(session, self.id)


@strawberry.type(name="Registration")
class RegistrationType:
    id: strawberry.ID
    user_id: strawberry.ID
    event_id: strawberry.ID
    status: RegistrationStatus
    registered_at: datetime
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    user_ref: strawberry.Private[Related]
    event_ref: strawberry.Private[Related]

    @classmethod
    def from_model(cls, registration: Registration) -> "RegistrationType":
        return cls(
            id=strawberry.ID(registration.id),
            user_id=strawberry.ID(registration.user_id),
            event_id=strawberry.ID(registration.event_id),
            status=registration.status,
            registered_at=registration.registered_at,
            notes=registration.notes,
            created_at=registration.created_at,
            updated_at=registration.updated_at,
            user_ref=related(registration, "user", "user_id"),
            event_ref=related(registration, "event", "event_id"),
        )

    @strawberry.field
    async def user(self, info: Info) -> UserType:
        return await _load_user(info, self.user_ref)

    @strawberry.field
    async def event(self, info: Info) -> EventType:
        return await _load_event(info, self.event_ref)


@strawberry.type(name="Comment")
class CommentType:
    id: strawberry.ID
    user_id: strawberry.ID
    event_id: strawberry.ID
    content: str
    rating: Optional[int]
    created_at: datetime
    updated_at: datetime
    user_ref: strawberry.Private[Related]
    event_ref: strawberry.Private[Related]

    @classmethod
    def from_model(cls, comment: Comment) -> "CommentType":
        return cls(
            id=strawberry.ID(comment.id),
            user_id=strawberry.ID(comment.user_id),
            event_id=strawberry.ID(comment.event_id),
            content=comment.content,
            rating=comment.rating,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
            user_ref=related(comment, "user", "user_id"),
            event_ref=related(comment, "event", "event_id"),
        )

    @strawberry.field
    async def user(self, info: Info) -> UserType:
        return await _load_user(info, self.user_ref)

    @strawberry.field
    async def event(self, info: Info) -> EventType:
        return await _load_event(info, self.event_ref)


@strawberry.type
class AuthPayload:
    token: str
    user: UserType


# Inputs

@strawberry.input
class RegisterInput:
    name: str
    email: str
    password: str
    role: Optional[RoleEnum] = strawberry.UNSET


@strawberry.input
class LoginInput:
    email: str
    password: str


@strawberry.input
class CreateEventInput:
    title: str
    description: str
    date: datetime
    location: str
    capacity: int
    category: EventCategory
    image_url: Optional[str] = strawberry.UNSET


@strawberry.input
class UpdateEventInput:
    title: Optional[str] = strawberry.UNSET
    description: Optional[str] = strawberry.UNSET
    date: Optional[datetime] = strawberry.UNSET
    location: Optional[str] = strawberry.UNSET
    capacity: Optional[int] = strawberry.UNSET
    category: Optional[EventCategory] = strawberry.UNSET
    image_url: Optional[str] = strawberry.UNSET
    status: Optional[EventStatus] = strawberry.UNSET


@strawberry.input
class CreateRegistrationInput:
    event_id: strawberry.ID
    notes: Optional[str] = strawberry.UNSET


@strawberry.input
class UpdateRegistrationInput:
    status: Optional[RegistrationStatus] = strawberry.UNSET
    notes: Optional[str] = strawberry.UNSET


@strawberry.input
class CreateCommentInput:
    event_id: strawberry.ID
    content: str
    rating: Optional[int] = strawberry.UNSET


@strawberry.input
class UpdateCommentInput:
    content: Optional[str] = strawberry.UNSET
    rating: Optional[int] = strawberry.UNSET


def input_data(value) -> dict:
    """Fields present in a GraphQL input object, leaving out the ones not sent."""
    return {key: item for key, item in vars(value).items() if item is not strawberry.UNSET}
