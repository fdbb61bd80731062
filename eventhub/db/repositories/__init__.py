"""
Repository layer for database operations.

Provides async functions for CRUD operations on User, Event, Registration and
Comment records. Every read starts from :func:`live` or :func:`live_child`, so
soft-deleted rows (and rows under a soft-deleted event) never leave this module.
"""
from sqlalchemy import select, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select
from typing import Dict, Iterable, List, Optional
from eventhub.core.errors import AppError, BadRequestError, NotFoundError
from eventhub.core.logging import logger
from eventhub.core.security import hash_password
from eventhub.db.models import (
    ACTIVE_REGISTRATION_STATUSES,
    Comment,
    Event,
    EventCategory,
    EventStatus,
    Registration,
    RegistrationStatus,
    User,
)
from eventhub.schemas import UserCreate, EventCreate, RegistrationCreate, CommentCreate

ALREADY_REGISTERED = "Already registered for this event"
EVENT_FULL = "Event is full"


def live(model) -> Select:
    """SELECT over the rows of ``model`` that are not soft-deleted."""
    return select(model).where(model.is_deleted.is_(False))


def live_child(model) -> Select:
    """Live rows of a table hanging off an event whose parent event is live too."""
    live_events = select(Event.id).where(Event.is_deleted.is_(False))
    return live(model).where(model.event_id.in_(live_events))


async def _first(db: AsyncSession, q: Select):
    res = await db.execute(q)
    return res.scalars().first()


async def _all(db: AsyncSession, q: Select) -> List:
    res = await db.execute(q)
    return list(res.scalars().all())


async def save(db: AsyncSession, record, changes: Optional[dict] = None):
    """Apply ``changes`` to a loaded record and commit."""
    for key, value in (changes or {}).items():
        setattr(record, key, value)
    await db.commit()
    return record


async def soft_delete(db: AsyncSession, record) -> None:
    record.is_deleted = True
    await db.commit()


# Users

async def email_in_use(db: AsyncSession, email: str) -> bool:
    """
    Emails stay reserved after a user is soft-deleted, matching the unique
    index on users.email, so this check deliberately ignores the flag.
    """
    q = select(func.count(User.id)).where(func.lower(User.email) == email.lower())
    res = await db.execute(q)
    return (res.scalar() or 0) > 0


async def create_user(db: AsyncSession, user_in: UserCreate) -> User:
    """
    Create a new user with hashed password.

    Raises:
        BadRequestError: If the email is already taken
    """
    user = User(
        name=user_in.name,
        email=user_in.email.lower(),
        hashed_password=hash_password(user_in.password),
        role=user_in.role,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise BadRequestError("User with this email already exists")
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    return await _first(db, live(User).where(func.lower(User.email) == email.lower()))


async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
    return await _first(db, live(User).where(User.id == user_id))


async def list_users(db: AsyncSession) -> List[User]:
    return await _all(db, live(User).order_by(User.created_at.desc()))


# Events

async def create_event(db: AsyncSession, payload: EventCreate, organizer_id: str) -> Event:
    ev = Event(
        title=payload.title,
        description=payload.description,
        date=payload.date,
        location=payload.location,
        capacity=payload.capacity,
        category=payload.category,
        image_url=str(payload.image_url) if payload.image_url else None,
        status=EventStatus.DRAFT,
        organizer_id=organizer_id,
    )
    db.add(ev)
    await db.commit()
    return await get_event(db, ev.id, populate=True)


async def get_event(db: AsyncSession, event_id: str, populate: bool = False) -> Optional[Event]:
    q = live(Event).where(Event.id == event_id)
    if populate:
        q = q.options(selectinload(Event.organizer)).execution_options(populate_existing=True)
    return await _first(db, q)


async def list_events(
    db: AsyncSession,
    status: Optional[EventStatus] = None,
    category: Optional[EventCategory] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Event]:
    """List live events ordered by date, soonest first."""
    q = live(Event).options(selectinload(Event.organizer))
    if status:
        q = q.where(Event.status == status)
    if category:
        q = q.where(Event.category == category)
    q = q.order_by(Event.date.asc(), Event.id).limit(limit).offset(offset)
    return await _all(db, q)


async def list_events_by_organizer(db: AsyncSession, organizer_id: str) -> List[Event]:
    q = (
        live(Event)
        .options(selectinload(Event.organizer))
        .where(Event.organizer_id == organizer_id)
        .order_by(Event.created_at.desc())
    )
    return await _all(db, q)


async def count_active_registrations(db: AsyncSession, event_id: str) -> int:
    """Count live PENDING/CONFIRMED registrations for an event."""
    q = select(func.count(Registration.id)).where(
        Registration.event_id == event_id,
        Registration.status.in_(ACTIVE_REGISTRATION_STATUSES),
        Registration.is_deleted.is_(False),
    )
    res = await db.execute(q)
    return res.scalar() or 0


async def count_active_registrations_for(db: AsyncSession, event_ids: Iterable[str]) -> Dict[str, int]:
    """Active registration counts for many events in one grouped query."""
    event_ids = list(event_ids)
    if not event_ids:
        return {}
    q = (
        select(Registration.event_id, func.count(Registration.id))
        .where(
            Registration.event_id.in_(event_ids),
            Registration.status.in_(ACTIVE_REGISTRATION_STATUSES),
            Registration.is_deleted.is_(False),
        )
        .group_by(Registration.event_id)
    )
    res = await db.execute(q)
    counts = {event_id: 0 for event_id in event_ids}
    counts.update({event_id: count for event_id, count in res.all()})
    return counts


async def lock_event(db: AsyncSession, event_id: str) -> bool:
    """
    Take a write lock on a live event row for the rest of the transaction.

    A no-op UPDATE blocks concurrent lockers of the same row on PostgreSQL and
    acquires the database write lock on SQLite, so seat counting that follows
    cannot interleave with another admission for the same event.
    Returns False when the event does not exist or is soft-deleted.
    """
    stmt = (
        update(Event)
        .where(Event.id == event_id, Event.is_deleted.is_(False))
        .values(updated_at=Event.updated_at)
        .execution_options(synchronize_session=False)
    )
    res = await db.execute(stmt)
    return res.rowcount > 0


# Registrations

def _populated_registrations() -> Select:
    return live_child(Registration).options(
        selectinload(Registration.user),
        selectinload(Registration.event),
    )


async def get_registration(db: AsyncSession, registration_id: str, populate: bool = False) -> Optional[Registration]:
    if populate:
        q = _populated_registrations().where(Registration.id == registration_id)
        q = q.execution_options(populate_existing=True)
    else:
        q = live_child(Registration).where(Registration.id == registration_id)
    return await _first(db, q)


async def get_user_registration_for_event(db: AsyncSession, user_id: str, event_id: str) -> Optional[Registration]:
    q = live(Registration).where(
        Registration.user_id == user_id,
        Registration.event_id == event_id,
    )
    return await _first(db, q)


async def list_registrations(
    db: AsyncSession,
    event_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> List[Registration]:
    """List live registrations, newest first."""
    q = _populated_registrations()
    if event_id:
        q = q.where(Registration.event_id == event_id)
    if user_id:
        q = q.where(Registration.user_id == user_id)
    q = q.order_by(Registration.created_at.desc(), Registration.id)
    return await _all(db, q)


async def _ensure_seat(db: AsyncSession, event: Event) -> None:
    current = await count_active_registrations(db, event.id)
    if current >= event.capacity:
        raise BadRequestError(EVENT_FULL)


async def create_registration(db: AsyncSession, user_id: str, payload: RegistrationCreate) -> Registration:
    """
    Register a user for a published event with duplicate and capacity checks.

    The event row is locked first, so the seat count and the insert commit
    atomically with respect to other admissions for the same event. Exact
    duplicates are additionally rejected by the partial unique index.

    Raises:
        NotFoundError: If the event is missing or deleted
        BadRequestError: If the event is not published, the user is already
            registered, or no seat is left
    """
    try:
        if not await lock_event(db, payload.event_id):
            raise NotFoundError("Event not found")
        event = await get_event(db, payload.event_id)
        if event is None:
            raise NotFoundError("Event not found")

        if event.status != EventStatus.PUBLISHED:
            raise BadRequestError("Event is not available for registration")

        if await get_user_registration_for_event(db, user_id, event.id):
            raise BadRequestError(ALREADY_REGISTERED)

        await _ensure_seat(db, event)

        r = Registration(
            user_id=user_id,
            event_id=event.id,
            notes=payload.notes,
            status=RegistrationStatus.PENDING,
        )
        db.add(r)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.info(f"Duplicate registration rejected by index for user {user_id}: {e.orig}")
        raise BadRequestError(ALREADY_REGISTERED)
    except AppError:
        await db.rollback()
        raise

    return await get_registration(db, r.id, populate=True)


async def update_registration(db: AsyncSession, registration: Registration, changes: dict) -> Registration:
    """
    Merge ``changes`` into a registration.

    Moving from CANCELLED/ATTENDED back to PENDING/CONFIRMED claims a seat
    again and goes through the same locked capacity check as a new
    registration. Every other transition is applied as-is.
    """
    new_status = changes.get("status")
    reactivating = (
        new_status in ACTIVE_REGISTRATION_STATUSES
        and registration.status not in ACTIVE_REGISTRATION_STATUSES
    )
    try:
        if reactivating:
            if not await lock_event(db, registration.event_id):
                raise NotFoundError("Event not found")
            event = await get_event(db, registration.event_id)
            await _ensure_seat(db, event)
        await save(db, registration, changes)
    except AppError:
        await db.rollback()
        raise
    return await get_registration(db, registration.id, populate=True)


# Comments

async def create_comment(db: AsyncSession, user_id: str, payload: CommentCreate) -> Comment:
    c = Comment(
        user_id=user_id,
        event_id=payload.event_id,
        content=payload.content,
        rating=payload.rating,
    )
    db.add(c)
    await db.commit()
    return await get_comment(db, c.id, populate=True)


async def get_comment(db: AsyncSession, comment_id: str, populate: bool = False) -> Optional[Comment]:
    q = live_child(Comment).where(Comment.id == comment_id)
    if populate:
        q = q.options(
            selectinload(Comment.user),
            selectinload(Comment.event),
        ).execution_options(populate_existing=True)
    return await _first(db, q)


async def list_comments(db: AsyncSession, event_id: str) -> List[Comment]:
    """List live comments of an event, newest first."""
    q = (
        live_child(Comment)
        .options(selectinload(Comment.user), selectinload(Comment.event))
        .where(Comment.event_id == event_id)
        .order_by(Comment.created_at.desc(), Comment.id)
    )
    return await _all(db, q)
