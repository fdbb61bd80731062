"""
Unit tests for repository functions.
Tests soft-delete filtering, registration counting and the registration
duplicate and capacity rules.
"""
import asyncio
import pytest
import pytest_asyncio
from datetime import datetime, timedelta, timezone
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from eventhub.core.errors import BadRequestError, NotFoundError
from eventhub.db.models import (
    Event,
    EventCategory,
    EventStatus,
    Registration,
    RegistrationStatus,
    RoleEnum,
    User,
)
from eventhub.db.session import Base
from eventhub.db.repositories import (
    ALREADY_REGISTERED,
    EVENT_FULL,
    count_active_registrations,
    count_active_registrations_for,
    create_registration,
    create_user,
    email_in_use,
    get_event,
    get_registration,
    get_user_by_email,
    list_comments,
    list_events,
    list_registrations,
    lock_event,
    soft_delete,
    update_registration,
)
from eventhub.schemas import RegistrationCreate, UserCreate


@pytest.mark.unit
@pytest.mark.asyncio
class TestUserRepository:
    """Test user repository functions."""

    async def test_create_user(self, db_session):
        user = await create_user(
            db_session, UserCreate(name="New User", email="NewUser@Example.com", password="secret123")
        )

        assert user.id is not None
        assert user.email == "newuser@example.com"
        assert user.role == RoleEnum.USER
        assert user.hashed_password != "secret123"

    async def test_create_user_duplicate_email(self, db_session, test_user):
        with pytest.raises(BadRequestError, match="already exists"):
            await create_user(
                db_session, UserCreate(name="Copy", email=test_user.email, password="secret123")
            )

    async def test_get_user_by_email_is_case_insensitive(self, db_session, test_user):
        user = await get_user_by_email(db_session, "TestUser@Example.com")

        assert user is not None
        assert user.id == test_user.id

    async def test_deleted_user_is_hidden_but_email_stays_taken(self, db_session, test_user):
        await soft_delete(db_session, test_user)

        assert await get_user_by_email(db_session, test_user.email) is None
        assert await email_in_use(db_session, test_user.email) is True


@pytest.mark.unit
@pytest.mark.asyncio
class TestEventRepository:

    async def test_list_events_filters_and_orders(self, db_session, event_factory):
        later = await event_factory(title="Later", days=20)
        sooner = await event_factory(title="Sooner", days=2)
        await event_factory(title="Draft", status=EventStatus.DRAFT)

        events = await list_events(db_session, status=EventStatus.PUBLISHED)

        assert [e.id for e in events] == [sooner.id, later.id]

    async def test_list_events_paginates(self, db_session, event_factory):
        for i in range(5):
            await event_factory(title=f"Event {i}", days=i + 1)

        page = await list_events(db_session, limit=2, offset=2)

        assert [e.title for e in page] == ["Event 2", "Event 3"]

    async def test_soft_deleted_event_is_invisible(self, db_session, test_event):
        await soft_delete(db_session, test_event)

        assert await get_event(db_session, test_event.id) is None
        assert await list_events(db_session) == []
        assert await lock_event(db_session, test_event.id) is False
        await db_session.rollback()

    async def test_count_ignores_inactive_and_deleted(self, db_session, test_event, test_user, other_user, test_admin):
        db_session.add_all([
            Registration(user_id=test_user.id, event_id=test_event.id, status=RegistrationStatus.CONFIRMED),
            Registration(user_id=other_user.id, event_id=test_event.id, status=RegistrationStatus.CANCELLED),
            Registration(user_id=test_admin.id, event_id=test_event.id, status=RegistrationStatus.PENDING,
                         is_deleted=True),
        ])
        await db_session.commit()

        assert await count_active_registrations(db_session, test_event.id) == 1

    async def test_grouped_counts_include_empty_events(self, db_session, test_event, event_factory, test_registration):
        empty = await event_factory(title="Empty")

        counts = await count_active_registrations_for(db_session, [test_event.id, empty.id])

        assert counts == {test_event.id: 1, empty.id: 0}


@pytest.mark.unit
@pytest.mark.asyncio
class TestRegistrationRepository:

    async def test_create_registration(self, db_session, test_user, test_event):
        registration = await create_registration(
            db_session, test_user.id, RegistrationCreate(event_id=test_event.id, notes="Vegetarian")
        )

        assert registration.status == RegistrationStatus.PENDING
        assert registration.notes == "Vegetarian"
        assert registration.user.id == test_user.id
        assert registration.event.id == test_event.id

    async def test_missing_event(self, db_session, test_user):
        with pytest.raises(NotFoundError, match="Event not found"):
            await create_registration(db_session, test_user.id, RegistrationCreate(event_id="missing"))

    async def test_unpublished_event(self, db_session, test_user, draft_event):
        with pytest.raises(BadRequestError, match="not available"):
            await create_registration(db_session, test_user.id, RegistrationCreate(event_id=draft_event.id))

    async def test_already_registered(self, db_session, test_user, test_event, test_registration):
        with pytest.raises(BadRequestError, match=ALREADY_REGISTERED):
            await create_registration(db_session, test_user.id, RegistrationCreate(event_id=test_event.id))

    async def test_cancelled_registration_still_blocks_a_new_one(self, db_session, test_user, test_event,
                                                                 test_registration):
        await update_registration(db_session, test_registration, {"status": RegistrationStatus.CANCELLED})

        with pytest.raises(BadRequestError, match=ALREADY_REGISTERED):
            await create_registration(db_session, test_user.id, RegistrationCreate(event_id=test_event.id))

    async def test_event_full(self, db_session, test_user, other_user, event_factory):
        event = await event_factory(capacity=1)
        event_id = event.id
        await create_registration(db_session, test_user.id, RegistrationCreate(event_id=event_id))

        with pytest.raises(BadRequestError, match=EVENT_FULL):
            await create_registration(db_session, other_user.id, RegistrationCreate(event_id=event_id))

        # a failed admission rolls back, which expires loaded instances
        assert await count_active_registrations(db_session, event_id) == 1

    async def test_cancelled_seat_is_freed(self, db_session, test_user, other_user, event_factory):
        event = await event_factory(capacity=1)
        first = await create_registration(db_session, test_user.id, RegistrationCreate(event_id=event.id))
        await update_registration(db_session, first, {"status": RegistrationStatus.CANCELLED})

        second = await create_registration(db_session, other_user.id, RegistrationCreate(event_id=event.id))

        assert second.status == RegistrationStatus.PENDING

    async def test_reactivation_needs_a_free_seat(self, db_session, test_user, other_user, event_factory):
        event = await event_factory(capacity=1)
        first = await create_registration(db_session, test_user.id, RegistrationCreate(event_id=event.id))
        first_id = first.id
        await update_registration(db_session, first, {"status": RegistrationStatus.CANCELLED})
        await create_registration(db_session, other_user.id, RegistrationCreate(event_id=event.id))

        with pytest.raises(BadRequestError, match=EVENT_FULL):
            await update_registration(db_session, first, {"status": RegistrationStatus.CONFIRMED})

        refreshed = await get_registration(db_session, first_id, populate=True)
        assert refreshed.status == RegistrationStatus.CANCELLED

    async def test_unique_index_rejects_second_live_row(self, db_session, test_user, test_event, test_registration):
        db_session.add(Registration(user_id=test_user.id, event_id=test_event.id))

        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    async def test_unique_index_ignores_deleted_rows(self, db_session, test_user, test_event, test_registration):
        await soft_delete(db_session, test_registration)

        db_session.add(Registration(user_id=test_user.id, event_id=test_event.id))
        await db_session.commit()

        assert len(await list_registrations(db_session, event_id=test_event.id)) == 1

    async def test_children_of_deleted_event_are_hidden(self, db_session, test_event, test_registration):
        await soft_delete(db_session, test_event)

        assert await get_registration(db_session, test_registration.id) is None
        assert await list_registrations(db_session, event_id=test_event.id) == []
        assert await list_comments(db_session, test_event.id) == []


@pytest_asyncio.fixture
async def file_sessions(tmp_path):
    """
    Session factory over a file-backed database, so that every session gets
    its own connection and admissions can really run side by side.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/admission.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


async def _seed(sessions, attendees: int, capacity: int):
    async with sessions() as db:
        organizer = User(name="Organizer", email="org@example.com", hashed_password="x", role=RoleEnum.ORGANIZER)
        users = [
            User(name=f"Attendee {i}", email=f"attendee{i}@example.com", hashed_password="x")
            for i in range(attendees)
        ]
        db.add(organizer)
        db.add_all(users)
        await db.flush()
        event = Event(
            title="Small Room",
            description="Only a few seats available",
            date=datetime.now(timezone.utc) + timedelta(days=3),
            location="Room 1",
            capacity=capacity,
            category=EventCategory.WORKSHOP,
            status=EventStatus.PUBLISHED,
            organizer_id=organizer.id,
        )
        db.add(event)
        await db.commit()
        return event.id, [user.id for user in users]


@pytest.mark.unit
@pytest.mark.asyncio
class TestConcurrentAdmission:
    """Admissions racing from separate connections never overbook an event."""

    async def test_concurrent_registrations_fill_exactly_the_capacity(self, file_sessions):
        """Eight attendees race for three seats."""
        event_id, user_ids = await _seed(file_sessions, attendees=8, capacity=3)

        async def admit(user_id: str) -> str:
            async with file_sessions() as db:
                try:
                    await create_registration(db, user_id, RegistrationCreate(event_id=event_id))
                except BadRequestError as e:
                    return e.message
                return "ok"

        outcomes = await asyncio.gather(*(admit(user_id) for user_id in user_ids))

        assert outcomes.count("ok") == 3
        assert outcomes.count(EVENT_FULL) == 5
        async with file_sessions() as db:
            assert await count_active_registrations(db, event_id) == 3

    async def test_concurrent_reactivations_share_the_last_seat(self, file_sessions):
        """Two cancelled attendees race to reclaim the only seat."""
        event_id, user_ids = await _seed(file_sessions, attendees=2, capacity=1)
        async with file_sessions() as db:
            cancelled = [
                Registration(user_id=user_id, event_id=event_id, status=RegistrationStatus.CANCELLED)
                for user_id in user_ids
            ]
            db.add_all(cancelled)
            await db.commit()
            registration_ids = [r.id for r in cancelled]

        async def reactivate(registration_id: str) -> str:
            async with file_sessions() as db:
                registration = await get_registration(db, registration_id)
                try:
                    await update_registration(db, registration, {"status": RegistrationStatus.CONFIRMED})
                except BadRequestError as e:
                    return e.message
                return "ok"

        outcomes = await asyncio.gather(*(reactivate(r_id) for r_id in registration_ids))

        assert sorted(outcomes) == sorted(["ok", EVENT_FULL])
        async with file_sessions() as db:
            assert await count_active_registrations(db, event_id) == 1
