"""
Create the schema and demo data.

Run with ``python -m eventhub.seed``. Existing accounts (matched by email) and
events (matched by title) are left alone, so the command can be re-run.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from sqlalchemy import select
from eventhub.core.logging import logger
from eventhub.core.security import hash_password
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
from eventhub.db.session import AsyncSessionLocal, Base, engine

DEMO_PASSWORD = "password123"

USERS = [
    ("Admin User", "admin@example.com", RoleEnum.ADMIN),
    ("John Organizer", "organizer@example.com", RoleEnum.ORGANIZER),
    ("Jane Doe", "jane@example.com", RoleEnum.USER),
    ("Bob Smith", "bob@example.com", RoleEnum.USER),
]

# (title, description, days from now, location, capacity, status, category)
EVENTS = [
    ("Tech Conference", "Talks on software development, AI and cloud computing.", 30,
     "San Francisco Convention Center", 500, EventStatus.PUBLISHED, EventCategory.CONFERENCE),
    ("Python Workshop", "Hands-on workshop on asyncio, typing and packaging.", 15,
     "Online", 50, EventStatus.PUBLISHED, EventCategory.WORKSHOP),
    ("Networking Mixer", "Meet fellow developers and expand your professional network.", 7,
     "Downtown Bar & Grill", 100, EventStatus.PUBLISHED, EventCategory.NETWORKING),
    ("GraphQL Seminar", "Deep dive into GraphQL queries, mutations and subscriptions.", 45,
     "Tech Hub Building", 75, EventStatus.DRAFT, EventCategory.SEMINAR),
]


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created")


async def seed_users(session) -> dict:
    users = {}
    for name, email, role in USERS:
        user = (await session.execute(select(User).where(User.email == email))).scalars().first()
        if user is None:
            user = User(name=name, email=email, hashed_password=hash_password(DEMO_PASSWORD), role=role)
            session.add(user)
            logger.info(f"Created {role.value} {email}")
        users[email] = user
    await session.commit()
    return users


async def seed_events(session, organizer: User) -> list:
    now = datetime.now(timezone.utc)
    events = []
    for title, description, days, location, capacity, status, category in EVENTS:
        event = (await session.execute(select(Event).where(Event.title == title))).scalars().first()
        if event is None:
            event = Event(
                title=title,
                description=description,
                date=now + timedelta(days=days),
                location=location,
                capacity=capacity,
                status=status,
                category=category,
                organizer_id=organizer.id,
            )
            session.add(event)
            logger.info(f"Created event {title!r}")
        events.append(event)
    await session.commit()
    return events


async def seed_activity(session, users: dict, events: list) -> None:
    existing = (await session.execute(select(Registration.id))).first()
    if existing:
        return
    jane, bob = users["jane@example.com"], users["bob@example.com"]
    conference, workshop = events[0], events[1]
    session.add_all([
        Registration(user_id=jane.id, event_id=conference.id, status=RegistrationStatus.CONFIRMED,
                     notes="Looking forward to it!"),
        Registration(user_id=bob.id, event_id=conference.id, status=RegistrationStatus.PENDING),
        Registration(user_id=jane.id, event_id=workshop.id, status=RegistrationStatus.PENDING),
        Comment(user_id=jane.id, event_id=conference.id, content="Can't wait for the keynote!", rating=5),
        Comment(user_id=bob.id, event_id=workshop.id, content="Will the slides be shared afterwards?"),
    ])
    await session.commit()
    logger.info("Created sample registrations and comments")


async def seed():
    await create_tables()
    async with AsyncSessionLocal() as session:
        users = await seed_users(session)
        events = await seed_events(session, users["organizer@example.com"])
        await seed_activity(session, users, events)
    await engine.dispose()
    logger.info(f"Seed complete; demo accounts use password {DEMO_PASSWORD!r}")


def main() -> None:
    asyncio.run(seed())


if __name__ == "__main__":
    main()
