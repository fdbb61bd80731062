from dataclasses import dataclass
from typing import List, Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from eventhub.auth import Identity, require_auth, require_owner_or_admin
from eventhub.core.errors import NotFoundError
from eventhub.core.logging import logger
from eventhub.db.models import Event, EventCategory, EventStatus
from eventhub.db.repositories import (
    count_active_registrations as db_count_active_registrations,
    count_active_registrations_for as db_count_active_registrations_for,
    create_event as db_create_event,
    get_event as db_get_event,
    list_events as db_list_events,
    list_events_by_organizer as db_list_events_by_organizer,
    save as db_save,
    soft_delete as db_soft_delete,
)
from eventhub.events.bus import EventBus, Topic
from eventhub.events.snapshot import Snapshot, snapshot
from eventhub.schemas import EventCreate, EventUpdate, changed_fields

MAX_PAGE_SIZE = 100


@dataclass
class EventView:
    """An event together with its live count of PENDING/CONFIRMED registrations."""
    event: Union[Event, Snapshot]
    registrations_count: int

    def detached(self) -> "EventView":
        return EventView(snapshot(self.event), self.registrations_count)


class EventService:
    def __init__(self, session: AsyncSession, bus: EventBus):
        self.session = session
        self.bus = bus

    async def _with_counts(self, events: List[Event]) -> List[EventView]:
        counts = await db_count_active_registrations_for(self.session, [ev.id for ev in events])
        return [EventView(ev, counts.get(ev.id, 0)) for ev in events]

    async def _load_owned(self, identity: Identity, event_id: str) -> Event:
        require_auth(identity)
        event = await db_get_event(self.session, event_id)
        if not event:
            raise NotFoundError("Event not found")
        require_owner_or_admin(identity, event.organizer_id)
        return event

    async def create_event(self, identity: Identity, payload: EventCreate) -> EventView:
        user_id = require_auth(identity)
        event = await db_create_event(self.session, payload, user_id)
        logger.info(f"Event {event.id} created by {user_id}")

        view = EventView(event, 0)
        self.bus.publish(Topic.EVENT_CREATED, view.detached(), event_id=event.id)
        return view

    async def update_event(self, identity: Identity, event_id: str, payload: EventUpdate) -> EventView:
        event = await self._load_owned(identity, event_id)
        await db_save(self.session, event, changed_fields(payload, nullable=("image_url",)))
        event = await db_get_event(self.session, event_id, populate=True)
        logger.info(f"Event {event.id} updated by {identity.user_id}")

        view = EventView(event, await db_count_active_registrations(self.session, event.id))
        self.bus.publish(Topic.EVENT_UPDATED, view.detached(), event_id=event.id)
        return view

    async def delete_event(self, identity: Identity, event_id: str) -> bool:
        event = await self._load_owned(identity, event_id)
        await db_soft_delete(self.session, event)
        logger.info(f"Event {event_id} deleted by {identity.user_id}")
        return True

    async def get_event(self, event_id: str) -> EventView:
        event = await db_get_event(self.session, event_id, populate=True)
        if not event:
            raise NotFoundError("Event not found")
        return EventView(event, await db_count_active_registrations(self.session, event.id))

    async def list_events(
        self,
        status: Optional[EventStatus] = None,
        category: Optional[EventCategory] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[EventView]:
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        events = await db_list_events(self.session, status=status, category=category, limit=limit, offset=offset)
        return await self._with_counts(events)

    async def my_events(self, identity: Identity) -> List[EventView]:
        user_id = require_auth(identity)
        events = await db_list_events_by_organizer(self.session, user_id)
        return await self._with_counts(events)
