from typing import List, Optional
import strawberry
from strawberry.types import Info
from eventhub.api.graphql.types import CreateEventInput, EventType, UpdateEventInput, input_data
from eventhub.auth import require_auth
from eventhub.db.models import EventCategory, EventStatus
from eventhub.schemas import EventCreate, EventUpdate, parse
from eventhub.services.event_service import EventService


@strawberry.type
class EventQuery:
    @strawberry.field
    async def events(
        self,
        info: Info,
        status: Optional[EventStatus] = None,
        category: Optional[EventCategory] = None,
        limit: Optional[int] = 50,
        offset: Optional[int] = 0,
    ) -> List[EventType]:
        async with info.context.db() as session:
            views = await EventService(session, info.context.bus).list_events(
                status=status,
                category=category,
                limit=50 if limit is None else limit,
                offset=offset or 0,
            )
        return [EventType.from_view(v) for v in views]

    @strawberry.field
    async def event(self, info: Info, id: strawberry.ID) -> Optional[EventType]:
        async with info.context.db() as session:
            view = await EventService(session, info.context.bus).get_event(id)
        return EventType.from_view(view)

    @strawberry.field
    async def my_events(self, info: Info) -> List[EventType]:
        async with info.context.db() as session:
            views = await EventService(session, info.context.bus).my_events(info.context.identity)
        return [EventType.from_view(v) for v in views]


@strawberry.type
class EventMutation:
    @strawberry.mutation
    async def create_event(self, info: Info, input: CreateEventInput) -> EventType:
        require_auth(info.context.identity)
        payload = parse(EventCreate, input_data(input))
        async with info.context.db() as session:
            view = await EventService(session, info.context.bus).create_event(info.context.identity, payload)
        return EventType.from_view(view)

    @strawberry.mutation
    async def update_event(self, info: Info, id: strawberry.ID, input: UpdateEventInput) -> EventType:
        require_auth(info.context.identity)
        payload = parse(EventUpdate, input_data(input))
        async with info.context.db() as session:
            view = await EventService(session, info.context.bus).update_event(info.context.identity, id, payload)
        return EventType.from_view(view)

    @strawberry.mutation
    async def delete_event(self, info: Info, id: strawberry.ID) -> bool:
        async with info.context.db() as session:
            return await EventService(session, info.context.bus).delete_event(info.context.identity, id)
