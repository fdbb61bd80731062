"""
Live subscriptions backed by the application's event bus.

Each subscription owns its own bus stream, so a payload that fails to
convert for one subscriber is skipped for that subscriber only.
"""
from contextlib import aclosing
from typing import AsyncGenerator, Callable, Optional
import strawberry
from strawberry.types import Info
from eventhub.api.graphql.types import CommentType, EventType, RegistrationType
from eventhub.core.logging import logger
from eventhub.events.bus import Filter, Topic, for_event


async def _stream(info: Info, topic: Topic, convert: Callable, where: Optional[Filter] = None):
    async with info.context.bus.subscribe(topic, where=where) as subscription:
        async for message in subscription:
            try:
                item = convert(message.payload)
            except Exception:
                logger.exception(f"Could not deliver {topic.value} payload to subscriber")
                continue
            yield item


@strawberry.type
class Subscription:
    @strawberry.subscription
    async def event_created(self, info: Info) -> AsyncGenerator[EventType, None]:
        stream = _stream(info, Topic.EVENT_CREATED, EventType.from_view)
        async with aclosing(stream):
            async for item in stream:
                yield item

    @strawberry.subscription
    async def event_updated(self, info: Info) -> AsyncGenerator[EventType, None]:
        stream = _stream(info, Topic.EVENT_UPDATED, EventType.from_view)
        async with aclosing(stream):
            async for item in stream:
                yield item

    @strawberry.subscription
    async def registration_created(
        self, info: Info, event_id: strawberry.ID
    ) -> AsyncGenerator[RegistrationType, None]:
        stream = _stream(info, Topic.REGISTRATION_CREATED, RegistrationType.from_model, for_event(event_id))
        async with aclosing(stream):
            async for item in stream:
                yield item

    @strawberry.subscription
    async def registration_updated(
        self, info: Info, event_id: strawberry.ID
    ) -> AsyncGenerator[RegistrationType, None]:
        stream = _stream(info, Topic.REGISTRATION_UPDATED, RegistrationType.from_model, for_event(event_id))
        async with aclosing(stream):
            async for item in stream:
                yield item

    @strawberry.subscription
    async def comment_added(self, info: Info, event_id: strawberry.ID) -> AsyncGenerator[CommentType, None]:
        stream = _stream(info, Topic.COMMENT_ADDED, CommentType.from_model, for_event(event_id))
        async with aclosing(stream):
            async for item in stream:
                yield item
