from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from eventhub.auth import Identity, require_auth, require_owner_or_admin
from eventhub.core.errors import NotFoundError, PermissionDeniedError
from eventhub.core.logging import logger
from eventhub.db.models import Comment
from eventhub.db.repositories import (
    create_comment as db_create_comment,
    get_comment as db_get_comment,
    get_event as db_get_event,
    list_comments as db_list_comments,
    save as db_save,
    soft_delete as db_soft_delete,
)
from eventhub.events.bus import EventBus, Topic
from eventhub.events.snapshot import snapshot
from eventhub.schemas import CommentCreate, CommentUpdate, changed_fields


class CommentService:
    def __init__(self, session: AsyncSession, bus: EventBus):
        self.session = session
        self.bus = bus

    async def _load(self, comment_id: str) -> Comment:
        comment = await db_get_comment(self.session, comment_id)
        if not comment:
            raise NotFoundError("Comment not found")
        return comment

    async def create_comment(self, identity: Identity, payload: CommentCreate) -> Comment:
        user_id = require_auth(identity)
        if not await db_get_event(self.session, payload.event_id):
            raise NotFoundError("Event not found")

        comment = await db_create_comment(self.session, user_id, payload)
        logger.info(f"Comment {comment.id} added to event {comment.event_id} by {user_id}")

        self.bus.publish(Topic.COMMENT_ADDED, snapshot(comment), event_id=comment.event_id)
        return comment

    async def update_comment(self, identity: Identity, comment_id: str, payload: CommentUpdate) -> Comment:
        user_id = require_auth(identity)
        comment = await self._load(comment_id)
        if comment.user_id != user_id:
            raise PermissionDeniedError("Unauthorized")

        await db_save(self.session, comment, changed_fields(payload, nullable=("rating",)))
        return await db_get_comment(self.session, comment_id, populate=True)

    async def delete_comment(self, identity: Identity, comment_id: str) -> bool:
        require_auth(identity)
        comment = await self._load(comment_id)
        require_owner_or_admin(identity, comment.user_id)
        await db_soft_delete(self.session, comment)
        logger.info(f"Comment {comment_id} deleted by {identity.user_id}")
        return True

    async def list_comments(self, event_id: str) -> List[Comment]:
        return await db_list_comments(self.session, event_id)

    async def get_comment(self, comment_id: str) -> Comment:
        comment = await db_get_comment(self.session, comment_id, populate=True)
        if not comment:
            raise NotFoundError("Comment not found")
        return comment
