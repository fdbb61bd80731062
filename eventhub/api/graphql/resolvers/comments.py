from typing import List, Optional
import strawberry
from strawberry.types import Info
from eventhub.api.graphql.types import CommentType, CreateCommentInput, UpdateCommentInput, input_data
from eventhub.auth import require_auth
from eventhub.schemas import CommentCreate, CommentUpdate, parse
from eventhub.services.comment_service import CommentService


@strawberry.type
class CommentQuery:
    @strawberry.field
    async def comments(self, info: Info, event_id: strawberry.ID) -> List[CommentType]:
        async with info.context.db() as session:
            comments = await CommentService(session, info.context.bus).list_comments(event_id)
        return [CommentType.from_model(c) for c in comments]

    @strawberry.field
    async def comment(self, info: Info, id: strawberry.ID) -> Optional[CommentType]:
        async with info.context.db() as session:
            comment = await CommentService(session, info.context.bus).get_comment(id)
        return CommentType.from_model(comment)


@strawberry.type
class CommentMutation:
    @strawberry.mutation
    async def create_comment(self, info: Info, input: CreateCommentInput) -> CommentType:
        require_auth(info.context.identity)
        payload = parse(CommentCreate, input_data(input))
        async with info.context.db() as session:
            comment = await CommentService(session, info.context.bus).create_comment(info.context.identity, payload)
        return CommentType.from_model(comment)

    @strawberry.mutation
    async def update_comment(self, info: Info, id: strawberry.ID, input: UpdateCommentInput) -> CommentType:
        require_auth(info.context.identity)
        payload = parse(CommentUpdate, input_data(input))
        async with info.context.db() as session:
            comment = await CommentService(session, info.context.bus).update_comment(info.context.identity, id, payload)
        return CommentType.from_model(comment)

    @strawberry.mutation
    async def delete_comment(self, info: Info, id: strawberry.ID) -> bool:
        async with info.context.db() as session:
            return await CommentService(session, info.context.bus).delete_comment(info.context.identity, id)
