"""User queries plus the register/login mutations."""
from typing import List, Optional
import strawberry
from strawberry.types import Info
from eventhub.api.graphql.types import AuthPayload, LoginInput, RegisterInput, UserType, input_data
from eventhub.schemas import LoginRequest, UserCreate, parse
from eventhub.services.auth_service import AuthService
from eventhub.services.user_service import UserService


@strawberry.type
class UserQuery:
    @strawberry.field
    async def me(self, info: Info) -> Optional[UserType]:
        async with info.context.db() as session:
            user = await UserService(session).me(info.context.identity)
        return UserType.from_model(user)

    @strawberry.field
    async def users(self, info: Info) -> List[UserType]:
        async with info.context.db() as session:
            users = await UserService(session).list_users(info.context.identity)
        return [UserType.from_model(u) for u in users]

    @strawberry.field
    async def user(self, info: Info, id: strawberry.ID) -> Optional[UserType]:
        async with info.context.db() as session:
            user = await UserService(session).get_user(info.context.identity, id)
        return UserType.from_model(user)


@strawberry.type
class AuthMutation:
    @strawberry.mutation
    async def register(self, info: Info, input: RegisterInput) -> AuthPayload:
        payload = parse(UserCreate, input_data(input))
        async with info.context.db() as session:
            result = await AuthService(session).register(payload)
        return AuthPayload(token=result.token, user=UserType.from_model(result.user))

    @strawberry.mutation
    async def login(self, info: Info, input: LoginInput) -> AuthPayload:
        payload = parse(LoginRequest, input_data(input))
        async with info.context.db() as session:
            result = await AuthService(session).login(payload)
        return AuthPayload(token=result.token, user=UserType.from_model(result.user))
