from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from eventhub.auth import Identity, require_auth, require_role
from eventhub.core.errors import NotFoundError
from eventhub.db.models import RoleEnum, User
from eventhub.db.repositories import get_user as db_get_user, list_users as db_list_users


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def me(self, identity: Identity) -> User:
        user = await db_get_user(self.session, require_auth(identity))
        if not user:
            raise NotFoundError("User not found")
        return user

    async def list_users(self, identity: Identity) -> List[User]:
        require_role(identity, [RoleEnum.ADMIN])
        return await db_list_users(self.session)

    async def get_user(self, identity: Identity, user_id: str) -> User:
        require_auth(identity)
        user = await db_get_user(self.session, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user
