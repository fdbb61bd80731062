"""Authentication service for user registration and login."""
from dataclasses import dataclass
from sqlalchemy.ext.asyncio import AsyncSession
from eventhub.core.errors import AuthenticationError, BadRequestError
from eventhub.core.logging import logger
from eventhub.core.security import create_user_token, verify_password
from eventhub.db.models import User
from eventhub.db.repositories import (
    create_user as db_create_user,
    email_in_use as db_email_in_use,
    get_user_by_email as db_get_user_by_email,
)
from eventhub.schemas import UserCreate, LoginRequest

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass
class AuthResult:
    token: str
    user: User


class AuthService:
    """
    Service layer for authentication operations.

    Handles user registration and login; both return a fresh access token.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def register(self, payload: UserCreate) -> AuthResult:
        """
        Register a new user.

        Raises:
            BadRequestError: If the email already exists
        """
        if await db_email_in_use(self.session, payload.email):
            raise BadRequestError("User with this email already exists")

        user = await db_create_user(self.session, payload)
        logger.info(f"Registered user {user.id} with role {user.role.value}")
        return AuthResult(token=create_user_token(user), user=user)

    async def login(self, form_data: LoginRequest) -> AuthResult:
        """
        Authenticate by email and password.

        Unknown emails, deleted users and wrong passwords all fail with the
        same message so the response does not reveal which accounts exist.
        """
        user = await db_get_user_by_email(self.session, form_data.email)
        if not user or not verify_password(form_data.password, user.hashed_password):
            logger.warning(f"Failed login for {form_data.email}")
            raise AuthenticationError(INVALID_CREDENTIALS)

        return AuthResult(token=create_user_token(user), user=user)
