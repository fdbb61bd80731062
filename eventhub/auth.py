"""
Request identity and authorization guards.

A bearer token is decoded into an :class:`Identity`. Missing or invalid
tokens never fail the request; they yield an anonymous identity, and the
guards below decide per operation whether that is acceptable.
"""
from dataclasses import dataclass
from typing import Iterable, Optional
from eventhub.core.errors import AuthenticationError, PermissionDeniedError
from eventhub.core.logging import logger
from eventhub.core.security import decode_token
from eventhub.db.models import RoleEnum


@dataclass(frozen=True)
class Identity:
    user_id: Optional[str] = None
    role: Optional[RoleEnum] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN


ANONYMOUS = Identity()


def extract_bearer(value: Optional[str]) -> Optional[str]:
    """Accept either 'Bearer <token>' or a bare token."""
    if not value:
        return None
    value = value.strip()
    if value.lower().startswith("bearer "):
        value = value[7:].strip()
    return value or None


def identity_from_token(raw: Optional[str]) -> Identity:
    token = extract_bearer(raw)
    if token is None:
        return ANONYMOUS

    try:
        payload = decode_token(token)
    except ValueError as e:
        logger.warning(f"Ignoring bearer token: {e}")
        return ANONYMOUS

    if payload.get("type") != "access":
        logger.warning("Ignoring bearer token with invalid type")
        return ANONYMOUS

    try:
        role = RoleEnum(payload.get("role", RoleEnum.USER.value))
    except ValueError:
        logger.warning(f"Ignoring bearer token with unknown role {payload.get('role')!r}")
        return ANONYMOUS

    return Identity(user_id=str(payload.get("userId") or payload["sub"]), role=role)


def require_auth(identity: Identity) -> str:
    """Return the caller's user id or raise AuthenticationError."""
    if not identity.is_authenticated:
        raise AuthenticationError("Authentication required")
    return identity.user_id


def require_role(identity: Identity, roles: Iterable[RoleEnum]) -> str:
    user_id = require_auth(identity)
    if identity.role not in set(roles):
        raise PermissionDeniedError("Insufficient permissions")
    return user_id


def require_owner_or_admin(identity: Identity, owner_id: str, *also_allowed: str) -> None:
    """
    Allow the owning user, any extra user ids passed in (e.g. the event's
    organizer for registrations) and admins.
    """
    require_auth(identity)
    if identity.is_admin:
        return
    if identity.user_id == owner_id or identity.user_id in also_allowed:
        return
    raise PermissionDeniedError("Unauthorized")
