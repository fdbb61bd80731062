from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from eventhub.auth import Identity, require_auth, require_owner_or_admin
from eventhub.core.errors import NotFoundError, PermissionDeniedError
from eventhub.core.logging import logger
from eventhub.db.models import Registration, RegistrationStatus
from eventhub.db.repositories import (
    create_registration as db_create_registration,
    get_event as db_get_event,
    get_registration as db_get_registration,
    list_registrations as db_list_registrations,
    update_registration as db_update_registration,
)
from eventhub.events.bus import EventBus, Topic
from eventhub.events.snapshot import snapshot
from eventhub.schemas import RegistrationCreate, RegistrationUpdate, changed_fields


class RegistrationService:
    def __init__(self, session: AsyncSession, bus: EventBus):
        self.session = session
        self.bus = bus

    async def _load(self, registration_id: str) -> Registration:
        registration = await db_get_registration(self.session, registration_id)
        if not registration:
            raise NotFoundError("Registration not found")
        return registration

    async def create_registration(self, identity: Identity, payload: RegistrationCreate) -> Registration:
        user_id = require_auth(identity)
        registration = await db_create_registration(self.session, user_id, payload)
        logger.info(f"User {user_id} registered for event {registration.event_id}")

        self.bus.publish(Topic.REGISTRATION_CREATED, snapshot(registration), event_id=registration.event_id)
        return registration

    async def update_registration(
        self, identity: Identity, registration_id: str, payload: RegistrationUpdate
    ) -> Registration:
        """Owner, the event's organizer or an admin may change status and notes."""
        require_auth(identity)
        registration = await self._load(registration_id)
        event = await db_get_event(self.session, registration.event_id)
        organizer_id = event.organizer_id if event else None
        require_owner_or_admin(identity, registration.user_id, organizer_id)

        registration = await db_update_registration(
            self.session, registration, changed_fields(payload, nullable=("notes",))
        )
        logger.info(f"Registration {registration.id} updated by {identity.user_id} ({registration.status.value})")

        self.bus.publish(Topic.REGISTRATION_UPDATED, snapshot(registration), event_id=registration.event_id)
        return registration

    async def cancel_registration(self, identity: Identity, registration_id: str) -> Registration:
        """Only the registrant may cancel; the current status is not checked."""
        user_id = require_auth(identity)
        registration = await self._load(registration_id)
        if registration.user_id != user_id:
            raise PermissionDeniedError("Unauthorized")

        registration = await db_update_registration(
            self.session, registration, {"status": RegistrationStatus.CANCELLED}
        )
        logger.info(f"Registration {registration.id} cancelled by {user_id}")

        self.bus.publish(Topic.REGISTRATION_UPDATED, snapshot(registration), event_id=registration.event_id)
        return registration

    async def list_registrations(
        self, identity: Identity, event_id: Optional[str] = None, user_id: Optional[str] = None
    ) -> List[Registration]:
        require_auth(identity)
        return await db_list_registrations(self.session, event_id=event_id, user_id=user_id)

    async def get_registration(self, identity: Identity, registration_id: str) -> Registration:
        require_auth(identity)
        registration = await db_get_registration(self.session, registration_id, populate=True)
        if not registration:
            raise NotFoundError("Registration not found")
        return registration

    async def my_registrations(self, identity: Identity) -> List[Registration]:
        user_id = require_auth(identity)
        return await db_list_registrations(self.session, user_id=user_id)
