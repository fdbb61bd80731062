from typing import List, Optional
import strawberry
from strawberry.types import Info
from eventhub.api.graphql.types import (
    CreateRegistrationInput,
    RegistrationType,
    UpdateRegistrationInput,
    input_data,
)
from eventhub.auth import require_auth
from eventhub.schemas import RegistrationCreate, RegistrationUpdate, parse
from eventhub.services.registration_service import RegistrationService


@strawberry.type
class RegistrationQuery:
    @strawberry.field
    async def registrations(
        self,
        info: Info,
        event_id: Optional[strawberry.ID] = None,
        user_id: Optional[strawberry.ID] = None,
    ) -> List[RegistrationType]:
        async with info.context.db() as session:
            registrations = await RegistrationService(session, info.context.bus).list_registrations(
                info.context.identity, event_id=event_id, user_id=user_id
            )
        return [RegistrationType.from_model(r) for r in registrations]

    @strawberry.field
    async def registration(self, info: Info, id: strawberry.ID) -> Optional[RegistrationType]:
        async with info.context.db() as session:
            registration = await RegistrationService(session, info.context.bus).get_registration(
                info.context.identity, id
            )
        return RegistrationType.from_model(registration)

    @strawberry.field
    async def my_registrations(self, info: Info) -> List[RegistrationType]:
        async with info.context.db() as session:
            registrations = await RegistrationService(session, info.context.bus).my_registrations(
                info.context.identity
            )
        return [RegistrationType.from_model(r) for r in registrations]


@strawberry.type
class RegistrationMutation:
    @strawberry.mutation
    async def create_registration(self, info: Info, input: CreateRegistrationInput) -> RegistrationType:
        require_auth(info.context.identity)
        payload = parse(RegistrationCreate, input_data(input))
        async with info.context.db() as session:
            registration = await RegistrationService(session, info.context.bus).create_registration(
                info.context.identity, payload
            )
        return RegistrationType.from_model(registration)

    @strawberry.mutation
    async def update_registration(
        self, info: Info, id: strawberry.ID, input: UpdateRegistrationInput
    ) -> RegistrationType:
        require_auth(info.context.identity)
        payload = parse(RegistrationUpdate, input_data(input))
        async with info.context.db() as session:
            registration = await RegistrationService(session, info.context.bus).update_registration(
                info.context.identity, id, payload
            )
        return RegistrationType.from_model(registration)

    @strawberry.mutation
    async def cancel_registration(self, info: Info, id: strawberry.ID) -> RegistrationType:
        async with info.context.db() as session:
            registration = await RegistrationService(session, info.context.bus).cancel_registration(
                info.context.identity, id
            )
        return RegistrationType.from_model(registration)
