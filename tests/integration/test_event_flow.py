"""
End-to-end flow through the GraphQL endpoint: an organizer publishes an
event, an attendee registers and comments, and the listings agree.
"""
import pytest
from datetime import datetime, timedelta, timezone


@pytest.mark.integration
@pytest.mark.asyncio
class TestEventFlow:
    """Test a whole event lifecycle through the API."""

    async def test_full_flow(self, gql):
        """Test create, publish, register, confirm and comment end to end."""
        organizer = await gql(
            "mutation R($input: RegisterInput!) { register(input: $input) { token user { id } } }",
            {"input": {"name": "Olive Organizer", "email": "olive@example.com", "password": "secret123",
                       "role": "ORGANIZER"}},
        )
        attendee = await gql(
            "mutation R($input: RegisterInput!) { register(input: $input) { token user { id } } }",
            {"input": {"name": "Andy Attendee", "email": "andy@example.com", "password": "secret123"}},
        )
        organizer_token = organizer["data"]["register"]["token"]
        attendee_token = attendee["data"]["register"]["token"]

        created = await gql(
            "mutation C($input: CreateEventInput!) { createEvent(input: $input) { id status } }",
            {"input": {
                "title": "PyCon Nairobi",
                "description": "Talks, sprints and a lot of coffee",
                "date": (datetime.now(timezone.utc) + timedelta(days=60)).isoformat(),
                "location": "Nairobi",
                "capacity": 2,
                "category": "CONFERENCE",
            }},
            token=organizer_token,
        )
        event_id = created["data"]["createEvent"]["id"]
        assert created["data"]["createEvent"]["status"] == "DRAFT"

        published = await gql(
            "mutation U($id: ID!) { updateEvent(id: $id, input: {status: PUBLISHED}) { status } }",
            {"id": event_id},
            token=organizer_token,
        )
        assert published["data"]["updateEvent"]["status"] == "PUBLISHED"

        registered = await gql(
            "mutation R($e: ID!) { createRegistration(input: {eventId: $e}) { id status } }",
            {"e": event_id},
            token=attendee_token,
        )
        registration_id = registered["data"]["createRegistration"]["id"]

        confirmed = await gql(
            "mutation U($id: ID!) { updateRegistration(id: $id, input: {status: CONFIRMED}) { status } }",
            {"id": registration_id},
            token=organizer_token,
        )
        assert confirmed["data"]["updateRegistration"]["status"] == "CONFIRMED"

        commented = await gql(
            "mutation C($e: ID!) { createComment(input: {eventId: $e, content: \"See you there\", rating: 5}) { id } }",
            {"e": event_id},
            token=attendee_token,
        )
        assert "errors" not in commented

        events = await gql("query { events { id registrationsCount } }")
        registrations = await gql(
            "query R($e: ID) { registrations(eventId: $e) { id status } }", {"e": event_id}, token=organizer_token
        )
        comments = await gql("query C($e: ID!) { comments(eventId: $e) { id } }", {"e": event_id})
        mine = await gql("query { myRegistrations { event { title } } }", token=attendee_token)

        assert events["data"]["events"] == [{"id": event_id, "registrationsCount": 1}]
        assert registrations["data"]["registrations"] == [{"id": registration_id, "status": "CONFIRMED"}]
        assert len(comments["data"]["comments"]) == 1
        assert mine["data"]["myRegistrations"] == [{"event": {"title": "PyCon Nairobi"}}]
