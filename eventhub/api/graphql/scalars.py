from datetime import datetime, timezone
import strawberry


def serialize_datetime(value: datetime) -> str:
    # Naive values come from backends that drop tzinfo (SQLite); they are UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_datetime(value: str) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


DateTime = strawberry.scalar(
    datetime,
    name="DateTime",
    description="Date and time as ISO-8601 text",
    serialize=serialize_datetime,
    parse_value=parse_datetime,
)
