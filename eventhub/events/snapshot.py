"""
Plain copies of records for the event bus.

Subscribers convert payloads on their own tasks, possibly long after the
publishing session has committed, rolled back or closed. A snapshot holds
the column values and loaded many-to-one relations as they were at publish
time, so nothing on it is ever refreshed from the database.
"""
from typing import Any, Dict, Optional
from sqlalchemy import inspect


class Snapshot:
    """Read-only copy of a record; columns are attributes, relations live in ``relations``."""

    __slots__ = ("_values", "relations", "model")

    def __init__(self, model: type, values: Dict[str, Any], relations: Dict[str, "Snapshot"]):
        object.__setattr__(self, "model", model)
        object.__setattr__(self, "_values", values)
        object.__setattr__(self, "relations", relations)

    def __getattr__(self, name: str) -> Any:
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(f"{self.model.__name__} snapshot has no field {name!r}") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("snapshots are read-only")

    def __repr__(self) -> str:
        return f"<{self.model.__name__} snapshot {self._values.get('id')}>"


def snapshot(record) -> Optional[Snapshot]:
    if record is None or isinstance(record, Snapshot):
        return record
    state = inspect(record)
    mapper = state.mapper
    values = {attr.key: getattr(record, attr.key) for attr in mapper.column_attrs}
    relations = {}
    for rel in mapper.relationships:
        # Collections are never part of a payload
        if rel.uselist or rel.key in state.unloaded:
            continue
        loaded = getattr(record, rel.key)
        if loaded is not None:
            relations[rel.key] = snapshot(loaded)
    return Snapshot(mapper.class_, values, relations)


def loaded_relation(record, relationship: str):
    """The related record if it is already in memory, otherwise None."""
    if isinstance(record, Snapshot):
        return record.relations.get(relationship)
    state = inspect(record)
    if relationship in state.unloaded:
        return None
    return getattr(record, relationship)
