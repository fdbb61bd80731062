"""
Related-record fields that are either already loaded or just an id.

A query may eager-load a relationship (the organizer of listed events, the
user and event of a registration) or leave it unloaded. :func:`related`
captures which case applies without triggering a lazy load, for ORM records
and bus snapshots alike, and :func:`resolve` fetches the record only when
all we hold is its id.
"""
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar, Union
from eventhub.events.snapshot import loaded_relation

T = TypeVar("T")


@dataclass(frozen=True)
class Reference(Generic[T]):
    id: str


@dataclass(frozen=True)
class Expanded(Generic[T]):
    record: T

    @property
    def id(self) -> str:
        return self.record.id


Related = Union[Reference[T], Expanded[T]]


def related(record, relationship: str, foreign_key: str) -> Related:
    loaded = loaded_relation(record, relationship)
    if loaded is not None:
        return Expanded(loaded)
    return Reference(getattr(record, foreign_key))


async def resolve(ref: Related, loader: Callable[[str], Awaitable[Optional[T]]]) -> Optional[T]:
    if isinstance(ref, Expanded):
        return ref.record
    return await loader(ref.id)
