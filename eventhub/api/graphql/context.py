import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection
from starlette.websockets import WebSocket
from strawberry.fastapi import BaseContext
from eventhub.auth import Identity, identity_from_token
from eventhub.db.session import get_session
from eventhub.events.bus import EventBus


class Context(BaseContext):
    """
    Per-request (or per-WebSocket-connection) resolver context.

    GraphQL resolves sibling fields concurrently while an AsyncSession must
    not be used concurrently, so resolvers go through :meth:`db`, which
    serializes access to the shared session.
    """

    def __init__(self, session: AsyncSession, bus: EventBus, identity: Optional[Identity] = None):
        super().__init__()
        self.session = session
        self.bus = bus
        self._identity = identity
        self._lock = asyncio.Lock()

    @property
    def is_websocket(self) -> bool:
        return isinstance(self.request, WebSocket)

    def _raw_token(self) -> Optional[str]:
        params = getattr(self, "connection_params", None)
        if not isinstance(params, dict):
            params = {}
        for key in ("authorization", "Authorization"):
            if params.get(key):
                return str(params[key])
        if self.request is not None:
            return self.request.headers.get("authorization")
        return None

    @property
    def identity(self) -> Identity:
        if self._identity is None:
            self._identity = identity_from_token(self._raw_token())
        return self._identity

    @asynccontextmanager
    async def db(self) -> AsyncIterator[AsyncSession]:
        async with self._lock:
            try:
                yield self.session
            finally:
                # A WebSocket connection keeps its session for its whole
                # lifetime; end each read transaction instead of holding it.
                if self.is_websocket and self.session.in_transaction():
                    await self.session.commit()


def get_bus(connection: HTTPConnection) -> EventBus:
    return connection.app.state.bus


async def get_context(
    session: AsyncSession = Depends(get_session),
    bus: EventBus = Depends(get_bus),
) -> Context:
    return Context(session=session, bus=bus)
