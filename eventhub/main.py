from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from strawberry.fastapi import GraphQLRouter
from strawberry.subscriptions import GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL
from eventhub.api.graphql.context import get_context
from eventhub.api.graphql.schema import schema
from eventhub.api.routes import health as health_router
from eventhub.core.config import settings
from eventhub.core.logging import logger
from eventhub.db.session import engine, Base
from eventhub.events.bus import EventBus
from eventhub.middleware.security_headers import SecurityHeadersMiddleware

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT])


def create_app() -> FastAPI:
    app = FastAPI(title="EventHub")

    # The bus is owned by the app and handed to resolvers through the context
    app.state.bus = EventBus(queue_size=settings.SUBSCRIBER_QUEUE_SIZE)

    # Add rate limiter to app state
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Add security headers middleware
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    graphql_router = GraphQLRouter(
        schema,
        context_getter=get_context,
        subscription_protocols=[GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL],
    )
    app.include_router(graphql_router, prefix=settings.GRAPHQL_PATH)
    app.include_router(health_router.router)

    @app.on_event("startup")
    async def on_startup():
        if settings.CREATE_TABLES_ON_STARTUP:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        app.state.bus.start()
        logger.info(f"EventHub ready at http://0.0.0.0:{settings.PORT}{settings.GRAPHQL_PATH}")

    @app.on_event("shutdown")
    async def on_shutdown():
        app.state.bus.stop()
        await engine.dispose()
        logger.info("EventHub stopped")

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("eventhub.main:app", host="0.0.0.0", port=settings.PORT)
