"""FastAPI application factory and lifespan."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prledger.api.v1 import api_router
from prledger.core.config import get_settings
from prledger.core.logging import configure_logging
from prledger.db.session import async_session_maker, engine
from prledger.services.lift_log_events import EventBus, PersonalRecordListener
from prledger.services.pr_notifications import PRNotifier

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: nothing (schema comes from Alembic); shutdown: dispose the engine."""
    yield
    await engine.dispose()


def create_application(session_maker: async_sessionmaker[AsyncSession] | None = None) -> FastAPI:
    configure_logging()
    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    # CORS: everything in debug, localhost in development, CORS_ORIGINS otherwise
    if settings.debug:
        cors_origins = ["*"]
    elif settings.environment == "development":
        cors_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
    else:
        cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Ledger wiring: lift log events -> PR listener -> notifier
    bus = EventBus()
    PersonalRecordListener(session_maker or async_session_maker).register(bus)
    notifier = PRNotifier()
    notifier.register(bus)
    app.state.event_bus = bus
    app.state.pr_notifier = notifier

    @app.get("/")
    def root():
        return {"status": "ok", "message": settings.app_name}

    app.include_router(api_router, prefix=settings.api_v1_prefix)
    return app


app = create_application()
