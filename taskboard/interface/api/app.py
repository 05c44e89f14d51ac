"""FastAPI application."""

from contextlib import asynccontextmanager

from dishka import AsyncContainer
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskboard.config import Settings
from taskboard.interface.api.errors import register_exception_handlers
from taskboard.interface.api.routes import auth, health, invitations
from taskboard.util.di.container import create_container, setup_di
from taskboard.util.observability import instrument_fastapi, instrument_httpx


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.dishka_container.close()


def create_app(container: AsyncContainer | None = None) -> FastAPI:
    """Create FastAPI application.

    Logfire should be configured before calling this function; start_app.py
    does it in production and tests/conftest.py in tests.

    Args:
        container: DI container to use instead of the production one
    """
    settings = Settings()

    instrument_httpx()

    app_instance = FastAPI(
        title="Task Board API",
        description="Invite-only task board: invitations, sign-in and sessions",
        version="0.1.0",
        lifespan=lifespan,
    )

    instrument_fastapi(app_instance)

    app_instance.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.base_url, "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
        max_age=600,
    )

    setup_di(app_instance, container or create_container())
    register_exception_handlers(app_instance)

    app_instance.include_router(health.router)
    app_instance.include_router(auth.router)
    app_instance.include_router(invitations.router)

    return app_instance


# App instance for uvicorn
app = create_app()
