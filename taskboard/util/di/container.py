"""Production container and its FastAPI wiring."""

from dishka import AsyncContainer, Provider, make_async_container
from dishka.integrations.fastapi import FastapiProvider, setup_dishka
from fastapi import FastAPI

from taskboard.util.di import select_providers


def create_container(*extra: Provider) -> AsyncContainer:
    """Container with every component resolved to its production implementation."""
    return make_async_container(*select_providers(), FastapiProvider(), *extra)


def setup_di(app: FastAPI, container: AsyncContainer) -> None:
    """Attach the container to the app.

    The container must be closed on shutdown to dispose the database engine;
    ``create_app``'s lifespan does that.
    """
    setup_dishka(container, app)
