"""Dependency injection container."""

from dishka import AsyncContainer, make_async_container
from dishka.integrations.fastapi import FastapiProvider, setup_dishka
from fastapi import FastAPI

from fines.util.di import build_providers, components


def create_container() -> AsyncContainer:
    """Build the production container: PostgreSQL storage and LISTEN/NOTIFY."""
    return make_async_container(*build_providers(components()), FastapiProvider())


def setup_di(app: FastAPI, container: AsyncContainer) -> None:
    """Attach the container to the app so routes can use ``FromDishka``."""
    setup_dishka(container, app)
