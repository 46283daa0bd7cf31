"""API-specific test fixtures.

Requests go through httpx.AsyncClient over ASGITransport, so the app runs
in the test's event loop. The lifespan is not started: the coordinator is
injected with dependency_overrides instead of connecting to Redis.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from tenure.api.dependencies import get_coordinator
from tenure.main import create_app


@pytest.fixture
def app() -> FastAPI:
    return create_app()


@pytest.fixture
async def client(app, coordinator):
    """Client whose routes see the loaded test coordinator."""
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def bare_client(app):
    """Client for an app whose coordinator has not been loaded."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
