"""Shared test fixtures for all test groups."""

import pytest
from fakeredis import FakeAsyncRedis

from tenure.content.provider_fake import ContentProviderFake
from tenure.core.config import Settings
from tenure.db.versioned import VersionedPersistenceGateway
from tenure.domain.assessments import KIND_SPECS, AssessmentKind
from tenure.services.coordinator import AssessmentCoordinator


@pytest.fixture
async def redis():
    """Fake Redis shared by the gateway and direct assertions."""
    fake_redis = FakeAsyncRedis(decode_responses=True)
    yield fake_redis
    await fake_redis.flushall()
    await fake_redis.aclose()


@pytest.fixture
def gateway(redis):
    return VersionedPersistenceGateway(redis, key_prefix="tenure_")


@pytest.fixture
def provider():
    """Fresh ContentProviderFake with happy_path scenario (default)."""
    return ContentProviderFake(scenario="happy_path")


@pytest.fixture
def settings():
    """Default settings, independent of the process environment's cache."""
    return Settings(_env_file=None)


@pytest.fixture
async def coordinator(gateway, provider, settings):
    """Loaded coordinator over an empty profile."""
    c = AssessmentCoordinator(gateway, provider, settings=settings)
    await c.load()
    return c


@pytest.fixture
def complete_assessment():
    """Start and answer every question of one kind through a coordinator."""

    async def _complete(coordinator: AssessmentCoordinator, kind: AssessmentKind, token: str = "5"):
        await coordinator.start(kind)
        result = None
        for _ in range(KIND_SPECS[kind].question_count):
            result = await coordinator.answer(kind, token)
        return result

    return _complete
