"""VersionedPersistenceGateway: schema-versioned JSON records in Redis.

Every value is stored as {"schemaVersion", "savedAt", "data"}. The gateway
only detects stale or legacy data (needs_migration); migrating it is the
caller's decision. Storage and serialization failures come back as explicit
failure results, never as silent defaults and never as raised exceptions.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from tenure.core.exceptions import PersistenceError
from tenure.schemas.storage import VersionedRecord

logger = structlog.get_logger(__name__)


@dataclass
class SaveResult:
    ok: bool
    key: str
    error: str = ""


@dataclass
class LoadResult:
    """Outcome of a load.

    ok=False means the read itself failed (backend down, corrupt JSON).
    found=False means nothing is stored under the key.
    """

    ok: bool
    key: str
    found: bool = False
    data: Any = None
    needs_migration: bool = False
    actual_version: int = 0
    error: str = ""


@dataclass(frozen=True)
class Unwrapped:
    data: Any
    needs_migration: bool
    actual_version: int


def wrap_with_version(value: Any, schema_version: int, now: datetime | None = None) -> dict:
    """Wrap a JSON-serializable value in the versioned envelope."""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True)
    record = VersionedRecord(
        schema_version=schema_version,
        saved_at=now or datetime.now(UTC),
        data=value,
    )
    return record.model_dump(mode="json", by_alias=True)


def unwrap_versioned(stored: Any, expected_version: int) -> Unwrapped:
    """Extract data from the envelope and compare versions.

    Anything that is not an object carrying both schemaVersion and data is
    legacy data: returned as-is with actual_version 0 and needs_migration.
    """
    if isinstance(stored, dict) and "schemaVersion" in stored and "data" in stored:
        try:
            record = VersionedRecord.model_validate(stored)
        except ValidationError:
            record = None
        if record is not None:
            return Unwrapped(
                data=record.data,
                needs_migration=record.schema_version < expected_version,
                actual_version=record.schema_version,
            )

    return Unwrapped(data=stored, needs_migration=True, actual_version=0)


class VersionedPersistenceGateway:
    """Versioned load/save of logical keys on top of Redis string values."""

    def __init__(self, redis: Redis, key_prefix: str = "tenure_"):
        self.redis = redis
        self.key_prefix = key_prefix

    def storage_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def save(
        self, key: str, value: Any, schema_version: int, now: datetime | None = None
    ) -> SaveResult:
        """Store value under key wrapped with schema_version and the save time."""
        try:
            payload = json.dumps(wrap_with_version(value, schema_version, now))
            await self._write(key, payload)
        except (TypeError, ValueError) as e:
            logger.warning("persistence_serialize_failed", key=key, error=str(e))
            return SaveResult(ok=False, key=key, error=f"serialization: {e}")
        except PersistenceError as e:
            logger.warning("persistence_save_failed", key=key, error=e.reason)
            return SaveResult(ok=False, key=key, error=e.reason)
        return SaveResult(ok=True, key=key)

    async def load(self, key: str, expected_version: int) -> LoadResult:
        """Load and unwrap the value stored under key."""
        try:
            raw = await self._read(key)
        except PersistenceError as e:
            logger.warning("persistence_load_failed", key=key, error=e.reason)
            return LoadResult(ok=False, key=key, error=e.reason)

        if raw is None:
            return LoadResult(ok=True, key=key, found=False)

        try:
            stored = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("persistence_corrupt_entry", key=key, error=str(e))
            return LoadResult(ok=False, key=key, error=f"corrupt entry: {e.msg}")

        unwrapped = unwrap_versioned(stored, expected_version)
        if unwrapped.needs_migration:
            logger.info(
                "persistence_stale_version",
                key=key,
                actual_version=unwrapped.actual_version,
                expected_version=expected_version,
            )
        return LoadResult(
            ok=True,
            key=key,
            found=True,
            data=unwrapped.data,
            needs_migration=unwrapped.needs_migration,
            actual_version=unwrapped.actual_version,
        )

    async def delete(self, key: str) -> SaveResult:
        try:
            await self.redis.delete(self.storage_key(key))
        except (RedisError, OSError) as e:
            logger.warning("persistence_delete_failed", key=key, error=str(e))
            return SaveResult(ok=False, key=key, error=str(e))
        return SaveResult(ok=True, key=key)

    async def _read(self, key: str) -> str | None:
        try:
            return await self.redis.get(self.storage_key(key))
        except (RedisError, OSError) as e:
            raise PersistenceError(key, str(e)) from e

    async def _write(self, key: str, payload: str) -> None:
        try:
            await self.redis.set(self.storage_key(key), payload)
        except (RedisError, OSError) as e:
            raise PersistenceError(key, str(e)) from e
