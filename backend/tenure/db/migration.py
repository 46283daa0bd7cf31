"""One-time migration of legacy storage keys.

Older builds stored values under un-prefixed "augment_*" keys without the
versioned envelope. The migration copies each legacy value to its new
logical key when the new key is still empty. It is safe to run repeatedly:
the schema_version marker short-circuits later runs, existing values are
never overwritten, and old keys are kept unless delete_old_keys is set.
Copied values keep their raw form, so they load as legacy data
(actual_version 0) and the owning component decides how to upgrade them.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from redis.exceptions import RedisError

from tenure.db.versioned import VersionedPersistenceGateway

logger = structlog.get_logger(__name__)

MIGRATION_VERSION = 1
MIGRATION_MARKER_KEY = "schema_version"

# legacy raw key -> logical key (prefixed by the gateway)
LEGACY_KEY_MIGRATIONS: dict[str, str] = {
    "augment_answers": "discover_answers",
    "augment_feature_flags": "feature_flags",
}


@dataclass
class MigrationResult:
    version: int = MIGRATION_VERSION
    migrated_keys: list[str] = field(default_factory=list)
    skipped_keys: list[str] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)
    timestamp: str = ""
    already_migrated: bool = False


async def is_migration_complete(gateway: VersionedPersistenceGateway) -> bool:
    marker = await gateway.load(MIGRATION_MARKER_KEY, MIGRATION_VERSION)
    if not marker.ok or not marker.found:
        return False
    try:
        return int(marker.data) >= MIGRATION_VERSION
    except (TypeError, ValueError):
        return False


async def run_storage_migration(
    gateway: VersionedPersistenceGateway, delete_old_keys: bool = False
) -> MigrationResult:
    """Copy legacy keys to their logical keys and record the marker version.

    Per-key failures are collected in MigrationResult.errors; the marker is
    still written so a broken legacy entry is not retried on every load.
    """
    result = MigrationResult(timestamp=datetime.now(UTC).isoformat())

    if await is_migration_complete(gateway):
        result.already_migrated = True
        logger.debug("storage_migration_skipped", version=MIGRATION_VERSION)
        return result

    logger.info("storage_migration_started", version=MIGRATION_VERSION)
    redis = gateway.redis

    for old_key, logical_key in LEGACY_KEY_MIGRATIONS.items():
        new_key = gateway.storage_key(logical_key)
        try:
            old_value = await redis.get(old_key)
            if old_value is None:
                result.skipped_keys.append(f"{old_key} (not found)")
                continue

            if await redis.exists(new_key):
                result.skipped_keys.append(f"{old_key} (new key exists)")
                continue

            await redis.set(new_key, old_value)
            result.migrated_keys.append(f"{old_key} -> {new_key}")

            if delete_old_keys:
                await redis.delete(old_key)

            logger.info("storage_key_migrated", old_key=old_key, new_key=new_key)
        except (RedisError, OSError) as e:
            result.errors.append({"key": old_key, "error": str(e)})
            logger.error("storage_key_migration_failed", old_key=old_key, error=str(e))

    saved = await gateway.save(MIGRATION_MARKER_KEY, MIGRATION_VERSION, MIGRATION_VERSION)
    if not saved.ok:
        result.errors.append({"key": MIGRATION_MARKER_KEY, "error": saved.error})

    logger.info(
        "storage_migration_complete",
        migrated=len(result.migrated_keys),
        skipped=len(result.skipped_keys),
        errors=len(result.errors),
    )
    return result
