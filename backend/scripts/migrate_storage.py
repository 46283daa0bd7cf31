"""Run the legacy storage-key migration against the configured Redis.

The coordinator runs the same migration on load; this script is for
operators who want to inspect the outcome or drop the legacy keys.

Run from backend/:
    python -m scripts.migrate_storage
    python -m scripts.migrate_storage --delete-old-keys
"""

import argparse
import asyncio

from tenure.core.config import get_settings
from tenure.db import close_redis, init_redis
from tenure.db.migration import MigrationResult, run_storage_migration
from tenure.db.versioned import VersionedPersistenceGateway


def report(result: MigrationResult) -> list[str]:
    if result.already_migrated:
        return [f"Storage already at version {result.version}; nothing to do."]

    lines = [f"Migrated {len(result.migrated_keys)} key(s) to version {result.version}:"]
    lines += [f"  {entry}" for entry in result.migrated_keys]
    lines += [f"  skipped {entry}" for entry in result.skipped_keys]
    lines += [f"  FAILED {e['key']}: {e['error']}" for e in result.errors]
    return lines


async def main(delete_old_keys: bool = False) -> None:
    settings = get_settings()
    redis = await init_redis()
    try:
        gateway = VersionedPersistenceGateway(redis, settings.storage_key_prefix)
        result = await run_storage_migration(gateway, delete_old_keys=delete_old_keys)
    finally:
        await close_redis()

    for line in report(result):
        print(line)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--delete-old-keys", action="store_true")
    args = parser.parse_args()
    asyncio.run(main(args.delete_old_keys))
