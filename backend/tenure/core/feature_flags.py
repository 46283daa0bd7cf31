"""Feature flag resolution and persistence.

Resolution logic:
1. Start from global defaults (Settings.default_feature_flags)
2. Merge the profile's persisted overrides (feature_flags key)
3. Carry the legacy showPipeline flag over to showProspect when the
   stored overrides predate the rename
4. Drop unknown flag names
"""

from collections.abc import Mapping
from typing import Any

import structlog
from pydantic.alias_generators import to_camel

from tenure.core.config import get_settings
from tenure.db.versioned import VersionedPersistenceGateway
from tenure.domain.routes import Tab
from tenure.schemas.storage import FeatureFlags

logger = structlog.get_logger(__name__)

FEATURE_FLAGS_KEY = "feature_flags"

FLAG_NAMES = tuple(to_camel(name) for name in FeatureFlags.model_fields)

# Tab order is the navigation order
TAB_FLAGS: dict[Tab, str] = {
    Tab.DISCOVER: "showDiscover",
    Tab.PREPARE: "showPrepare",
    Tab.PROSPECT: "showProspect",
    Tab.PROSPER: "showProsper",
    Tab.MATCHES: "showMatches",
}


def resolve_feature_flags(
    defaults: Mapping[str, bool], stored: Any = None
) -> FeatureFlags:
    """Merge persisted overrides over the defaults.

    Args:
        defaults: camelCase flag name -> default value
        stored: persisted overrides; anything but a dict is ignored

    Returns:
        Complete FeatureFlags
    """
    merged = {name: bool(value) for name, value in defaults.items() if name in FLAG_NAMES}

    if isinstance(stored, dict):
        for name, value in stored.items():
            if name in FLAG_NAMES and isinstance(value, bool):
                merged[name] = value
        if "showProspect" not in stored and isinstance(stored.get("showPipeline"), bool):
            merged["showProspect"] = stored["showPipeline"]

    return FeatureFlags.model_validate(merged)


def visible_tabs(flags: FeatureFlags) -> list[Tab]:
    dumped = flags.model_dump(by_alias=True)
    return [tab for tab, flag in TAB_FLAGS.items() if dumped[flag]]


class FeatureFlagStore:
    """The profile's feature flags, loaded once and persisted on every change."""

    def __init__(
        self,
        gateway: VersionedPersistenceGateway,
        defaults: Mapping[str, bool] | None = None,
        schema_version: int | None = None,
    ):
        settings = get_settings()
        self.gateway = gateway
        self.defaults = dict(defaults if defaults is not None else settings.default_feature_flags)
        self.schema_version = (
            schema_version
            if schema_version is not None
            else settings.schema_versions.get(FEATURE_FLAGS_KEY, 1)
        )
        self._flags = resolve_feature_flags(self.defaults)

    async def load(self) -> FeatureFlags:
        """Load persisted overrides; storage failures fall back to the defaults."""
        loaded = await self.gateway.load(FEATURE_FLAGS_KEY, self.schema_version)
        if not loaded.ok:
            logger.warning("feature_flags_load_failed", error=loaded.error)
            self._flags = resolve_feature_flags(self.defaults)
            return self._flags

        self._flags = resolve_feature_flags(self.defaults, loaded.data if loaded.found else None)

        if loaded.found and loaded.needs_migration:
            await self._persist()
            logger.info("feature_flags_migrated", from_version=loaded.actual_version)

        return self._flags

    def get(self) -> FeatureFlags:
        return self._flags

    async def set(self, name: str, value: bool) -> FeatureFlags:
        """Set one flag by its camelCase name and persist all flags.

        Raises:
            KeyError: unknown flag name
        """
        if name not in FLAG_NAMES:
            raise KeyError(name)

        values = self._flags.model_dump(by_alias=True)
        values[name] = value
        self._flags = FeatureFlags.model_validate(values)
        await self._persist()
        return self._flags

    async def _persist(self) -> None:
        saved = await self.gateway.save(
            FEATURE_FLAGS_KEY, self._flags.model_dump(by_alias=True), self.schema_version
        )
        if not saved.ok:
            logger.warning("feature_flags_save_failed", error=saved.error)
