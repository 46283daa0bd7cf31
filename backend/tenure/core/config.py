from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Tenure Discover"
    debug: bool = False

    # API
    frontend_url: str = "http://localhost:3000"

    # Storage
    redis_url: str = "redis://localhost:6379"
    storage_key_prefix: str = "tenure_"

    # Routing
    app_base_path: str = "/app"
    default_landing_tab: str = "discover"  # env: DEFAULT_LANDING_TAB (discover|prepare|prospect|prosper)

    # Schema versions per logical storage key (bump on breaking data changes)
    schema_versions: dict[str, int] = {
        "discover_answers": 1,
        "discover_profile": 1,
        "personality_progress": 1,
        "cognitive_style_progress": 1,
        "feature_flags": 1,
        "schema_version": 1,
    }

    # O*NET Interest Profiler
    onet_base_url: str = "https://api-v2.onetcenter.org"
    onet_api_key: str = ""
    onet_timeout_seconds: float = 10.0

    # Feature flags (per-profile overrides are persisted under the feature_flags key)
    default_feature_flags: dict[str, bool] = {
        "showDiscover": True,
        "showPrepare": True,
        "showProspect": True,
        "showProsper": True,
        "showMatches": False,  # env: DEFAULT_FEATURE_FLAGS (JSON)
    }


@lru_cache
def get_settings() -> Settings:
    return Settings()
