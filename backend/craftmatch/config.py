import json
import logging
from pathlib import Path

from pydantic_settings import BaseSettings
from functools import lru_cache

_config_logger = logging.getLogger(__name__)

_SETTINGS_FILE = Path("data/settings.json")
_BACKEND_DIR = Path(__file__).resolve().parents[1]
_PACKAGE_DATA_DIR = Path(__file__).resolve().parent / "data"
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)
# Keys an operator may override at runtime through data/settings.json
_OVERRIDE_KEYS = {
    "classification_model": str,
    "heuristic_confidence_threshold": float,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Craftmatch API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    database_url: str = "sqlite:///./craftmatch.db"
    cors_origins: list[str] = ["http://localhost:3020"]

    # OpenRouter configuration (AI fallback classifier)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_app_name: str = "Craftmatch"
    classification_model: str = "google/gemini-3-flash-preview"

    # Catalogue and seed data
    profession_catalog_file: str = str(_PACKAGE_DATA_DIR / "professions.yaml")
    sample_profiles_file: str = str(_PACKAGE_DATA_DIR / "sample_artisans.yaml")
    seed_sample_profiles: bool = True

    # Classification
    heuristic_confidence_threshold: float = 0.6  # below this the AI fallback runs
    ai_fallback_timeout_seconds: float = 4.0
    ai_fallback_max_retries: int = 1
    request_deadline_seconds: float = 8.0

    # Query analysis cache
    query_cache_ttl_seconds: int = 3600
    query_cache_max_entries: int = 1000

    # Retrieval
    default_max_results: int = 20
    max_results_cap: int = 100
    widened_retrieval_limit: int = 100

    # Decision analytics
    analytics_queue_size: int = 1000
    analytics_tick_seconds: float = 60.0
    analytics_retention_days: int = 30
    alert_auto_resolve_seconds: int = 3600
    resolved_alert_retention_seconds: int = 86400

    # Logging — per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine — SQL queries
    log_level_http: str = "WARNING"          # httpx / httpcore — outbound HTTP
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_pipeline: str = "INFO"         # matching pipeline stages
    log_level_openrouter: str = "INFO"       # OpenRouter classifier client
    log_level_analytics: str = "INFO"        # decision recorder, alert rules

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def ai_fallback_enabled(self) -> bool:
        return bool(self.openrouter_api_key)

    def model_post_init(self, __context: object) -> None:
        """Merge runtime overrides from data/settings.json."""
        if _SETTINGS_FILE.exists():
            try:
                overrides = json.loads(_SETTINGS_FILE.read_text("utf-8"))
                for key, cast in _OVERRIDE_KEYS.items():
                    if key in overrides:
                        object.__setattr__(self, key, cast(overrides[key]))
            except (OSError, ValueError, TypeError) as exc:
                _config_logger.warning("Could not load settings overrides: %s", exc)


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
