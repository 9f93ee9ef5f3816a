import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

# Load environment variables from .env file
load_dotenv()


class ConfigurationError(Exception):
    """Raised when a required setting is missing or invalid."""

    pass


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


class Settings(BaseModel):
    """Runtime settings for collection, storage and the API."""

    # Trend index (OSS Insight)
    oss_insight_base_url: str = "https://api.ossinsight.io"
    oss_insight_token: Optional[str] = None
    trending_limit: int = Field(100, ge=1)

    # GitHub
    github_api_url: str = "https://api.github.com"
    github_raw_url: str = "https://raw.githubusercontent.com"
    github_token: Optional[str] = None

    # Summarizer (DeepSeek, OpenAI-compatible)
    deepseek_base_url: str = "https://api.deepseek.com"
    deepseek_api_key: str
    deepseek_model: str = "deepseek-chat"
    summary_language: str = "Korean"
    readme_max_chars: int = Field(8000, ge=1)

    # Language composition
    language_threshold: float = Field(0.2, ge=0.0, le=1.0)  # fraction of total bytes
    renormalize_repo_languages: bool = False

    # Pipeline
    collect_concurrency: int = Field(4, ge=1)
    request_timeout_seconds: float = Field(30.0, gt=0)
    retry_max_attempts: int = Field(3, ge=1)
    retry_base_delay_seconds: float = Field(1.0, ge=0)
    collect_cron: Optional[str] = "0 0 * * *"

    # Storage
    database_path: str = "./data/daily_git_brief.db"

    # Server
    log_level: str = "INFO"
    log_format: str = "text"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @property
    def language_threshold_percent(self) -> float:
        """Threshold in percent, as expected by the language normalizer."""
        return self.language_threshold * 100.0

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Raises:
            ConfigurationError: If DEEPSEEK_API_KEY is not set or a value is out of range
        """
        api_key = _env_optional("DEEPSEEK_API_KEY")
        if api_key is None:
            raise ConfigurationError("DEEPSEEK_API_KEY must be set")

        cron = os.getenv("COLLECT_CRON", "0 0 * * *").strip()

        try:
            return cls(
                oss_insight_base_url=os.getenv("OSS_INSIGHT_BASE_URL", "https://api.ossinsight.io"),
                oss_insight_token=_env_optional("OSS_INSIGHT_TOKEN"),
                trending_limit=_env_int("TRENDING_LIMIT", 100),
                github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
                github_raw_url=os.getenv("GITHUB_RAW_URL", "https://raw.githubusercontent.com"),
                github_token=_env_optional("GITHUB_TOKEN"),
                deepseek_base_url=os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com"),
                deepseek_api_key=api_key,
                deepseek_model=os.getenv("DEEPSEEK_MODEL", "deepseek-chat"),
                summary_language=os.getenv("SUMMARY_LANGUAGE", "Korean"),
                readme_max_chars=_env_int("README_MAX_CHARS", 8000),
                language_threshold=_env_float("LANGUAGE_THRESHOLD", 0.2),
                renormalize_repo_languages=_env_bool("RENORMALIZE_REPO_LANGUAGES", False),
                collect_concurrency=_env_int("COLLECT_CONCURRENCY", 4),
                request_timeout_seconds=_env_float("REQUEST_TIMEOUT_SECONDS", 30.0),
                retry_max_attempts=_env_int("RETRY_MAX_ATTEMPTS", 3),
                retry_base_delay_seconds=_env_float("RETRY_BASE_DELAY_SECONDS", 1.0),
                collect_cron=cron or None,
                database_path=os.getenv("DATABASE_PATH", "./data/daily_git_brief.db"),
                log_level=os.getenv("LOG_LEVEL", "INFO"),
                log_format=os.getenv("LOG_FORMAT", "text"),
                cors_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings: {e}") from e


# ============================================================================
# Settings Loader
# ============================================================================

# Cache for loaded settings
_settings_cache: Optional[Settings] = None


def get_settings(force_reload: bool = False) -> Settings:
    """
    Load settings from the environment.

    Args:
        force_reload: If True, re-read the environment even if cached

    Returns:
        Parsed Settings instance
    """
    global _settings_cache

    if _settings_cache is not None and not force_reload:
        return _settings_cache

    _settings_cache = Settings.from_env()
    return _settings_cache
