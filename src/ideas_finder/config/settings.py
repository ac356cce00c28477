"""Pydantic settings models for the App Ideas Finder pipeline.

Three settings classes load from separate YAML config files with environment
variable override support. Source priority (highest to lowest):

    1. Environment variables (with prefix, e.g., MODEL_TEMPERATURE)
    2. .env file (for secrets, e.g., MODEL_API_KEY)
    3. YAML config file (e.g., config/model.yaml)
    4. Default values defined here

Config paths are resolved relative to PROJECT_ROOT so the application works
regardless of the current working directory.
"""

from pathlib import Path

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

# Resolve project root: settings.py -> config/ -> ideas_finder/ -> src/ -> repo root
PROJECT_ROOT = Path(__file__).resolve().parents[3]

_CONFIG_DIR = PROJECT_ROOT / "config"
_ENV_FILE = PROJECT_ROOT / ".env"


class _YamlBackedSettings(BaseSettings):
    """Shared source ordering: init > env > .env > YAML > secrets."""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


class StoreSettings(_YamlBackedSettings):
    """App Store endpoints, pagination ceiling, and similar-app search limits."""

    lookup_url: str = "https://itunes.apple.com/lookup"
    search_url: str = "https://itunes.apple.com/search"
    reviews_url_template: str = (
        "https://itunes.apple.com/{country}/rss/customerreviews"
        "/page={page}/sortBy={sort}/id={app_id}/json"
    )
    country: str = "us"
    review_sort: str = "mostRecent"
    max_review_pages: int = 200
    request_timeout_seconds: float = 15.0
    user_agent: str = "AppIdeasFinder/1.0"

    # Transient-error retries for lookup/search only; review pages never retry
    lookup_retries: int = 2

    # Similar-app discovery
    similar_apps_limit: int = 9
    search_terms_limit: int = 8
    search_results_per_term: int = 20

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "store.yaml"),
        env_prefix="STORE_",
    )


class ModelSettings(_YamlBackedSettings):
    """Chat-completion provider: endpoint, model, sampling, and token rates.

    ``api_key`` is a secret and comes from .env or the environment only --
    it must NEVER appear in YAML files or logs.
    """

    api_key: str = ""
    endpoint: str = "https://api.x.ai/v1/chat/completions"
    model_id: str = "grok-4-fast-reasoning"
    temperature: float = 0.2
    max_tokens: int = 5000
    # Reasoning completions routinely outlast httpx's 5s default
    timeout_seconds: float = 300.0

    # USD per token: input is cheaper; output and system/overhead share a rate
    input_rate_per_token: float = 0.0000002
    output_rate_per_token: float = 0.0000005

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "model.yaml"),
        env_file=str(_ENV_FILE),
        env_prefix="MODEL_",
        extra="ignore",
    )


class PipelineSettings(_YamlBackedSettings):
    """Pipeline operations: paths, logging, result cache."""

    db_path: str = "data/ideas.db"
    log_dir: str = "logs"
    log_max_bytes: int = 10_485_760  # 10MB
    log_backup_count: int = 5
    cache_max_age_days: int = 14
    report_dir: str = "data/reports"

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "pipeline.yaml"),
        env_prefix="PIPELINE_",
    )
