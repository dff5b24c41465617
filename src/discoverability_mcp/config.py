"""Server configuration via environment variables."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, field_validator


def _resolve_tracing_enabled(flag_value: str, tracking_uri: str) -> bool:
    """Derive tracing_enabled from env vars.

    - ``DISCOVERABILITY_TRACING_ENABLED=false`` → always disabled (explicit opt-out).
    - Otherwise → enabled when ``MLFLOW_TRACKING_URI`` is non-empty.
    """
    if flag_value.lower() == "false":
        return False
    return bool(tracking_uri)


def _env_int(name: str, default: int) -> int:
    """Read an int env var; blank values fall back to *default*."""
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    """Read a float env var; blank values fall back to *default*."""
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment."""

    gemini_api_key: str = Field(default="")
    default_model: str = Field(default="gemini-3-flash-preview")
    analysis_temperature: float = Field(default=0.1)
    analysis_max_output_tokens: int = Field(default=4000)
    upstream_timeout_seconds: float = Field(default=30.0)
    retry_max_attempts: int = Field(default=3)
    retry_base_delay: float = Field(default=1.0)
    retry_max_delay: float = Field(default=60.0)
    cache_ttl_hours: float = Field(default=24.0)
    cache_max_entries: int = Field(default=1000)
    quota_standard_max: int = Field(default=50)
    quota_bulk_max: int = Field(default=5)
    quota_window_seconds: int = Field(default=3600)
    housekeeping_interval_seconds: int = Field(default=600)
    bulk_concurrency: int = Field(default=3)
    judgeme_api_token: str = Field(default="")
    judgeme_api_url: str = Field(default="https://judge.me/api/v1/reviews")
    review_fetch_timeout_seconds: float = Field(default=10.0)
    log_level: str = Field(default="INFO")
    tracing_enabled: bool = Field(default=False)
    mlflow_tracking_uri: str = Field(default="")
    mlflow_experiment_name: str = Field(default="product-discoverability-mcp")

    @field_validator(
        "analysis_max_output_tokens",
        "cache_max_entries",
        "quota_standard_max",
        "quota_bulk_max",
        "quota_window_seconds",
        "housekeeping_interval_seconds",
        "bulk_concurrency",
    )
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Configuration values must be >= 1")
        return value

    @field_validator("retry_max_attempts")
    @classmethod
    def validate_retry_max_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("retry_max_attempts must be >= 1")
        return value

    @field_validator(
        "retry_base_delay",
        "retry_max_delay",
        "upstream_timeout_seconds",
        "cache_ttl_hours",
        "review_fetch_timeout_seconds",
    )
    @classmethod
    def validate_positive_floats(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Delays, timeouts and TTLs must be > 0")
        return value

    @field_validator("analysis_temperature")
    @classmethod
    def validate_temperature(cls, value: float) -> float:
        if not 0.0 <= value <= 2.0:
            raise ValueError("analysis_temperature must be between 0.0 and 2.0")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level '{value}'")
        return level

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_hours * 3600

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            default_model=os.getenv("GEMINI_MODEL", "gemini-3-flash-preview"),
            analysis_temperature=_env_float("ANALYSIS_TEMPERATURE", 0.1),
            analysis_max_output_tokens=_env_int("ANALYSIS_MAX_OUTPUT_TOKENS", 4000),
            upstream_timeout_seconds=_env_float("UPSTREAM_TIMEOUT_SECONDS", 30.0),
            retry_max_attempts=_env_int("UPSTREAM_RETRY_MAX_ATTEMPTS", 3),
            retry_base_delay=_env_float("UPSTREAM_RETRY_BASE_DELAY", 1.0),
            retry_max_delay=_env_float("UPSTREAM_RETRY_MAX_DELAY", 60.0),
            cache_ttl_hours=_env_float("ANALYSIS_CACHE_TTL_HOURS", 24.0),
            cache_max_entries=_env_int("ANALYSIS_CACHE_MAX_ENTRIES", 1000),
            quota_standard_max=_env_int("QUOTA_STANDARD_MAX", 50),
            quota_bulk_max=_env_int("QUOTA_BULK_MAX", 5),
            quota_window_seconds=_env_int("QUOTA_WINDOW_SECONDS", 3600),
            housekeeping_interval_seconds=_env_int("HOUSEKEEPING_INTERVAL_SECONDS", 600),
            bulk_concurrency=_env_int("BULK_CONCURRENCY", 3),
            judgeme_api_token=os.getenv("JUDGEME_API_TOKEN", ""),
            judgeme_api_url=os.getenv("JUDGEME_API_URL", "https://judge.me/api/v1/reviews"),
            review_fetch_timeout_seconds=_env_float("REVIEW_FETCH_TIMEOUT_SECONDS", 10.0),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            tracing_enabled=_resolve_tracing_enabled(
                os.getenv("DISCOVERABILITY_TRACING_ENABLED", ""),
                os.getenv("MLFLOW_TRACKING_URI", ""),
            ),
            mlflow_tracking_uri=os.getenv("MLFLOW_TRACKING_URI", ""),
            mlflow_experiment_name=os.getenv("MLFLOW_EXPERIMENT_NAME", "product-discoverability-mcp"),
        )


# Singleton, initialised lazily on first access.
_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access.

    Loads ``~/.config/product-discoverability-mcp/.env`` before reading env vars.
    Process environment always takes precedence over the config file.
    """
    global _config
    if _config is None:
        import logging

        from .dotenv import load_dotenv

        injected = load_dotenv()
        if injected:
            logger = logging.getLogger(__name__)
            logger.info(
                "Loaded %d var(s) from config: %s",
                len(injected),
                ", ".join(injected.keys()),
            )
        _config = ServerConfig.from_env()
    return _config


def update_config(**overrides: object) -> ServerConfig:
    """Patch the live config (used by the ``infra_configure`` tool)."""
    global _config
    cfg = get_config()
    data = cfg.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    _config = ServerConfig(**data)
    return _config
