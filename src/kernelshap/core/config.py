"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # KernelSHAP defaults
    shap_link: Literal["identity", "logit"] = "identity"
    shap_n_samples: int | None = None
    shap_batch_size: int | None = None
    shap_max_concurrency: int = 4
    shap_seed: int | None = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("shap_n_samples", "shap_batch_size")
    @classmethod
    def validate_positive(cls, v: int | None) -> int | None:
        """Sample budget and batch size must be positive when set."""
        if v is not None and v < 1:
            raise ValueError("must be at least 1 when set")
        return v

    @field_validator("shap_max_concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """At least one instance must be processed at a time."""
        if v < 1:
            raise ValueError("SHAP_MAX_CONCURRENCY must be at least 1")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
