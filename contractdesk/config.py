"""
Configuration settings for ContractDesk.

Uses Pydantic Settings to load environment variables for the contracts
database, object storage, the Gemini API, logging, and sampling defaults.
Collaborator clients never read settings themselves: `llm_config()` and
`storage_config()` build explicit config objects that are passed to their
constructors.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("contractdesk", alias="DB_NAME")
    db_statement_timeout_ms: int = Field(30_000, alias="DB_STATEMENT_TIMEOUT_MS")
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(5, alias="DB_POOL_MAX_SIZE")
    db_connect_timeout_seconds: float = Field(10.0, alias="DB_CONNECT_TIMEOUT_SECONDS")

    # Object storage (Supabase storage REST API)
    storage_url: str = Field("http://localhost:54321", alias="STORAGE_URL")
    storage_key: str = Field("", alias="STORAGE_KEY")
    storage_bucket: str = Field("contratos", alias="STORAGE_BUCKET")
    storage_signed_url_expiry: int = Field(3600, alias="STORAGE_SIGNED_URL_EXPIRY")

    # Gemini
    gemini_api_key: str = Field("", alias="GEMINI_API_KEY")
    gemini_model: str = Field("gemini-1.5-flash", alias="GEMINI_MODEL")
    gemini_base_url: str = Field(
        "https://generativelanguage.googleapis.com/v1beta", alias="GEMINI_BASE_URL"
    )
    gemini_timeout_seconds: float = Field(120.0, alias="GEMINI_TIMEOUT_SECONDS")
    gemini_max_retries: int = Field(5, alias="GEMINI_MAX_RETRIES")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    json_logs: bool = Field(False, alias="JSON_LOGS")

    # Sampling / listing defaults
    sample_size: int = Field(10, alias="SAMPLE_SIZE")
    list_limit: int = Field(10, alias="LIST_LIMIT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class LLMConfig(BaseModel):
    """Explicit configuration for the Gemini client."""

    api_key: str
    model: str = "gemini-1.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: float = 120.0
    max_retries: int = 5
    base_delay_seconds: float = 2.0
    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 8192

    model_config = {"frozen": True}


class StorageConfig(BaseModel):
    """Explicit configuration for the storage client."""

    url: str
    service_key: str
    bucket: str = "contratos"
    signed_url_expiry: int = 3600
    timeout_seconds: float = 30.0

    model_config = {"frozen": True}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


def llm_config(settings: Settings | None = None) -> LLMConfig:
    settings = settings or get_settings()
    return LLMConfig(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout_seconds=settings.gemini_timeout_seconds,
        max_retries=settings.gemini_max_retries,
    )


def storage_config(settings: Settings | None = None) -> StorageConfig:
    settings = settings or get_settings()
    return StorageConfig(
        url=settings.storage_url,
        service_key=settings.storage_key,
        bucket=settings.storage_bucket,
        signed_url_expiry=settings.storage_signed_url_expiry,
    )


__all__ = [
    "LLMConfig",
    "Settings",
    "StorageConfig",
    "get_settings",
    "llm_config",
    "storage_config",
]
