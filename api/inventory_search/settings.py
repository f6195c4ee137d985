# inventory_search/settings.py
"""
Inventory Search Settings - PostgreSQL source + Elasticsearch index.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices

class Settings(BaseSettings):
    # =========================================================================
    # PostgreSQL Database (source of truth, read-only from here)
    # =========================================================================
    DB_HOST: str = Field(default="localhost", validation_alias="DB_HOST")
    DB_PORT: int = Field(default=5432, validation_alias="DB_PORT")
    DB_NAME: str = Field(default="inventory", validation_alias="DB_NAME")
    DB_USER: str = Field(default="postgres", validation_alias="DB_USER")
    DB_PASSWORD: str = Field(default="postgres", validation_alias="DB_PASSWORD")

    # Connection pool settings
    DB_POOL_SIZE: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    DB_MAX_OVERFLOW: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")
    DB_ECHO: bool = Field(default=False, validation_alias="DB_ECHO")

    # Full URL override (sqlite+aiosqlite:// for local runs and tests)
    DB_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DB_URL", "DATABASE_URL"),
    )

    # =========================================================================
    # Elasticsearch (derived, disposable index)
    # =========================================================================
    ELASTICSEARCH_URL: str = Field(default="http://localhost:9200", validation_alias="ELASTICSEARCH_URL")
    ELASTICSEARCH_INDEX: str = Field(default="inventory_items", validation_alias="ELASTICSEARCH_INDEX")
    ELASTICSEARCH_USERNAME: Optional[str] = Field(default=None, validation_alias="ELASTICSEARCH_USERNAME")
    ELASTICSEARCH_PASSWORD: Optional[str] = Field(default=None, validation_alias="ELASTICSEARCH_PASSWORD")
    ELASTICSEARCH_TIMEOUT: float = Field(default=10.0, validation_alias="ELASTICSEARCH_TIMEOUT")
    ELASTICSEARCH_VERIFY_CERTS: bool = Field(default=True, validation_alias="ELASTICSEARCH_VERIFY_CERTS")

    # =========================================================================
    # Search / Sync tuning
    # =========================================================================
    SEARCH_PAGE_SIZE: int = Field(default=10, ge=1)
    SEARCH_MAX_PAGE_SIZE: int = Field(default=100, ge=1)
    SEARCH_FACET_SIZE: int = Field(default=20, ge=1)
    BULK_CHUNK_SIZE: int = Field(default=500, ge=1)
    BULK_ERROR_SAMPLES: int = Field(default=3, ge=0)
    CASCADE_CONCURRENCY: int = Field(
        default=1,
        ge=1,
        description="Items reindexed in parallel during a relation cascade (1 = sequential)",
    )

    # =========================================================================
    # Logging
    # =========================================================================
    LOG_DIR: Path = Field(
        default=(Path(__file__).resolve().parents[2] / "logs"),
        validation_alias=AliasChoices("LOG_DIR", "INVENTORY_SEARCH_LOG_DIR"),
    )
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

settings = Settings()
