"""Centralized configuration for posting-index using Pydantic Settings."""

import logging
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``POSTING_INDEX_*`` variables.

    Only the outer layers (store factory, demo driver, logging setup) read
    settings; ``InvertedIndex`` itself takes explicit arguments.
    """

    model_config = SettingsConfigDict(
        env_prefix="POSTING_INDEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Storage
    store_backend: Literal["memory", "sqlite"] = Field(
        default="memory", description="Backing store for posting blobs: memory (dict) or sqlite"
    )
    sqlite_path: str = Field(
        default=":memory:", description="SQLite database path when store_backend is sqlite (':memory:' allowed)"
    )

    # Index behaviour
    verify_invariants: bool = Field(
        default=False,
        description="Check that every decoded posting list is non-empty and strictly ascending",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    json_logs: bool = Field(default=False, description="Emit structured JSON logs")

    # Tracing
    tracing_enabled: bool = Field(default=False, description="Install an OpenTelemetry tracer provider")
    service_name: str = Field(default="posting-index", description="Service name reported on traces")
    trace_exporter: Literal["console", "otlp"] = Field(
        default="console", description="Where finished spans go: console (stderr) or otlp (HTTP collector)"
    )
    otlp_endpoint: str | None = Field(
        default=None, description="OTLP/HTTP traces endpoint; the exporter default applies when unset"
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"Unknown log level: {value!r}")
        return normalized.lower()

    @model_validator(mode="after")
    def _check_sqlite_path(self) -> "Settings":
        if self.store_backend == "sqlite" and not self.sqlite_path.strip():
            raise ValueError("POSTING_INDEX_SQLITE_PATH must be set when POSTING_INDEX_STORE_BACKEND is sqlite")
        return self

    def uses_sqlite(self) -> bool:
        return self.store_backend == "sqlite"
