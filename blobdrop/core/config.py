from __future__ import annotations

from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

STORE_BACKENDS = frozenset({"redis", "memory"})


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    VERSION: str = "0.1.0"
    APP_ENV: str = "dev"  # dev|test|prod
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    STORE_BACKEND: str = "redis"  # "redis" or "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_KEY_PREFIX: str = "blob:"
    REDIS_SOCKET_TIMEOUT_SECONDS: float = 5.0

    # Empty means the retrieval URL is built from the incoming request.
    PUBLIC_BASE_URL: str = ""
    DISPLAY_TIMEZONE: str = "America/Sao_Paulo"

    MAX_PAYLOAD_BYTES: int = 50 * 1024 * 1024
    STRICT_BODY_VALIDATION: bool = False
    EXPOSE_ERROR_DETAILS: bool = False

    CORS_ORIGINS: str = "*"
    REQUEST_ID_HEADER: str = "x-request-id"
    ENABLE_PROMETHEUS_METRICS: bool = True
    PROMETHEUS_METRICS_PATH: str = "/metrics"
    ENABLE_OTEL_TRACING: bool = False
    OTEL_SERVICE_NAME: str = "blobdrop"
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT: str = "http://localhost:4318/v1/traces"
    OTEL_EXPORTER_OTLP_HEADERS: str = ""
    OTEL_TRACE_SAMPLE_RATIO: float = 1.0
    OTEL_EXCLUDED_URLS: str = "/healthz,/readyz,/metrics"

    @field_validator("STORE_BACKEND")
    @classmethod
    def _validate_store_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in STORE_BACKENDS:
            raise ValueError(f"STORE_BACKEND must be one of {sorted(STORE_BACKENDS)}")
        return v

    @field_validator("DISPLAY_TIMEZONE")
    @classmethod
    def _validate_display_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown DISPLAY_TIMEZONE: {v}") from e
        return v

    @field_validator("MAX_PAYLOAD_BYTES")
    @classmethod
    def _validate_max_payload(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("MAX_PAYLOAD_BYTES must be positive")
        return v

    @field_validator("OTEL_TRACE_SAMPLE_RATIO")
    @classmethod
    def _validate_otel_sample_ratio(cls, v: float) -> float:
        if v < 0 or v > 1:
            raise ValueError("OTEL_TRACE_SAMPLE_RATIO must be between 0 and 1")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
