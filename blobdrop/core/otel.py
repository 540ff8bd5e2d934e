from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from threading import Lock
from typing import Any
from urllib.parse import unquote

from fastapi import FastAPI

from blobdrop.core.config import Settings

logger = logging.getLogger("blobdrop.api")


@dataclass(frozen=True)
class OTelSetupResult:
    enabled: bool
    reason: str
    shutdown: Callable[[], None] | None = None


_TRACER_PROVIDER: Any | None = None
_TRACER_PROVIDER_LOCK = Lock()
_REDIS_INSTRUMENTED = False


def setup_otel(*, app: FastAPI, settings: Settings) -> OTelSetupResult:
    if not settings.ENABLE_OTEL_TRACING:
        return OTelSetupResult(enabled=False, reason="disabled")

    endpoint = settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT.strip()
    if not endpoint:
        logger.warning(
            "OpenTelemetry tracing is enabled but OTEL_EXPORTER_OTLP_TRACES_ENDPOINT is empty."
        )
        return OTelSetupResult(enabled=False, reason="missing_endpoint")

    try:
        from opentelemetry import trace
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
        from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
    except ImportError as exc:
        logger.warning("OpenTelemetry tracing setup skipped: %s", exc)
        return OTelSetupResult(enabled=False, reason="dependency_missing")

    global _TRACER_PROVIDER
    with _TRACER_PROVIDER_LOCK:
        if _TRACER_PROVIDER is None:
            resource = Resource.create(
                {
                    SERVICE_NAME: settings.OTEL_SERVICE_NAME,
                    SERVICE_VERSION: settings.VERSION,
                }
            )
            provider = TracerProvider(
                resource=resource,
                sampler=TraceIdRatioBased(settings.OTEL_TRACE_SAMPLE_RATIO),
            )
            exporter_kwargs: dict[str, Any] = {"endpoint": endpoint}
            otlp_headers = parse_otlp_headers(settings.OTEL_EXPORTER_OTLP_HEADERS)
            if otlp_headers:
                exporter_kwargs["headers"] = otlp_headers
            provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**exporter_kwargs)))
            trace.set_tracer_provider(provider)
            _TRACER_PROVIDER = provider
        provider = _TRACER_PROVIDER

    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=provider,
        excluded_urls=settings.OTEL_EXCLUDED_URLS,
    )
    if settings.STORE_BACKEND == "redis":
        _instrument_redis(provider)

    logger.info(
        "OpenTelemetry tracing enabled for service=%s endpoint=%s",
        settings.OTEL_SERVICE_NAME,
        endpoint,
    )

    def _shutdown() -> None:
        with suppress(Exception):
            FastAPIInstrumentor.uninstrument_app(app)

    return OTelSetupResult(enabled=True, reason="enabled", shutdown=_shutdown)


def _instrument_redis(provider: Any) -> None:
    global _REDIS_INSTRUMENTED
    if _REDIS_INSTRUMENTED:
        return
    try:
        from opentelemetry.instrumentation.redis import RedisInstrumentor
    except ImportError:
        logger.info("opentelemetry-instrumentation-redis not installed; store spans disabled")
        return
    RedisInstrumentor().instrument(tracer_provider=provider)
    _REDIS_INSTRUMENTED = True


def parse_otlp_headers(raw_headers: str) -> dict[str, str]:
    """Parse ``OTEL_EXPORTER_OTLP_HEADERS`` (``k1=v1,k2=v2``, values percent-encoded)."""
    out: dict[str, str] = {}
    for piece in filter(None, (p.strip() for p in raw_headers.split(","))):
        key, sep, value = piece.partition("=")
        key, value = key.strip(), unquote(value.strip())
        if not sep or not key or not value:
            logger.warning("Ignoring malformed OTLP header token: %s", piece)
            continue
        out[key] = value
    return out
