from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from blobdrop.core.clock import Clock, utc_now
from blobdrop.core.config import get_settings
from blobdrop.core.errors import BlobDropError, PayloadTooLarge
from blobdrop.core.logging import log_event, request_id_ctx
from blobdrop.core.metrics import observe_http_request
from blobdrop.core.middleware import (
    apply_security_headers,
    build_request_id,
    declared_body_size,
    log_request_completion,
    now_ts,
    route_path,
)
from blobdrop.core.otel import setup_otel
from blobdrop.routers.health import router as health_router
from blobdrop.routers.images import router as images_router
from blobdrop.services.blobs import BlobService
from blobdrop.storage.base import RecordStore
from blobdrop.storage.factory import build_record_store

logger = logging.getLogger("blobdrop.api")

REQUEST_ENVELOPE_BYTES = 1024


def error_response(exc: BlobDropError, *, expose_details: bool) -> JSONResponse:
    content: dict[str, str] = {"error": exc.message, "code": exc.code}
    if expose_details and exc.carries_detail and exc.detail:
        content["detail"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=content)


def create_app(*, store: RecordStore | None = None, clock: Clock = utc_now) -> FastAPI:
    settings = get_settings()
    record_store = store if store is not None else build_record_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            if app.state.otel_shutdown is not None:
                app.state.otel_shutdown()
            record_store.close()

    app = FastAPI(title="blobdrop", version=settings.VERSION, lifespan=lifespan)
    app.state.blob_service = BlobService(
        record_store,
        clock=clock,
        max_payload_bytes=settings.MAX_PAYLOAD_BYTES,
    )

    # Room for the JSON envelope around a payload that is exactly at the limit.
    max_request_bytes = settings.MAX_PAYLOAD_BYTES + REQUEST_ENVELOPE_BYTES

    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_context(request, call_next):  # type: ignore[no-untyped-def]
        request_id = build_request_id(request, header_name=settings.REQUEST_ID_HEADER)
        token = request_id_ctx.set(request_id)
        start_ts = now_ts()
        status_code = 500

        try:
            body_size = declared_body_size(request)
            if body_size is not None and body_size > max_request_bytes:
                exc = PayloadTooLarge(
                    f"request body is {body_size} bytes, limit {max_request_bytes}"
                )
                response = error_response(exc, expose_details=settings.EXPOSE_ERROR_DETAILS)
            else:
                response = await call_next(request)
            status_code = response.status_code
            response.headers[settings.REQUEST_ID_HEADER] = request_id
            apply_security_headers(response)
            return response
        finally:
            duration_ms = int((now_ts() - start_ts) * 1000)
            path = route_path(request)
            log_request_completion(
                method=request.method,
                path=path,
                status_code=status_code,
                duration_ms=duration_ms,
            )
            if settings.ENABLE_PROMETHEUS_METRICS:
                observe_http_request(
                    method=request.method,
                    path=path,
                    status_code=status_code,
                    duration_ms=duration_ms,
                )
            request_id_ctx.reset(token)

    @app.exception_handler(BlobDropError)
    async def blob_error_handler(request: Request, exc: BlobDropError) -> JSONResponse:
        level = logging.ERROR if exc.status_code >= 500 else logging.INFO
        log_event(
            logger,
            "blob.error",
            level=level,
            code=exc.code,
            status_code=exc.status_code,
            detail=exc.detail,
            path=request.url.path,
        )
        return error_response(exc, expose_details=settings.EXPOSE_ERROR_DETAILS)

    if settings.ENABLE_PROMETHEUS_METRICS:

        @app.get(settings.PROMETHEUS_METRICS_PATH, include_in_schema=False)
        def metrics() -> Response:
            return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(health_router)
    app.include_router(images_router)

    otel = setup_otel(app=app, settings=settings)
    app.state.otel_tracing_enabled = otel.enabled
    app.state.otel_tracing_reason = otel.reason
    app.state.otel_shutdown = otel.shutdown
    return app


app = create_app()
