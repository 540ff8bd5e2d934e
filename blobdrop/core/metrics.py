from __future__ import annotations

from prometheus_client import Counter, Histogram

_HTTP_REQUESTS_TOTAL = Counter(
    "blobdrop_http_requests_total",
    "Total HTTP requests handled by the API.",
    labelnames=("method", "path", "status_code"),
)
_HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "blobdrop_http_request_duration_seconds",
    "HTTP request duration in seconds.",
    labelnames=("method", "path"),
)
_BLOBS_STORED_TOTAL = Counter(
    "blobdrop_blobs_stored_total",
    "Total blobs persisted.",
    labelnames=("content_type",),
)
_BLOB_LOOKUPS_TOTAL = Counter(
    "blobdrop_blob_lookups_total",
    "Blob retrievals by outcome.",
    labelnames=("outcome",),
)


def observe_http_request(
    *,
    method: str,
    path: str,
    status_code: int,
    duration_ms: int,
) -> None:
    safe_path = path or "unknown"
    safe_method = method or "UNKNOWN"

    _HTTP_REQUESTS_TOTAL.labels(
        method=safe_method,
        path=safe_path,
        status_code=str(status_code),
    ).inc()
    _HTTP_REQUEST_DURATION_SECONDS.labels(method=safe_method, path=safe_path).observe(
        max(0.0, duration_ms / 1000.0)
    )


_CONTENT_TYPE_LABELS = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
}


def content_type_label(content_type: str) -> str:
    # Content types come from clients; anything unlisted collapses to "other".
    return _CONTENT_TYPE_LABELS.get(content_type.strip().lower(), "other")


def observe_blob_stored(*, content_type: str) -> None:
    _BLOBS_STORED_TOTAL.labels(content_type=content_type_label(content_type)).inc()


def observe_blob_lookup(*, outcome: str) -> None:
    # outcome: hit|miss|expired|corrupt
    _BLOB_LOOKUPS_TOTAL.labels(outcome=outcome).inc()
