"""Failure taxonomy shared by the store adapters, the blob service and the API.

Every error carries the HTTP status it maps to, a stable machine-readable
``code`` and a short message that is safe to show to clients. ``detail`` is
diagnostic text; the API only returns it when ``EXPOSE_ERROR_DETAILS`` is on.
"""

from __future__ import annotations


class BlobDropError(RuntimeError):
    status_code: int = 500
    code: str = "internal_error"
    message: str = "Internal error"
    # Whether ``detail`` may be sent to clients in verbose mode.
    carries_detail: bool = True

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)
        self.detail = detail


class MissingPayload(BlobDropError):
    status_code = 400
    code = "missing_payload"
    message = "No image provided"
    carries_detail = False


class InvalidFormat(BlobDropError):
    status_code = 400
    code = "invalid_format"
    message = "Invalid image format. Must be a base64 string starting with data:image"
    carries_detail = False


class InvalidRecord(BlobDropError):
    status_code = 400
    code = "invalid_record"
    message = "Validation error"


class PayloadTooLarge(BlobDropError):
    status_code = 413
    code = "payload_too_large"
    message = "Image payload too large"
    carries_detail = False


class NotFound(BlobDropError):
    status_code = 404
    code = "not_found"
    message = "Image not found"
    carries_detail = False


class CorruptPayload(BlobDropError):
    status_code = 500
    code = "corrupt_payload"
    message = "Error decoding stored image"


class StoreUnavailable(BlobDropError):
    status_code = 503
    code = "store_unavailable"
    message = "Database unavailable"
