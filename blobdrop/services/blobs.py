from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from pydantic import ValidationError

from blobdrop.core.clock import Clock, utc_now
from blobdrop.core.errors import (
    BlobDropError,
    CorruptPayload,
    InvalidFormat,
    InvalidRecord,
    MissingPayload,
    NotFound,
    PayloadTooLarge,
    StoreUnavailable,
)
from blobdrop.core.logging import log_event
from blobdrop.core.metrics import observe_blob_lookup, observe_blob_stored
from blobdrop.models.record import RECORD_TTL_SECONDS, BlobRecord
from blobdrop.services import encoding
from blobdrop.storage.base import RecordStore

logger = logging.getLogger("blobdrop.api")

DEFAULT_MAX_PAYLOAD_BYTES = 50 * 1024 * 1024

T = TypeVar("T")


@dataclass(frozen=True)
class SubmitResult:
    id: str
    content_type: str
    created_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class RetrieveResult:
    data: bytes
    content_type: str
    max_age: int


class BlobService:
    """Admission and retrieval of blobs on top of a ``RecordStore``.

    Failures surface as ``BlobDropError`` subclasses; the API renders them.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        clock: Clock = utc_now,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
    ) -> None:
        self.store = store
        self._clock = clock
        self._max_payload_bytes = max_payload_bytes

    def submit(
        self,
        raw: str | None,
        *,
        validate_strictly: bool,
        content_type: str | None = None,
    ) -> SubmitResult:
        if not raw:
            raise MissingPayload()
        size = len(raw.encode("utf-8", "surrogatepass"))
        if size > self._max_payload_bytes:
            raise PayloadTooLarge(f"payload is {size} bytes, limit {self._max_payload_bytes}")
        if validate_strictly and not encoding.validate(raw):
            log_event(logger, "blob.rejected", reason="invalid_format")
            raise InvalidFormat()

        if content_type is None:
            content_type = encoding.extract_content_type(raw)

        try:
            record = BlobRecord(payload=raw, content_type=content_type, created_at=self._clock())
        except ValidationError as e:
            raise InvalidRecord(str(e)) from e

        record_id = self._from_store(self.store.create, record)
        observe_blob_stored(content_type=record.content_type)
        log_event(
            logger,
            "blob.stored",
            record_id=record_id,
            content_type=record.content_type,
            payload_bytes=size,
        )
        return SubmitResult(
            id=record_id,
            content_type=record.content_type,
            created_at=record.created_at,
            expires_at=record.expires_at,
        )

    def retrieve(self, record_id: str) -> RetrieveResult:
        try:
            record = self._from_store(self.store.find_by_id, record_id)
            if record is None:
                observe_blob_lookup(outcome="miss")
                log_event(logger, "blob.miss", record_id=record_id)
                raise NotFound()
            # The store's own TTL sweep may lag behind the deadline.
            if record.is_expired(self._clock()):
                observe_blob_lookup(outcome="expired")
                log_event(logger, "blob.expired", record_id=record_id)
                raise NotFound()
            data = encoding.decode_payload(record.payload)
        except CorruptPayload as e:
            observe_blob_lookup(outcome="corrupt")
            log_event(
                logger, "blob.corrupt", level=logging.ERROR, record_id=record_id, detail=e.detail
            )
            raise

        observe_blob_lookup(outcome="hit")
        return RetrieveResult(
            data=data,
            content_type=record.content_type,
            max_age=RECORD_TTL_SECONDS,
        )

    def ping(self) -> None:
        self._from_store(self.store.ping)

    def now(self) -> datetime:
        return self._clock()

    def _from_store(self, operation: Callable[..., T], *args: Any) -> T:
        # Adapters map their library errors; anything else still reaches
        # clients as a structured store failure.
        try:
            return operation(*args)
        except BlobDropError:
            raise
        except Exception as e:
            log_event(
                logger,
                "store.unexpected_error",
                level=logging.ERROR,
                operation=getattr(operation, "__name__", "unknown"),
                error=repr(e),
            )
            raise StoreUnavailable(f"{type(e).__name__}: {e}") from e
