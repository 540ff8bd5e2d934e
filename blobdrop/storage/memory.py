from __future__ import annotations

import logging
import threading

from blobdrop.core.clock import Clock, utc_now
from blobdrop.core.logging import log_event
from blobdrop.core.tokens import new_record_id
from blobdrop.models.record import BlobRecord
from blobdrop.storage.base import RecordStore

logger = logging.getLogger("blobdrop.store")


class InMemoryRecordStore(RecordStore):
    """Process-local store. Expired records are swept on every write."""

    def __init__(self, *, clock: Clock = utc_now) -> None:
        super().__init__()
        self._clock = clock
        self._lock = threading.Lock()

    def _open(self) -> dict[str, BlobRecord]:
        log_event(logger, "store.connected", backend="memory")
        return {}

    def create(self, record: BlobRecord) -> str:
        records = self.connect()
        with self._lock:
            self._sweep(records)
            record_id = new_record_id()
            while record_id in records:
                record_id = new_record_id()
            records[record_id] = record.with_id(record_id)
        return record_id

    def find_by_id(self, record_id: str) -> BlobRecord | None:
        records = self.connect()
        with self._lock:
            return records.get(record_id)

    def ping(self) -> None:
        self.connect()

    def purge_expired(self) -> int:
        records = self.connect()
        with self._lock:
            return self._sweep(records)

    def __len__(self) -> int:
        records = self.connect()
        with self._lock:
            return len(records)

    def _sweep(self, records: dict[str, BlobRecord]) -> int:
        now = self._clock()
        expired = [key for key, rec in records.items() if rec.is_expired(now)]
        for key in expired:
            del records[key]
        if expired:
            log_event(logger, "store.reclaimed", backend="memory", count=len(expired))
        return len(expired)
