from __future__ import annotations

import threading
from typing import Any

from blobdrop.models.record import BlobRecord


class RecordStore:
    """Persistence for blob records with store-side expiry.

    Subclasses implement ``_open`` (build the underlying handle) and the
    record operations. ``connect`` caches the handle for the lifetime of the
    store; concurrent first callers share a single ``_open`` call.
    """

    def __init__(self) -> None:
        self._handle: Any | None = None
        self._connect_lock = threading.Lock()

    def connect(self) -> Any:
        handle = self._handle
        if handle is not None:
            return handle
        with self._connect_lock:
            if self._handle is None:
                self._handle = self._open()
            return self._handle

    def _open(self) -> Any:  # pragma: no cover
        raise NotImplementedError

    def create(self, record: BlobRecord) -> str:  # pragma: no cover
        raise NotImplementedError

    def find_by_id(self, record_id: str) -> BlobRecord | None:  # pragma: no cover
        raise NotImplementedError

    def ping(self) -> None:  # pragma: no cover
        raise NotImplementedError

    def close(self) -> None:
        with self._connect_lock:
            self._handle = None
