from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

import redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from blobdrop.core.errors import CorruptPayload, StoreUnavailable
from blobdrop.core.logging import log_event
from blobdrop.core.tokens import is_record_id, new_record_id
from blobdrop.models.record import BlobRecord
from blobdrop.storage.base import RecordStore

logger = logging.getLogger("blobdrop.store")

# An NX collision on 96 random bits means something is badly wrong; stop early.
_MAX_ID_ATTEMPTS = 5


@dataclass(frozen=True)
class RedisConfig:
    url: str
    key_prefix: str = "blob:"
    socket_timeout_seconds: float = 5.0


class RedisRecordStore(RecordStore):
    """Records as JSON strings under ``<prefix><id>``.

    Each key is written with ``EXAT`` set to the record's absolute deadline, so
    Redis reclaims it on its own schedule even if the API is down.
    """

    def __init__(
        self,
        config: RedisConfig,
        *,
        client_factory: Callable[[], redis.Redis] | None = None,
    ) -> None:
        super().__init__()
        self._config = config
        self._client_factory = client_factory or self._default_client

    def _default_client(self) -> redis.Redis:
        return redis.Redis.from_url(
            self._config.url,
            socket_timeout=self._config.socket_timeout_seconds,
            socket_connect_timeout=self._config.socket_timeout_seconds,
            decode_responses=True,
        )

    def _key(self, record_id: str) -> str:
        return f"{self._config.key_prefix}{record_id}"

    def _open(self) -> redis.Redis:
        try:
            client = self._client_factory()
            client.ping()
        except (RedisError, ValueError) as e:
            log_event(logger, "store.connect_failed", level=logging.ERROR, error=str(e))
            raise StoreUnavailable(str(e)) from e
        log_event(logger, "store.connected", backend="redis")
        return client

    def create(self, record: BlobRecord) -> str:
        client = self.connect()
        body = record.model_dump_json(exclude={"id"})
        # Round up so the store never drops a key before its logical deadline.
        deadline = math.ceil(record.expires_at.timestamp())

        for _ in range(_MAX_ID_ATTEMPTS):
            record_id = new_record_id()
            try:
                stored = client.set(self._key(record_id), body, nx=True, exat=deadline)
            except RedisError as e:
                raise StoreUnavailable(str(e)) from e
            if stored:
                return record_id
            log_event(logger, "store.id_collision", level=logging.WARNING, record_id=record_id)

        raise StoreUnavailable(f"could not allocate a unique id after {_MAX_ID_ATTEMPTS} attempts")

    def find_by_id(self, record_id: str) -> BlobRecord | None:
        if not is_record_id(record_id):
            return None
        client = self.connect()
        try:
            raw = client.get(self._key(record_id))
        except RedisError as e:
            raise StoreUnavailable(str(e)) from e
        except UnicodeDecodeError as e:
            raise CorruptPayload(f"stored record {record_id} is not UTF-8: {e}") from e
        if raw is None:
            return None
        try:
            return BlobRecord.model_validate_json(raw).with_id(record_id)
        except ValidationError as e:
            raise CorruptPayload(f"stored record {record_id} is unreadable: {e}") from e

    def ping(self) -> None:
        client = self.connect()
        try:
            client.ping()
        except RedisError as e:
            raise StoreUnavailable(str(e)) from e

    def close(self) -> None:
        with self._connect_lock:
            client, self._handle = self._handle, None
        if client is not None:
            try:
                client.close()
            except RedisError as e:
                log_event(logger, "store.close_failed", level=logging.WARNING, error=str(e))
