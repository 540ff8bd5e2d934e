from __future__ import annotations

from blobdrop.core.config import Settings, get_settings
from blobdrop.storage.base import RecordStore
from blobdrop.storage.memory import InMemoryRecordStore
from blobdrop.storage.redis_store import RedisConfig, RedisRecordStore


def build_record_store(settings: Settings | None = None) -> RecordStore:
    settings = settings or get_settings()
    if settings.STORE_BACKEND == "memory":
        return InMemoryRecordStore()
    if settings.STORE_BACKEND == "redis":
        return RedisRecordStore(
            RedisConfig(
                url=settings.REDIS_URL,
                key_prefix=settings.REDIS_KEY_PREFIX,
                socket_timeout_seconds=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
            )
        )
    raise ValueError(f"Unsupported STORE_BACKEND: {settings.STORE_BACKEND}")
