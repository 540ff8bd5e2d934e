from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("ENABLE_OTEL_TRACING", "false")

from blobdrop.core.config import get_settings  # noqa: E402
from blobdrop.main import create_app  # noqa: E402
from blobdrop.services.blobs import BlobService  # noqa: E402
from blobdrop.storage.memory import InMemoryRecordStore  # noqa: E402

PNG_PAYLOAD = "data:image/png;base64,iVBORw0KGgo="
PNG_BYTES = b"\x89PNG\r\n\x1a\n"


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 15, 0, 0, tzinfo=UTC))


@pytest.fixture()
def store(clock: FakeClock) -> InMemoryRecordStore:
    return InMemoryRecordStore(clock=clock)


@pytest.fixture()
def service(store: InMemoryRecordStore, clock: FakeClock) -> BlobService:
    return BlobService(store, clock=clock)


@pytest.fixture()
def client(store: InMemoryRecordStore, clock: FakeClock) -> TestClient:
    app = create_app(store=store, clock=clock)
    return TestClient(app)
