from __future__ import annotations

import json
import math
from datetime import UTC, datetime

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from blobdrop.core.errors import CorruptPayload, StoreUnavailable
from blobdrop.models.record import BlobRecord
from blobdrop.storage import redis_store
from blobdrop.storage.redis_store import RedisConfig, RedisRecordStore

CREATED = datetime(2026, 10, 19, 15, 0, 0, tzinfo=UTC)


class FakeRedis:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.set_calls: list[dict] = []
        self.get_calls: list[str] = []
        self.fail: Exception | None = None
        self.closed = False

    def ping(self) -> bool:
        if self.fail is not None:
            raise self.fail
        return True

    def set(self, name: str, value: str, *, nx: bool = False, exat: int | None = None):
        self.set_calls.append({"name": name, "value": value, "nx": nx, "exat": exat})
        if self.fail is not None:
            raise self.fail
        if nx and name in self.data:
            return None
        self.data[name] = value
        return True

    def get(self, name: str) -> str | None:
        self.get_calls.append(name)
        if self.fail is not None:
            raise self.fail
        return self.data.get(name)

    def close(self) -> None:
        self.closed = True


def _record() -> BlobRecord:
    return BlobRecord(
        payload="data:image/png;base64,iVBORw0KGgo=",
        content_type="image/png",
        created_at=CREATED,
    )


def _store(fake: FakeRedis, **config) -> RedisRecordStore:
    return RedisRecordStore(
        RedisConfig(url="redis://localhost:6379/0", **config),
        client_factory=lambda: fake,
    )


def test_create_sets_key_with_nx_and_absolute_deadline() -> None:
    fake = FakeRedis()
    store = _store(fake, key_prefix="img:")
    rec = _record()

    record_id = store.create(rec)

    (call,) = fake.set_calls
    assert call["name"] == f"img:{record_id}"
    assert call["nx"] is True
    assert call["exat"] == math.ceil(rec.expires_at.timestamp())
    stored = json.loads(call["value"])
    assert "id" not in stored
    assert stored["payload"] == rec.payload
    assert stored["content_type"] == "image/png"


def test_find_by_id_round_trips_record() -> None:
    fake = FakeRedis()
    store = _store(fake)
    record_id = store.create(_record())

    found = store.find_by_id(record_id)

    assert found is not None
    assert found.id == record_id
    assert found.created_at == CREATED
    assert found.expires_at == _record().expires_at


def test_find_by_id_returns_none_for_unknown_or_malformed_ids() -> None:
    fake = FakeRedis()
    store = _store(fake)

    assert store.find_by_id("0" * 24) is None
    assert store.find_by_id("../../etc/passwd") is None
    assert fake.get_calls == ["blob:" + "0" * 24]


def test_create_retries_on_id_collision(monkeypatch) -> None:
    fake = FakeRedis()
    fake.data["blob:" + "a" * 24] = "taken"
    ids = iter(["a" * 24, "b" * 24])
    monkeypatch.setattr(redis_store, "new_record_id", lambda: next(ids))
    store = _store(fake)

    assert store.create(_record()) == "b" * 24
    assert fake.data["blob:" + "a" * 24] == "taken"
    assert len(fake.set_calls) == 2


def test_create_gives_up_after_repeated_collisions(monkeypatch) -> None:
    fake = FakeRedis()
    fake.data["blob:" + "a" * 24] = "taken"
    monkeypatch.setattr(redis_store, "new_record_id", lambda: "a" * 24)
    store = _store(fake)

    with pytest.raises(StoreUnavailable):
        store.create(_record())
    assert fake.data["blob:" + "a" * 24] == "taken"


def test_connection_failure_is_store_unavailable_and_not_cached() -> None:
    fake = FakeRedis()
    fake.fail = RedisConnectionError("connection refused")
    store = _store(fake)

    with pytest.raises(StoreUnavailable):
        store.create(_record())

    fake.fail = None
    assert store.connect() is fake


def test_command_errors_are_wrapped() -> None:
    fake = FakeRedis()
    store = _store(fake)
    store.connect()
    fake.fail = RedisTimeoutError("timed out")

    with pytest.raises(StoreUnavailable):
        store.create(_record())
    with pytest.raises(StoreUnavailable):
        store.find_by_id("0" * 24)
    with pytest.raises(StoreUnavailable):
        store.ping()


def test_unreadable_stored_record_is_corrupt() -> None:
    fake = FakeRedis()
    fake.data["blob:" + "c" * 24] = '{"payload": ""}'
    store = _store(fake)

    with pytest.raises(CorruptPayload):
        store.find_by_id("c" * 24)


def test_close_closes_client() -> None:
    fake = FakeRedis()
    store = _store(fake)
    store.connect()

    store.close()

    assert fake.closed is True


def test_non_utf8_value_is_corrupt() -> None:
    fake = FakeRedis()
    store = _store(fake)
    store.connect()

    def _get(name: str) -> str:
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

    fake.get = _get  # type: ignore[method-assign]
    with pytest.raises(CorruptPayload):
        store.find_by_id("d" * 24)
