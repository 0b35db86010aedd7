from __future__ import annotations

import sys
from pathlib import Path

import pytest
import redis

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from alfama.application.ports.snapshots import ORDERS_SNAPSHOT_KEY, PersistenceError
from alfama.infrastructure.snapshots.factory import build_snapshot_store
from alfama.infrastructure.snapshots.file_store import FileSnapshotStore
from alfama.infrastructure.snapshots.memory_store import InMemorySnapshotStore
from alfama.infrastructure.snapshots.redis_store import RedisSnapshotStore


class FakeRedis:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, name: str, value: str) -> bool:
        self.values[name] = value
        return True

    def ping(self) -> bool:
        return True


class UnreachableRedis:
    def get(self, key: str) -> str | None:
        raise redis.ConnectionError("connection refused")

    def set(self, name: str, value: str) -> bool:
        raise redis.ConnectionError("connection refused")

    def ping(self) -> bool:
        raise redis.ConnectionError("connection refused")


def test_file_store_saves_and_loads_per_key(tmp_path: Path) -> None:
    store = FileSnapshotStore(tmp_path / "snapshots")

    assert store.load(ORDERS_SNAPSHOT_KEY) is None
    store.save(ORDERS_SNAPSHOT_KEY, '[{"id":"ord_1"}]')
    store.save(ORDERS_SNAPSHOT_KEY, "[]")

    assert store.load(ORDERS_SNAPSHOT_KEY) == "[]"
    assert store.path_for(ORDERS_SNAPSHOT_KEY).name == "alfama-orders.json"
    assert [path.name for path in (tmp_path / "snapshots").iterdir()] == ["alfama-orders.json"]
    assert store.ping()


def test_file_store_wraps_os_errors(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")
    store = FileSnapshotStore(blocker)

    with pytest.raises(PersistenceError):
        store.save(ORDERS_SNAPSHOT_KEY, "[]")
    assert not store.ping()


def test_memory_store_keeps_payloads() -> None:
    store = InMemorySnapshotStore({"alfama:orders": "[]"})

    store.save("alfama:reservations", "[]")

    assert store.load("alfama:orders") == "[]"
    assert store.load("alfama:reservations") == "[]"
    assert store.load("alfama:unknown") is None


def test_redis_store_reads_and_writes_through_client() -> None:
    client = FakeRedis()
    store = RedisSnapshotStore(client=client)  # type: ignore[arg-type]

    store.save(ORDERS_SNAPSHOT_KEY, "[]")

    assert client.values == {ORDERS_SNAPSHOT_KEY: "[]"}
    assert store.load(ORDERS_SNAPSHOT_KEY) == "[]"
    assert store.ping()


def test_redis_store_translates_connection_errors() -> None:
    store = RedisSnapshotStore(client=UnreachableRedis())  # type: ignore[arg-type]

    with pytest.raises(PersistenceError):
        store.load(ORDERS_SNAPSHOT_KEY)
    with pytest.raises(PersistenceError):
        store.save(ORDERS_SNAPSHOT_KEY, "[]")
    assert not store.ping()


def test_factory_selects_backend_from_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ALFAMA_SNAPSHOT_BACKEND", "memory")
    assert isinstance(build_snapshot_store(), InMemorySnapshotStore)

    monkeypatch.setenv("ALFAMA_SNAPSHOT_BACKEND", "file")
    monkeypatch.setenv("ALFAMA_SNAPSHOT_DIR", str(tmp_path))
    assert isinstance(build_snapshot_store(), FileSnapshotStore)

    monkeypatch.setenv("ALFAMA_SNAPSHOT_BACKEND", "redis")
    assert isinstance(build_snapshot_store(), RedisSnapshotStore)

    monkeypatch.setenv("ALFAMA_SNAPSHOT_BACKEND", "sqlite")
    with pytest.raises(RuntimeError):
        build_snapshot_store()
