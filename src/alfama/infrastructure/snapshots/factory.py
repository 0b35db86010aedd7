from __future__ import annotations

import os

from alfama.application.ports.snapshots import SnapshotStore
from alfama.infrastructure.snapshots.file_store import FileSnapshotStore
from alfama.infrastructure.snapshots.memory_store import InMemorySnapshotStore
from alfama.infrastructure.snapshots.redis_store import RedisSnapshotStore

DEFAULT_SNAPSHOT_DIR = "data/snapshots"


def build_snapshot_store() -> SnapshotStore:
    backend = os.getenv("ALFAMA_SNAPSHOT_BACKEND", "file").lower()
    if backend == "file":
        return FileSnapshotStore(os.getenv("ALFAMA_SNAPSHOT_DIR", DEFAULT_SNAPSHOT_DIR))
    if backend == "redis":
        return RedisSnapshotStore()
    if backend == "memory":
        return InMemorySnapshotStore()
    raise RuntimeError(f"unsupported ALFAMA_SNAPSHOT_BACKEND: {backend}")
