from __future__ import annotations

from typing import Protocol

ORDERS_SNAPSHOT_KEY = "alfama:orders"
RESERVATIONS_SNAPSHOT_KEY = "alfama:reservations"


class SnapshotStore(Protocol):
    def load(self, key: str) -> str | None: ...

    def save(self, key: str, payload: str) -> None: ...

    def ping(self) -> bool: ...


class PersistenceError(Exception):
    pass
