from __future__ import annotations

from alfama.application.ports.snapshots import SnapshotStore


class InMemorySnapshotStore(SnapshotStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.payloads: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self.payloads.get(key)

    def save(self, key: str, payload: str) -> None:
        self.payloads[key] = payload

    def ping(self) -> bool:
        return True
