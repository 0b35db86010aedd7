from __future__ import annotations

import os
import sys
from datetime import date
from pathlib import Path
from typing import Iterator
from uuid import uuid4

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from alfama.application.stores.order_store import OrderStore
from alfama.application.stores.reservation_store import ReservationStore
from alfama.domain.reservation.entities import ReservationDetails
from alfama.infrastructure.snapshots.redis_store import RedisSnapshotStore, reset_connections

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")


class PrefixedRedisSnapshotStore(RedisSnapshotStore):
    def __init__(self, prefix: str) -> None:
        super().__init__(redis_url=REDIS_URL, timeout_seconds=1.0)
        self.prefix = prefix

    def load(self, key: str) -> str | None:
        return super().load(f"{self.prefix}{key}")

    def save(self, key: str, payload: str) -> None:
        super().save(f"{self.prefix}{key}", payload)


@pytest.fixture()
def snapshots() -> Iterator[PrefixedRedisSnapshotStore]:
    reset_connections()
    store = PrefixedRedisSnapshotStore(prefix=f"test:{uuid4().hex[:8]}:")
    if not store.ping():
        pytest.skip("redis is not reachable")

    yield store

    client = store._redis()
    for key in client.scan_iter(match=f"{store.prefix}*"):
        client.delete(key)
    reset_connections()


def test_orders_and_reservations_survive_restart(snapshots: PrefixedRedisSnapshotStore) -> None:
    orders = OrderStore(snapshots)
    with ReservationStore(orders, snapshots, autostart=False) as reservations:
        reservation_id = reservations.create_reservation(
            ReservationDetails(
                customer_name="Joana Lopes",
                email="joana@example.com",
                phone="912345678",
                reserved_date=date.today(),
                reserved_time="23:59",
            )
        )

    restored_orders = OrderStore(snapshots)
    with ReservationStore(restored_orders, snapshots, autostart=False) as restored:
        assert restored.get_reservation(reservation_id) == reservations.get_reservation(
            reservation_id
        )
        assert restored_orders.orders == orders.orders
        assert restored_orders.current_order_id == orders.current_order_id
