from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from alfama.api.main import create_app
from alfama.infrastructure.snapshots.memory_store import InMemorySnapshotStore

LISBON = timezone(timedelta(hours=1))
RESERVATION = {
    "customerName": "Joana Lopes",
    "email": "joana@example.com",
    "phone": "912345678",
    "reservedDate": "2026-10-19",
    "reservedTime": "19:00",
    "partySize": 4,
    "tableType": "window",
    "requestedProducts": ["Vinho verde"],
}


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 12, 0, tzinfo=LISBON))


@pytest.fixture()
def client(clock: FakeClock) -> Iterator[TestClient]:
    app = create_app(snapshot_store=InMemorySnapshotStore(), clock=clock)
    with TestClient(app) as test_client:
        yield test_client


def test_create_reservation_opens_linked_order(client: TestClient) -> None:
    response = client.post("/v1/reservations", json=RESERVATION)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "CONFIRMED"
    assert body["tableType"] == "window"
    assert body["partySize"] == 4

    order = client.get(f"/v1/orders/{body['linkedOrderId']}").json()
    assert order["customerName"] == "Joana Lopes"
    assert order["status"] == "OPEN"
    assert order["current"] is True


def test_invalid_reservation_is_rejected(client: TestClient) -> None:
    bad_time = client.post("/v1/reservations", json={**RESERVATION, "reservedTime": "7pm"})
    bad_name = client.post("/v1/reservations", json={**RESERVATION, "customerName": "Joana"})

    assert bad_time.status_code == 400
    assert bad_time.json()["error"]["code"] == "INVALID_REQUEST"
    assert bad_name.status_code == 400
    assert bad_name.json()["error"]["code"] == "VALIDATION_ERROR"
    assert client.get("/v1/reservations").json()["reservations"] == []
    assert client.get("/v1/orders").json()["orders"] == []


def test_no_show_is_expired_by_next_request_that_touches_orders(
    client: TestClient,
    clock: FakeClock,
) -> None:
    reservation_id = client.post("/v1/reservations", json=RESERVATION).json()["reservationId"]

    clock.now = datetime(2026, 10, 19, 19, 31, tzinfo=LISBON)
    client.post("/v1/orders", json={"customerName": "Walk In"})

    expired = client.get("/v1/reservations", params={"status": "expired"}).json()
    assert [item["reservationId"] for item in expired["reservations"]] == [reservation_id]


def test_cancel_and_confirm_reservation(client: TestClient) -> None:
    reservation_id = client.post("/v1/reservations", json=RESERVATION).json()["reservationId"]

    cancelled = client.post(f"/v1/reservations/{reservation_id}/cancel")
    assert cancelled.json()["status"] == "CANCELLED"

    confirmed = client.post(f"/v1/reservations/{reservation_id}/confirm")
    assert confirmed.json()["status"] == "CONFIRMED"


def test_unknown_reservation_returns_not_found(client: TestClient) -> None:
    response = client.post("/v1/reservations/rsv_missing/cancel")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RESERVATION_NOT_FOUND"
    assert client.get("/v1/reservations/rsv_missing").status_code == 404
