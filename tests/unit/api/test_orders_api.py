from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from alfama.api.main import create_app
from alfama.application.ports.snapshots import ORDERS_SNAPSHOT_KEY
from alfama.infrastructure.snapshots.memory_store import InMemorySnapshotStore

LISBON = timezone(timedelta(hours=1))
COFFEE = {
    "itemId": "itm_coffee",
    "name": "Coffee",
    "unitPriceText": "1.20€",
    "category": "drink",
}


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def snapshots() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture()
def client(snapshots: InMemorySnapshotStore) -> Iterator[TestClient]:
    app = create_app(
        snapshot_store=snapshots,
        clock=FakeClock(datetime(2026, 10, 19, 12, 0, tzinfo=LISBON)),
    )
    with TestClient(app) as test_client:
        yield test_client


def test_open_order_and_add_items(client: TestClient, snapshots: InMemorySnapshotStore) -> None:
    created = client.post("/v1/orders", json={"customerName": "Ana Silva"})
    assert created.status_code == 201
    body = created.json()
    assert body["sequenceNumber"] == 1
    assert body["status"] == "OPEN"
    assert body["current"] is True

    client.post("/v1/orders/current/items", json=COFFEE)
    response = client.post("/v1/orders/current/items", json=COFFEE)

    assert response.status_code == 200
    body = response.json()
    assert body["itemCount"] == 2
    assert body["formattedTotal"] == "2.40€"
    assert [item["quantity"] for item in body["items"]] == [2]
    assert ORDERS_SNAPSHOT_KEY in snapshots.payloads


def test_current_order_endpoints_require_selection(client: TestClient) -> None:
    response = client.post("/v1/orders/current/items", json=COFFEE)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NO_ACTIVE_ORDER"
    assert client.get("/v1/orders/current").status_code == 409
    assert client.post("/v1/orders/current/confirm").status_code == 409


def test_invalid_customer_name_is_rejected(client: TestClient) -> None:
    response = client.post("/v1/orders", json={"customerName": "Ana"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_malformed_body_is_rejected(client: TestClient) -> None:
    client.post("/v1/orders", json={"customerName": "Ana Silva"})

    response = client.post("/v1/orders/current/items", json={**COFFEE, "quantity": 0})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_REQUEST"


def test_confirm_update_and_remove_items(client: TestClient) -> None:
    client.post("/v1/orders", json={"customerName": "Ana Silva"})
    client.post("/v1/orders/current/items", json=COFFEE)
    client.post("/v1/orders/current/confirm")
    client.post("/v1/orders/current/items", json={**COFFEE, "quantity": 3})

    updated = client.patch("/v1/orders/current/items/itm_coffee", json={"quantity": 5})
    assert [(item["quantity"], item["confirmed"]) for item in updated.json()["items"]] == [
        (1, True),
        (5, False),
    ]

    removed = client.delete("/v1/orders/current/items/itm_coffee")
    assert [(item["quantity"], item["confirmed"]) for item in removed.json()["items"]] == [
        (1, True)
    ]


def test_close_unpaid_then_pay_later(client: TestClient) -> None:
    order_id = client.post("/v1/orders", json={"customerName": "Ana Silva"}).json()["orderId"]
    client.post("/v1/orders/current/items", json=COFFEE)

    closed = client.post(
        "/v1/orders/current/close",
        json={"paymentMethod": "card", "alreadyPaid": False},
    )
    assert closed.status_code == 200
    assert closed.json()["status"] == "CLOSED"
    assert closed.json()["current"] is False
    assert client.get("/v1/orders/current").status_code == 409

    listed = client.get("/v1/orders", params={"status": "closed"}).json()["orders"]
    assert [order["orderId"] for order in listed] == [order_id]

    paid = client.post(f"/v1/orders/{order_id}/pay", json={})
    assert paid.status_code == 200
    assert paid.json()["status"] == "PAID"
    assert paid.json()["paymentMethod"] == "card"

    again = client.post(f"/v1/orders/{order_id}/pay", json={})
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "INVALID_ORDER_TRANSITION"


def test_close_as_paid_without_method_is_rejected(client: TestClient) -> None:
    client.post("/v1/orders", json={"customerName": "Ana Silva"})

    response = client.post("/v1/orders/current/close", json={"alreadyPaid": True})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_select_order_switches_current(client: TestClient) -> None:
    first = client.post("/v1/orders", json={"customerName": "Ana Silva"}).json()["orderId"]
    client.post("/v1/orders", json={"customerName": "Rui Costa"})

    selected = client.post(f"/v1/orders/{first}/select")

    assert selected.status_code == 200
    assert client.get("/v1/orders/current").json()["orderId"] == first


def test_unknown_order_and_status_filter(client: TestClient) -> None:
    missing = client.get("/v1/orders/ord_missing")
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "ORDER_NOT_FOUND"

    bad_filter = client.get("/v1/orders", params={"status": "eaten"})
    assert bad_filter.status_code == 400
    assert bad_filter.json()["error"]["code"] == "INVALID_STATUS_FILTER"


def test_daily_report_summarizes_paid_orders(client: TestClient) -> None:
    client.post("/v1/orders", json={"customerName": "Ana Silva"})
    client.post("/v1/orders/current/items", json={**COFFEE, "quantity": 3})
    client.post("/v1/orders/current/close", json={"paymentMethod": "cash"})
    client.post("/v1/orders", json={"customerName": "Rui Costa"})

    report = client.get("/v1/reports/daily").json()

    assert report["ordersCount"] == 1
    assert report["itemsSold"] == 3
    assert report["formattedRevenue"] == "3.60€"
    assert report["bestSellers"][0]["name"] == "Coffee"
    assert list(report["revenueByPaymentMethod"]) == ["cash"]
