from __future__ import annotations

import json
import sys
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from alfama.application.mappers.snapshot_codec import (
    UNKNOWN_CUSTOMER_NAME,
    deserialize_orders,
    deserialize_reservations,
    serialize_orders,
    serialize_reservations,
)
from alfama.domain.common.ids import MenuItemId, OrderId, ReservationId
from alfama.domain.menu.entities import ItemCategory, MenuItem
from alfama.domain.order.entities import Order, PaymentMethod, create_open_order
from alfama.domain.reservation.entities import (
    ReservationDetails,
    TableType,
    create_confirmed_reservation,
)

LISBON = timezone(timedelta(hours=1))
OPENED_AT = datetime(2026, 10, 19, 19, 5, 12, 345678, tzinfo=LISBON)

SOUP = MenuItem(
    item_id=MenuItemId("itm_caldo"),
    name="Caldo verde",
    price_text="3,50€",
    category=ItemCategory.STARTER,
    description="Kale and potato soup",
    image_ref="caldo.jpg",
)


def _paid_order() -> Order:
    return (
        create_open_order(OrderId("ord_001"), 1, "Ana Silva", OPENED_AT)
        .add_item(SOUP, 2)
        .confirm_items()
        .add_item(SOUP)
        .close(
            PaymentMethod.DEBIT_TRANSFER,
            "split bill",
            already_paid=True,
            now=OPENED_AT + timedelta(hours=1, microseconds=7),
        )
    )


def test_orders_round_trip_with_full_timestamp_precision() -> None:
    orders = [_paid_order(), create_open_order(OrderId("ord_002"), 2, "Rui Costa", OPENED_AT)]

    restored = deserialize_orders(serialize_orders(orders))

    assert restored == orders
    assert restored[0].paid_at.microsecond == 345685


def test_order_records_use_camel_case_fields() -> None:
    record = json.loads(serialize_orders([_paid_order()]))[0]

    assert record["sequenceNumber"] == 1
    assert record["paymentMethod"] == "debit-transfer"
    assert record["items"][0]["unitPriceText"] == "3,50€"
    assert record["total"] == "10.50"


def test_missing_customer_name_and_stale_total_are_repaired() -> None:
    record = json.loads(serialize_orders([_paid_order()]))[0]
    record["customerName"] = None
    record["total"] = "999"

    restored = deserialize_orders(json.dumps([record]))[0]

    assert restored.customer_name == UNKNOWN_CUSTOMER_NAME
    assert restored.total == Decimal("10.50")


def test_reservations_round_trip() -> None:
    reservation = create_confirmed_reservation(
        reservation_id=ReservationId("rsv_001"),
        details=ReservationDetails(
            customer_name="Joana Lopes",
            email="joana@example.com",
            phone="912345678",
            reserved_date=date(2026, 10, 19),
            reserved_time="20:30",
            party_size=6,
            table_type=TableType.PRIVATE,
            notes="anniversary",
            requested_products=["Pastel de nata"],
            requested_services=["fado"],
        ),
        linked_order_id=OrderId("ord_001"),
        now=OPENED_AT,
    ).cancel()

    assert deserialize_reservations(serialize_reservations([reservation])) == [reservation]


@pytest.mark.parametrize("payload", ["{not json", "{}", '"orders"'])
def test_malformed_payload_is_rejected(payload: str) -> None:
    with pytest.raises(ValueError):
        deserialize_orders(payload)
    with pytest.raises(ValueError):
        deserialize_reservations(payload)


@pytest.mark.parametrize("flag", ["false", 0, None])
def test_confirmed_flag_must_be_a_json_boolean(flag: object) -> None:
    records = json.loads(serialize_orders([_paid_order()]))
    records[0]["items"][0]["confirmed"] = flag

    with pytest.raises(ValueError):
        deserialize_orders(json.dumps(records))
