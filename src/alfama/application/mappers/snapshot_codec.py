"""JSON snapshot format for the order and reservation collections.

Each collection is stored as one JSON array. Timestamps are ISO-8601 strings
carrying their UTC offset and full microsecond precision; reservation dates
are plain ISO dates. Order totals are not trusted on load and are recomputed
from the items.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any

from alfama.domain.common.ids import MenuItemId, OrderId, ReservationId
from alfama.domain.menu.entities import ItemCategory
from alfama.domain.order.entities import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    compute_total,
)
from alfama.domain.reservation.entities import Reservation, ReservationStatus, TableType

UNKNOWN_CUSTOMER_NAME = "Unknown customer"


def _dump(records: list[dict[str, Any]]) -> str:
    return json.dumps(records, separators=(",", ":"), ensure_ascii=False)


def _load_array(payload: str) -> list[dict[str, Any]]:
    records = json.loads(payload)
    if not isinstance(records, list):
        raise ValueError("snapshot payload must be a JSON array")
    return records


def _timestamp(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _flag(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"expected a JSON boolean, got {value!r}")
    return value


def _isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def serialize_orders(orders: list[Order]) -> str:
    return _dump(
        [
            {
                "id": str(order.order_id),
                "sequenceNumber": order.sequence_number,
                "customerName": order.customer_name,
                "status": order.status.value,
                "items": [
                    {
                        "id": str(item.item_id),
                        "name": item.name,
                        "unitPriceText": item.unit_price_text,
                        "description": item.description,
                        "imageRef": item.image_ref,
                        "quantity": item.quantity,
                        "category": item.category.value,
                        "confirmed": item.confirmed,
                    }
                    for item in order.items
                ],
                "paymentMethod": order.payment_method.value if order.payment_method else None,
                "openedAt": order.opened_at.isoformat(),
                "closedAt": _isoformat(order.closed_at),
                "paidAt": _isoformat(order.paid_at),
                "total": str(order.total),
                "notes": order.notes,
            }
            for order in orders
        ]
    )


def deserialize_orders(payload: str) -> list[Order]:
    orders: list[Order] = []
    for record in _load_array(payload):
        items = [
            OrderItem(
                item_id=MenuItemId(item["id"]),
                name=item["name"],
                unit_price_text=item["unitPriceText"],
                category=ItemCategory(item["category"]),
                quantity=int(item["quantity"]),
                confirmed=_flag(item["confirmed"]),
                description=item.get("description") or "",
                image_ref=item.get("imageRef"),
            )
            for item in record.get("items", [])
        ]
        payment_method = record.get("paymentMethod")
        orders.append(
            Order(
                order_id=OrderId(record["id"]),
                sequence_number=int(record["sequenceNumber"]),
                customer_name=record.get("customerName") or UNKNOWN_CUSTOMER_NAME,
                status=OrderStatus(record["status"]),
                opened_at=datetime.fromisoformat(record["openedAt"]),
                items=items,
                total=compute_total(items),
                payment_method=PaymentMethod(payment_method) if payment_method else None,
                closed_at=_timestamp(record.get("closedAt")),
                paid_at=_timestamp(record.get("paidAt")),
                notes=record.get("notes"),
            )
        )
    return orders


def serialize_reservations(reservations: list[Reservation]) -> str:
    return _dump(
        [
            {
                "id": str(reservation.reservation_id),
                "customerName": reservation.customer_name,
                "email": reservation.email,
                "phone": reservation.phone,
                "reservedDate": reservation.reserved_date.isoformat(),
                "reservedTime": reservation.reserved_time,
                "partySize": reservation.party_size,
                "tableType": reservation.table_type.value,
                "linkedOrderId": str(reservation.linked_order_id),
                "status": reservation.status.value,
                "notes": reservation.notes,
                "requestedProducts": list(reservation.requested_products),
                "requestedServices": list(reservation.requested_services),
                "createdAt": reservation.created_at.isoformat(),
            }
            for reservation in reservations
        ]
    )


def deserialize_reservations(payload: str) -> list[Reservation]:
    return [
        Reservation(
            reservation_id=ReservationId(record["id"]),
            customer_name=record["customerName"],
            email=record.get("email", ""),
            phone=record.get("phone", ""),
            reserved_date=date.fromisoformat(record["reservedDate"]),
            reserved_time=record["reservedTime"],
            party_size=int(record["partySize"]),
            table_type=TableType(record["tableType"]),
            linked_order_id=OrderId(record["linkedOrderId"]),
            status=ReservationStatus(record["status"]),
            created_at=datetime.fromisoformat(record["createdAt"]),
            notes=record.get("notes"),
            requested_products=list(record.get("requestedProducts") or []),
            requested_services=list(record.get("requestedServices") or []),
        )
        for record in _load_array(payload)
    ]
