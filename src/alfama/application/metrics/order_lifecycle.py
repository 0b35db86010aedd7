from __future__ import annotations

from datetime import datetime

from prometheus_client import Counter, Histogram

from alfama.domain.common.clock import elapsed
from alfama.domain.menu.entities import ItemCategory
from alfama.domain.order.entities import Order, OrderStatus

ORDERS_OPENED_TOTAL = Counter(
    "alfama_orders_opened_total",
    "Total number of orders opened.",
)

ORDER_TRANSITION_TOTAL = Counter(
    "alfama_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_ITEMS_ADDED_TOTAL = Counter(
    "alfama_order_items_added_total",
    "Total quantity of items added to orders.",
    ["category"],
)

ORDER_TIME_TO_PAY_SECONDS = Histogram(
    "alfama_order_time_to_pay_seconds",
    "Time between opening an order and settling it.",
)

RESERVATIONS_CREATED_TOTAL = Counter(
    "alfama_reservations_created_total",
    "Total number of reservations created.",
    ["table_type"],
)

RESERVATIONS_EXPIRED_TOTAL = Counter(
    "alfama_reservations_expired_total",
    "Total number of reservations expired by the watchdog.",
)

RESERVATION_WATCHDOG_RUNS_TOTAL = Counter(
    "alfama_reservation_watchdog_runs_total",
    "Total number of reservation expiration passes.",
)

SNAPSHOT_FAILURES_TOTAL = Counter(
    "alfama_snapshot_failures_total",
    "Total number of snapshot read or write failures.",
    ["key", "operation"],
)


def record_order_opened() -> None:
    ORDERS_OPENED_TOTAL.inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_items_added(category: ItemCategory, quantity: int) -> None:
    ORDER_ITEMS_ADDED_TOTAL.labels(category=category.value).inc(quantity)


def record_time_to_pay(order: Order, now: datetime) -> None:
    ORDER_TIME_TO_PAY_SECONDS.observe(max(elapsed(order.opened_at, now).total_seconds(), 0.0))


def record_reservation_created(table_type: str) -> None:
    RESERVATIONS_CREATED_TOTAL.labels(table_type=table_type).inc()


def record_reservations_expired(count: int) -> None:
    if count:
        RESERVATIONS_EXPIRED_TOTAL.inc(count)


def record_watchdog_run() -> None:
    RESERVATION_WATCHDOG_RUNS_TOTAL.inc()


def record_snapshot_failure(key: str, operation: str) -> None:
    SNAPSHOT_FAILURES_TOTAL.labels(key=key, operation=operation).inc()
