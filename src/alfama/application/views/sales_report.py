"""Read-only sales aggregates computed from the order collection on every call."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from alfama.domain.common.clock import wall_time
from alfama.domain.order.entities import Order, OrderStatus

BEST_SELLERS_LIMIT = 10
NO_PAYMENT_METHOD_LABEL = "N/A"


@dataclass(frozen=True)
class BestSeller:
    name: str
    quantity: int
    revenue: Decimal


@dataclass(frozen=True)
class DailySalesReport:
    orders: list[Order]
    revenue: Decimal
    items_sold: int
    paid_ratio_percent: Decimal
    revenue_by_payment_method: dict[str, Decimal] = field(default_factory=dict)
    best_sellers: list[BestSeller] = field(default_factory=list)


def start_of_day(now: datetime) -> datetime:
    return wall_time(now.date(), time(), now.tzinfo)


def paid_on_day(orders: Iterable[Order], now: datetime) -> list[Order]:
    midnight = start_of_day(now)
    next_midnight = wall_time(now.date() + timedelta(days=1), time(), now.tzinfo)
    return [
        order
        for order in orders
        if order.status == OrderStatus.PAID
        and order.settled_at is not None
        and midnight <= order.settled_at < next_midnight
    ]


def revenue_of(orders: Iterable[Order]) -> Decimal:
    return sum((order.total for order in orders), Decimal("0"))


def revenue_by_payment_method(orders: Iterable[Order]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for order in orders:
        label = order.payment_method.value if order.payment_method else NO_PAYMENT_METHOD_LABEL
        totals[label] += order.total
    return dict(totals)


def best_sellers(orders: Iterable[Order], limit: int = BEST_SELLERS_LIMIT) -> list[BestSeller]:
    quantities: dict[str, int] = defaultdict(int)
    revenues: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for order in orders:
        for item in order.items:
            quantities[item.name] += item.quantity
            revenues[item.name] += item.line_total

    ranked = sorted(quantities, key=lambda name: quantities[name], reverse=True)
    return [
        BestSeller(name=name, quantity=quantities[name], revenue=revenues[name])
        for name in ranked[:limit]
    ]


def paid_ratio_percent(orders: list[Order]) -> Decimal:
    if not orders:
        return Decimal("0.0")
    paid = sum(1 for order in orders if order.status == OrderStatus.PAID)
    ratio = Decimal(paid) * 100 / Decimal(len(orders))
    return ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def daily_sales(orders: list[Order], now: datetime) -> DailySalesReport:
    todays = paid_on_day(orders, now)
    return DailySalesReport(
        orders=todays,
        revenue=revenue_of(todays),
        items_sold=sum(order.item_count for order in todays),
        paid_ratio_percent=paid_ratio_percent(orders),
        revenue_by_payment_method=revenue_by_payment_method(todays),
        best_sellers=best_sellers(todays),
    )
