from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from alfama.domain.common.ids import MenuItemId, OrderId
from alfama.domain.common.money import parse_price
from alfama.domain.menu.entities import ItemCategory, MenuItem


class OrderStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    PAID = "PAID"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    DEBIT_TRANSFER = "debit-transfer"
    MOBILE_WALLET = "mobile-wallet"


@dataclass(frozen=True)
class OrderItem:
    item_id: MenuItemId
    name: str
    unit_price_text: str
    category: ItemCategory
    quantity: int
    confirmed: bool = False
    description: str = ""
    image_ref: str | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")

    @property
    def unit_price(self) -> Decimal:
        return parse_price(self.unit_price_text)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_menu_item(cls, menu_item: MenuItem, quantity: int) -> OrderItem:
        return cls(
            item_id=menu_item.item_id,
            name=menu_item.name,
            unit_price_text=menu_item.price_text,
            category=menu_item.category,
            quantity=quantity,
            confirmed=False,
            description=menu_item.description,
            image_ref=menu_item.image_ref,
        )


def compute_total(items: list[OrderItem]) -> Decimal:
    return sum((item.line_total for item in items), Decimal("0"))


@dataclass(frozen=True)
class Order:
    """A customer's running tab.

    Orders are immutable values: every mutation returns a new ``Order`` with
    ``total`` recomputed over all items, confirmed or not. Confirmed items are
    never removed or resized.
    """

    order_id: OrderId
    sequence_number: int
    customer_name: str
    status: OrderStatus
    opened_at: datetime
    items: list[OrderItem] = field(default_factory=list)
    total: Decimal = Decimal("0")
    payment_method: PaymentMethod | None = None
    closed_at: datetime | None = None
    paid_at: datetime | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.sequence_number < 1:
            raise ValueError("sequence_number must be >= 1")
        if self.total != compute_total(self.items):
            raise ValueError("order total must equal sum of item totals")
        if self.status == OrderStatus.CLOSED and self.closed_at is None:
            raise ValueError("closed_at must be set when order status is CLOSED")
        if self.status == OrderStatus.PAID and self.paid_at is None:
            raise ValueError("paid_at must be set when order status is PAID")

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def settled_at(self) -> datetime | None:
        return self.paid_at or self.closed_at

    def ensure_open(self) -> None:
        if self.status != OrderStatus.OPEN:
            raise OrderTransitionError(
                f"order {self.order_id} is not open (status={self.status.value})"
            )

    def add_item(self, menu_item: MenuItem, quantity: int = 1) -> Order:
        self.ensure_open()
        if quantity < 1:
            raise ValueError("quantity must be >= 1")

        items = list(self.items)
        for index, existing in enumerate(items):
            if existing.item_id == menu_item.item_id and not existing.confirmed:
                items[index] = replace(existing, quantity=existing.quantity + quantity)
                break
        else:
            items.append(OrderItem.from_menu_item(menu_item, quantity))
        return self._with_items(items)

    def remove_item(self, item_id: MenuItemId) -> Order:
        self.ensure_open()
        items = [item for item in self.items if not (item.item_id == item_id and not item.confirmed)]
        return self._with_items(items)

    def update_quantity(self, item_id: MenuItemId, quantity: int) -> Order:
        if quantity <= 0:
            return self.remove_item(item_id)

        self.ensure_open()
        items = [
            replace(item, quantity=quantity)
            if item.item_id == item_id and not item.confirmed
            else item
            for item in self.items
        ]
        return self._with_items(items)

    def confirm_items(self) -> Order:
        self.ensure_open()
        return self._with_items([replace(item, confirmed=True) for item in self.items])

    def close(
        self,
        payment_method: PaymentMethod | None,
        notes: str | None,
        already_paid: bool,
        now: datetime,
    ) -> Order:
        confirmed = self.confirm_items()
        return replace(
            confirmed,
            status=OrderStatus.PAID if already_paid else OrderStatus.CLOSED,
            payment_method=payment_method,
            notes=notes,
            closed_at=now,
            paid_at=now if already_paid else None,
        )

    def mark_paid(self, payment_method: PaymentMethod, now: datetime) -> Order:
        if self.status != OrderStatus.CLOSED:
            raise OrderTransitionError(f"cannot mark paid from status={self.status.value}")
        return replace(self, status=OrderStatus.PAID, payment_method=payment_method, paid_at=now)

    def _with_items(self, items: list[OrderItem]) -> Order:
        return replace(self, items=items, total=compute_total(items))


def create_open_order(
    order_id: OrderId,
    sequence_number: int,
    customer_name: str,
    now: datetime,
) -> Order:
    return Order(
        order_id=order_id,
        sequence_number=sequence_number,
        customer_name=customer_name,
        status=OrderStatus.OPEN,
        opened_at=now,
    )


class OrderTransitionError(Exception):
    pass
