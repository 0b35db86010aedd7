from __future__ import annotations

import logging
import threading
from datetime import datetime
from decimal import Decimal
from typing import Callable
from uuid import uuid4

from alfama.application.mappers.snapshot_codec import deserialize_orders, serialize_orders
from alfama.application.metrics.order_lifecycle import (
    record_items_added,
    record_order_opened,
    record_snapshot_failure,
    record_time_to_pay,
    record_transition,
)
from alfama.application.ports.snapshots import ORDERS_SNAPSHOT_KEY, PersistenceError, SnapshotStore
from alfama.application.views.sales_report import paid_on_day, revenue_of
from alfama.domain.common.clock import local_now
from alfama.domain.common.ids import MenuItemId, OrderId
from alfama.domain.common.money import format_price
from alfama.domain.menu.entities import MenuItem
from alfama.domain.order.entities import (
    Order,
    OrderStatus,
    OrderTransitionError,
    PaymentMethod,
    create_open_order,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Listener = Callable[[], None]

NO_ORDER_PLACEHOLDER = "-"


class ValidationError(Exception):
    pass


class NoActiveOrderError(Exception):
    pass


class OrderNotFoundError(Exception):
    pass


class InvalidOrderTransitionError(Exception):
    pass


def validate_customer_name(customer_name: str) -> str:
    name = customer_name.strip()
    if not name:
        raise ValidationError("customer name is required")
    if len(name.split()) < 2:
        raise ValidationError("customer name must include first and last name")
    return name


class OrderStore:
    """Owns every order ever opened and the pointer to the one being served.

    The whole collection is re-serialized to the snapshot store after each
    mutation. Mutators that act on the current order log ``no_active_order``
    and return ``None`` when nothing is selected; callers that need a hard
    failure use :meth:`require_current_order` first.
    """

    def __init__(self, snapshot_store: SnapshotStore, clock: Clock = local_now) -> None:
        self._snapshot_store = snapshot_store
        self._clock = clock
        self._listeners: list[Listener] = []
        self.lock = threading.RLock()
        self.persistence_enabled = True
        self._orders: list[Order] = self._load()
        self._current_order_id: OrderId | None = next(
            (order.order_id for order in self._orders if order.status == OrderStatus.OPEN),
            None,
        )

    @property
    def orders(self) -> tuple[Order, ...]:
        with self.lock:
            return tuple(self._orders)

    @property
    def current_order_id(self) -> OrderId | None:
        return self._current_order_id

    @property
    def current_order(self) -> Order | None:
        with self.lock:
            if self._current_order_id is None:
                return None
            return self._find(self._current_order_id)

    def now(self) -> datetime:
        return self._clock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get_order(self, order_id: OrderId) -> Order | None:
        with self.lock:
            return self._find(order_id)

    def require_current_order(self) -> Order:
        order = self.current_order
        if order is None:
            raise NoActiveOrderError("no open order is selected")
        return order

    def open_order(self, customer_name: str) -> OrderId:
        name = validate_customer_name(customer_name)
        with self.lock:
            sequence_number = max((order.sequence_number for order in self._orders), default=0) + 1
            order = create_open_order(
                order_id=OrderId(f"ord_{uuid4().hex[:12]}"),
                sequence_number=sequence_number,
                customer_name=name,
                now=self._clock(),
            )
            self._orders = [*self._orders, order]
            self._current_order_id = order.order_id
            self._persist()
            record_order_opened()
            logger.info(
                "order_opened",
                extra={"order_id": order.order_id, "sequence_number": sequence_number},
            )
            self._notify()
        return order.order_id

    def select_order(self, order_id: OrderId) -> None:
        with self.lock:
            order = self._find(order_id)
            if order is None or order.status != OrderStatus.OPEN:
                logger.debug("order_select_ignored", extra={"order_id": order_id})
                return
            self._current_order_id = order.order_id

    def add_item(self, menu_item: MenuItem, quantity: int = 1) -> Order | None:
        if quantity < 1:
            raise ValidationError("quantity must be >= 1")
        try:
            menu_item.unit_price
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        with self.lock:
            order = self._current_or_warn("add_item")
            if order is None:
                return None
            updated = self._store(order.add_item(menu_item, quantity))
        record_items_added(menu_item.category, quantity)
        return updated

    def remove_item(self, item_id: MenuItemId) -> Order | None:
        with self.lock:
            order = self._current_or_warn("remove_item")
            if order is None:
                return None
            return self._store(order.remove_item(item_id))

    def update_quantity(self, item_id: MenuItemId, quantity: int) -> Order | None:
        with self.lock:
            order = self._current_or_warn("update_quantity")
            if order is None:
                return None
            return self._store(order.update_quantity(item_id, quantity))

    def confirm_items(self) -> Order | None:
        with self.lock:
            order = self._current_or_warn("confirm_items")
            if order is None:
                return None
            return self._store(order.confirm_items())

    def close_order(
        self,
        payment_method: PaymentMethod | None,
        notes: str | None = None,
        already_paid: bool = True,
    ) -> Order | None:
        if already_paid and payment_method is None:
            raise ValidationError("payment method is required to settle an order")

        with self.lock:
            order = self._current_or_warn("close_order")
            if order is None:
                return None
            now = self._clock()
            closed = order.close(
                payment_method=payment_method,
                notes=notes or None,
                already_paid=already_paid,
                now=now,
            )
            self._current_order_id = None
            self._store(closed)

        record_transition(from_status=order.status, to_status=closed.status)
        if closed.status == OrderStatus.PAID:
            record_time_to_pay(closed, now=now)
        logger.info(
            "order_closed",
            extra={"order_id": closed.order_id, "status": closed.status.value},
        )
        return closed

    def mark_as_paid(
        self,
        order_id: OrderId,
        payment_method: PaymentMethod | None = None,
    ) -> Order:
        with self.lock:
            order = self._find(order_id)
            if order is None:
                raise OrderNotFoundError(f"order {order_id} not found")
            if order.status != OrderStatus.CLOSED:
                raise InvalidOrderTransitionError(
                    f"cannot mark paid from status={order.status.value}"
                )

            method = payment_method or order.payment_method
            if method is None:
                raise ValidationError("payment method is required to settle an order")

            now = self._clock()
            try:
                paid = order.mark_paid(method, now)
            except OrderTransitionError as exc:
                raise InvalidOrderTransitionError(str(exc)) from exc
            self._store(paid)

        record_transition(from_status=OrderStatus.CLOSED, to_status=OrderStatus.PAID)
        record_time_to_pay(paid, now=now)
        logger.info("order_paid", extra={"order_id": paid.order_id})
        return paid

    def total_of(self, order_id: OrderId | None = None) -> Decimal:
        order = self._resolve(order_id)
        return order.total if order is not None else Decimal("0")

    def formatted_total_of(self, order_id: OrderId | None = None) -> str:
        order = self._resolve(order_id)
        return format_price(order.total) if order is not None else NO_ORDER_PLACEHOLDER

    def item_count_of(self, order_id: OrderId | None = None) -> int:
        order = self._resolve(order_id)
        return order.item_count if order is not None else 0

    def open_orders(self) -> list[Order]:
        return self._with_status(OrderStatus.OPEN)

    def closed_unpaid_orders(self) -> list[Order]:
        return self._with_status(OrderStatus.CLOSED)

    def paid_orders(self) -> list[Order]:
        return self._with_status(OrderStatus.PAID)

    def sales_today(self) -> list[Order]:
        with self.lock:
            return paid_on_day(self._orders, self._clock())

    def total_sales_today(self) -> Decimal:
        return revenue_of(self.sales_today())

    def _find(self, order_id: OrderId) -> Order | None:
        return next((order for order in self._orders if order.order_id == order_id), None)

    def _resolve(self, order_id: OrderId | None) -> Order | None:
        if order_id is None:
            return self.current_order
        return self.get_order(order_id)

    def _with_status(self, status: OrderStatus) -> list[Order]:
        with self.lock:
            return [order for order in self._orders if order.status == status]

    def _current_or_warn(self, operation: str) -> Order | None:
        order = self.current_order
        if order is None:
            logger.warning("no_active_order", extra={"operation": operation})
        return order

    def _store(self, updated: Order) -> Order:
        self._orders = [
            updated if order.order_id == updated.order_id else order for order in self._orders
        ]
        self._persist()
        self._notify()
        return updated

    def _load(self) -> list[Order]:
        # Undecodable bytes surface from the backend as UnicodeDecodeError, a
        # ValueError, and are treated like any other corrupt payload.
        try:
            payload = self._snapshot_store.load(ORDERS_SNAPSHOT_KEY)
            return [] if payload is None else deserialize_orders(payload)
        except PersistenceError:
            logger.exception("snapshot_load_failed", extra={"key": ORDERS_SNAPSHOT_KEY})
            record_snapshot_failure(key=ORDERS_SNAPSHOT_KEY, operation="load")
            self.persistence_enabled = False
            return []
        except (ValueError, KeyError, TypeError, AttributeError):
            logger.exception("snapshot_load_failed", extra={"key": ORDERS_SNAPSHOT_KEY})
            record_snapshot_failure(key=ORDERS_SNAPSHOT_KEY, operation="decode")
            return []

    def _persist(self) -> None:
        if not self.persistence_enabled:
            return
        try:
            self._snapshot_store.save(ORDERS_SNAPSHOT_KEY, serialize_orders(self._orders))
        except PersistenceError:
            logger.exception("snapshot_save_failed", extra={"key": ORDERS_SNAPSHOT_KEY})
            record_snapshot_failure(key=ORDERS_SNAPSHOT_KEY, operation="save")
            self.persistence_enabled = False

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("order_listener_failed")
