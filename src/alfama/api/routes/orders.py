from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from alfama.api.dependencies import InvalidStatusFilterError, get_order_store
from alfama.application.dto.requests import (
    AddItemRequest,
    CloseOrderRequest,
    MarkPaidRequest,
    OpenOrderRequest,
    UpdateQuantityRequest,
)
from alfama.application.dto.responses import OrderListResponse, OrderResponse
from alfama.application.mappers.order_mapper import to_order_response
from alfama.application.stores.order_store import OrderNotFoundError, OrderStore
from alfama.domain.common.ids import MenuItemId, OrderId
from alfama.domain.menu.entities import MenuItem
from alfama.domain.order.entities import Order, OrderStatus

router = APIRouter()


def _response(store: OrderStore, order: Order) -> OrderResponse:
    return to_order_response(order, current_order_id=store.current_order_id)


def _require_order(store: OrderStore, order_id: str) -> Order:
    order = store.get_order(OrderId(order_id))
    if order is None:
        raise OrderNotFoundError(f"order {order_id} not found")
    return order


@router.post("/v1/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def open_order(
    request_dto: OpenOrderRequest,
    store: OrderStore = Depends(get_order_store),
) -> OrderResponse:
    order_id = store.open_order(request_dto.customer_name)
    return _response(store, _require_order(store, order_id))


@router.get("/v1/orders", response_model=OrderListResponse)
def list_orders(
    status_filter: str = Query("ALL", alias="status"),
    store: OrderStore = Depends(get_order_store),
) -> OrderListResponse:
    normalized = status_filter.upper()
    if normalized == "ALL":
        orders = list(store.orders)
    else:
        try:
            wanted = OrderStatus(normalized)
        except ValueError as exc:
            raise InvalidStatusFilterError(f"invalid order status: {status_filter}") from exc
        orders = [order for order in store.orders if order.status == wanted]
    return OrderListResponse(orders=[_response(store, order) for order in orders])


@router.get("/v1/orders/current", response_model=OrderResponse)
def get_current_order(store: OrderStore = Depends(get_order_store)) -> OrderResponse:
    return _response(store, store.require_current_order())


@router.post("/v1/orders/current/items", response_model=OrderResponse)
def add_item(
    request_dto: AddItemRequest,
    store: OrderStore = Depends(get_order_store),
) -> OrderResponse:
    menu_item = MenuItem(
        item_id=MenuItemId(request_dto.item_id),
        name=request_dto.name,
        price_text=request_dto.unit_price_text,
        category=request_dto.category,
        description=request_dto.description,
        image_ref=request_dto.image_ref,
    )
    with store.lock:
        store.require_current_order()
        updated = store.add_item(menu_item, request_dto.quantity)
    return _response(store, updated)


@router.delete("/v1/orders/current/items/{item_id}", response_model=OrderResponse)
def remove_item(item_id: str, store: OrderStore = Depends(get_order_store)) -> OrderResponse:
    with store.lock:
        store.require_current_order()
        updated = store.remove_item(MenuItemId(item_id))
    return _response(store, updated)


@router.patch("/v1/orders/current/items/{item_id}", response_model=OrderResponse)
def update_quantity(
    item_id: str,
    request_dto: UpdateQuantityRequest,
    store: OrderStore = Depends(get_order_store),
) -> OrderResponse:
    with store.lock:
        store.require_current_order()
        updated = store.update_quantity(MenuItemId(item_id), request_dto.quantity)
    return _response(store, updated)


@router.post("/v1/orders/current/confirm", response_model=OrderResponse)
def confirm_items(store: OrderStore = Depends(get_order_store)) -> OrderResponse:
    with store.lock:
        store.require_current_order()
        updated = store.confirm_items()
    return _response(store, updated)


@router.post("/v1/orders/current/close", response_model=OrderResponse)
def close_order(
    request_dto: CloseOrderRequest,
    store: OrderStore = Depends(get_order_store),
) -> OrderResponse:
    with store.lock:
        store.require_current_order()
        closed = store.close_order(
            payment_method=request_dto.payment_method,
            notes=request_dto.notes,
            already_paid=request_dto.already_paid,
        )
    return _response(store, closed)


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, store: OrderStore = Depends(get_order_store)) -> OrderResponse:
    return _response(store, _require_order(store, order_id))


@router.post("/v1/orders/{order_id}/select", response_model=OrderResponse)
def select_order(order_id: str, store: OrderStore = Depends(get_order_store)) -> OrderResponse:
    order = _require_order(store, order_id)
    store.select_order(order.order_id)
    return _response(store, order)


@router.post("/v1/orders/{order_id}/pay", response_model=OrderResponse)
def mark_as_paid(
    order_id: str,
    request_dto: MarkPaidRequest,
    store: OrderStore = Depends(get_order_store),
) -> OrderResponse:
    paid = store.mark_as_paid(OrderId(order_id), payment_method=request_dto.payment_method)
    return _response(store, paid)
