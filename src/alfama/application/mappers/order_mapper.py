from __future__ import annotations

from alfama.application.dto.responses import OrderItemResponse, OrderResponse
from alfama.domain.common.ids import OrderId
from alfama.domain.common.money import format_price
from alfama.domain.order.entities import Order


def to_order_response(order: Order, current_order_id: OrderId | None = None) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        sequenceNumber=order.sequence_number,
        customerName=order.customer_name,
        status=order.status.value,
        items=[
            OrderItemResponse(
                itemId=str(item.item_id),
                name=item.name,
                unitPriceText=item.unit_price_text,
                description=item.description,
                imageRef=item.image_ref,
                category=item.category.value,
                quantity=item.quantity,
                confirmed=item.confirmed,
                lineTotal=item.line_total,
            )
            for item in order.items
        ],
        itemCount=order.item_count,
        total=order.total,
        formattedTotal=format_price(order.total),
        paymentMethod=order.payment_method.value if order.payment_method else None,
        notes=order.notes,
        openedAt=order.opened_at,
        closedAt=order.closed_at,
        paidAt=order.paid_at,
        current=current_order_id is not None and order.order_id == current_order_id,
    )
