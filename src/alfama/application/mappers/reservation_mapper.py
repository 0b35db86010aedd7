from __future__ import annotations

from alfama.application.dto.responses import ReservationResponse
from alfama.domain.reservation.entities import Reservation


def to_reservation_response(reservation: Reservation) -> ReservationResponse:
    return ReservationResponse(
        reservationId=str(reservation.reservation_id),
        customerName=reservation.customer_name,
        email=reservation.email,
        phone=reservation.phone,
        reservedDate=reservation.reserved_date,
        reservedTime=reservation.reserved_time,
        partySize=reservation.party_size,
        tableType=reservation.table_type.value,
        linkedOrderId=str(reservation.linked_order_id),
        status=reservation.status.value,
        notes=reservation.notes,
        requestedProducts=list(reservation.requested_products),
        requestedServices=list(reservation.requested_services),
        createdAt=reservation.created_at,
    )
