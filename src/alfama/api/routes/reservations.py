from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from alfama.api.dependencies import InvalidStatusFilterError, get_reservation_store
from alfama.application.dto.requests import CreateReservationRequest
from alfama.application.dto.responses import ReservationListResponse, ReservationResponse
from alfama.application.mappers.reservation_mapper import to_reservation_response
from alfama.application.stores.reservation_store import (
    ReservationNotFoundError,
    ReservationStore,
)
from alfama.domain.common.ids import ReservationId
from alfama.domain.reservation.entities import ReservationDetails, ReservationStatus

router = APIRouter()


@router.post(
    "/v1/reservations",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation(
    request_dto: CreateReservationRequest,
    store: ReservationStore = Depends(get_reservation_store),
) -> ReservationResponse:
    reservation_id = store.create_reservation(
        ReservationDetails(
            customer_name=request_dto.customer_name,
            email=request_dto.email,
            phone=request_dto.phone,
            reserved_date=request_dto.reserved_date,
            reserved_time=request_dto.reserved_time,
            party_size=request_dto.party_size,
            table_type=request_dto.table_type,
            notes=request_dto.notes,
            requested_products=request_dto.requested_products,
            requested_services=request_dto.requested_services,
        )
    )
    return get_reservation(reservation_id, store)


@router.get("/v1/reservations", response_model=ReservationListResponse)
def list_reservations(
    status_filter: str = Query("ALL", alias="status"),
    store: ReservationStore = Depends(get_reservation_store),
) -> ReservationListResponse:
    normalized = status_filter.upper()
    reservations = list(store.reservations)
    if normalized != "ALL":
        try:
            wanted = ReservationStatus(normalized)
        except ValueError as exc:
            raise InvalidStatusFilterError(f"invalid reservation status: {status_filter}") from exc
        reservations = [item for item in reservations if item.status == wanted]
    return ReservationListResponse(
        reservations=[to_reservation_response(item) for item in reservations]
    )


@router.get("/v1/reservations/{reservation_id}", response_model=ReservationResponse)
def get_reservation(
    reservation_id: str,
    store: ReservationStore = Depends(get_reservation_store),
) -> ReservationResponse:
    reservation = store.get_reservation(ReservationId(reservation_id))
    if reservation is None:
        raise ReservationNotFoundError(f"reservation {reservation_id} not found")
    return to_reservation_response(reservation)


@router.post("/v1/reservations/{reservation_id}/cancel", response_model=ReservationResponse)
def cancel_reservation(
    reservation_id: str,
    store: ReservationStore = Depends(get_reservation_store),
) -> ReservationResponse:
    return to_reservation_response(store.cancel_reservation(ReservationId(reservation_id)))


@router.post("/v1/reservations/{reservation_id}/confirm", response_model=ReservationResponse)
def confirm_reservation(
    reservation_id: str,
    store: ReservationStore = Depends(get_reservation_store),
) -> ReservationResponse:
    return to_reservation_response(store.confirm_reservation(ReservationId(reservation_id)))
