from __future__ import annotations

from fastapi import Request

from alfama.application.stores.order_store import OrderStore
from alfama.application.stores.reservation_store import ReservationStore


def get_order_store(request: Request) -> OrderStore:
    return request.app.state.order_store


def get_reservation_store(request: Request) -> ReservationStore:
    return request.app.state.reservation_store


class InvalidStatusFilterError(Exception):
    pass
