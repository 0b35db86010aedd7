from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from alfama.api.dependencies import get_order_store, get_reservation_store
from alfama.application.stores.order_store import OrderStore
from alfama.application.stores.reservation_store import ReservationStore

router = APIRouter()


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(
    request: Request,
    response: Response,
    order_store: OrderStore = Depends(get_order_store),
    reservation_store: ReservationStore = Depends(get_reservation_store),
) -> dict[str, object]:
    checks = {
        "snapshots": bool(request.app.state.snapshot_store.ping()),
        "orderPersistence": order_store.persistence_enabled,
        "reservationPersistence": reservation_store.persistence_enabled,
        "watchdog": reservation_store.watchdog_running,
    }
    if all(checks.values()):
        return {"status": "ok"}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "checks": checks}


@router.get("/metrics")
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
