from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from alfama.api.error_handling import register_exception_handlers
from alfama.api.middleware.observability import AccessLogMiddleware, RequestIDMiddleware
from alfama.api.routes.health import router as health_router
from alfama.api.routes.orders import router as orders_router
from alfama.api.routes.reports import router as reports_router
from alfama.api.routes.reservations import router as reservations_router
from alfama.application.ports.snapshots import SnapshotStore
from alfama.application.stores.order_store import Clock, OrderStore
from alfama.application.stores.reservation_store import (
    DEFAULT_CHECK_INTERVAL_SECONDS,
    ReservationStore,
)
from alfama.domain.common.clock import local_now
from alfama.infrastructure.observability.logging_config import configure_logging
from alfama.infrastructure.observability.otel import configure_otel
from alfama.infrastructure.snapshots.factory import build_snapshot_store

logger = logging.getLogger(__name__)


def _watchdog_interval_seconds() -> float:
    raw_value = os.getenv("ALFAMA_WATCHDOG_INTERVAL_SECONDS")
    if not raw_value:
        return DEFAULT_CHECK_INTERVAL_SECONDS
    return float(raw_value)


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()
    if env in {"dev", "test"}:
        return ["*"]

    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.snapshot_store is None:
        app.state.snapshot_store = build_snapshot_store()

    order_store = OrderStore(app.state.snapshot_store, clock=app.state.clock)
    reservation_store = ReservationStore(
        order_store,
        app.state.snapshot_store,
        clock=app.state.clock,
        check_interval_seconds=_watchdog_interval_seconds(),
    )
    app.state.order_store = order_store
    app.state.reservation_store = reservation_store
    logger.info(
        "stores_ready",
        extra={
            "orders": len(order_store.orders),
            "reservations": len(reservation_store.reservations),
        },
    )
    try:
        yield
    finally:
        reservation_store.close()


def create_app(snapshot_store: SnapshotStore | None = None, clock: Clock = local_now) -> FastAPI:
    configure_logging()

    app = FastAPI(title="Alfama Tabs", version="0.1.0", lifespan=lifespan)
    app.state.snapshot_store = snapshot_store
    app.state.clock = clock

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(orders_router)
    app.include_router(reservations_router)
    app.include_router(reports_router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )

    configure_otel(app)
    return app


app = create_app()
