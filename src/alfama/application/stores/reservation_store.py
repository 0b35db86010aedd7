from __future__ import annotations

import logging
from datetime import datetime
from types import TracebackType
from typing import Callable
from uuid import uuid4

from opentelemetry import trace

from alfama.application.mappers.snapshot_codec import (
    deserialize_reservations,
    serialize_reservations,
)
from alfama.application.metrics.order_lifecycle import (
    record_reservation_created,
    record_reservations_expired,
    record_snapshot_failure,
    record_watchdog_run,
)
from alfama.application.ports.snapshots import (
    RESERVATIONS_SNAPSHOT_KEY,
    PersistenceError,
    SnapshotStore,
)
from alfama.application.scheduling.repeating_timer import RepeatingTimer
from alfama.application.stores.order_store import Clock, OrderStore, ValidationError
from alfama.domain.common.clock import local_now
from alfama.domain.common.ids import ReservationId
from alfama.domain.reservation.entities import (
    Reservation,
    ReservationDetails,
    ReservationStatus,
    create_confirmed_reservation,
    parse_clock_time,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_CHECK_INTERVAL_SECONDS = 60.0


class ReservationNotFoundError(Exception):
    pass


class ReservationStore:
    """Owns reservations and expires the ones whose customer never showed up.

    Every reservation is created together with its own order in the
    :class:`OrderStore`. The expiration watchdog runs on a repeating timer
    started with the store and stopped by :meth:`close`, and also runs after
    any change to either collection. Orders are only read here, never
    mutated.
    """

    def __init__(
        self,
        order_store: OrderStore,
        snapshot_store: SnapshotStore,
        clock: Clock = local_now,
        check_interval_seconds: float = DEFAULT_CHECK_INTERVAL_SECONDS,
        autostart: bool = True,
    ) -> None:
        self._order_store = order_store
        self._snapshot_store = snapshot_store
        self._clock = clock
        self._lock = order_store.lock
        self.persistence_enabled = True
        self._reservations: list[Reservation] = self._load()
        self._timer = RepeatingTimer(
            check_interval_seconds,
            self.check_timeouts,
            name="reservation-watchdog",
        )
        self._unsubscribe = order_store.subscribe(self._on_orders_changed)
        if autostart:
            self.start()

    def __enter__(self) -> ReservationStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def reservations(self) -> tuple[Reservation, ...]:
        with self._lock:
            return tuple(self._reservations)

    @property
    def watchdog_running(self) -> bool:
        return self._timer.running

    def start(self) -> None:
        self._timer.start()

    def close(self) -> None:
        self._timer.stop()
        self._unsubscribe()

    def get_reservation(self, reservation_id: ReservationId) -> Reservation | None:
        with self._lock:
            return self._find(reservation_id)

    def create_reservation(self, details: ReservationDetails) -> ReservationId:
        _validate_details(details)
        with self._lock:
            order_id = self._order_store.open_order(details.customer_name)
            reservation = create_confirmed_reservation(
                reservation_id=ReservationId(f"rsv_{uuid4().hex[:12]}"),
                details=details,
                linked_order_id=order_id,
                now=self._clock(),
            )
            self._reservations = [*self._reservations, reservation]
            self._persist()

        record_reservation_created(table_type=reservation.table_type.value)
        logger.info(
            "reservation_created",
            extra={"reservation_id": reservation.reservation_id, "order_id": order_id},
        )
        self.check_timeouts()
        return reservation.reservation_id

    def cancel_reservation(self, reservation_id: ReservationId) -> Reservation:
        return self._transition(reservation_id, Reservation.cancel, "reservation_cancelled")

    def confirm_reservation(self, reservation_id: ReservationId) -> Reservation:
        return self._transition(reservation_id, Reservation.confirm, "reservation_confirmed")

    def check_timeouts(self, now: datetime | None = None) -> list[ReservationId]:
        """Expire active reservations more than 30 minutes past their slot with an empty order."""
        with tracer.start_as_current_span("reservation_watchdog.check_timeouts") as span, self._lock:
            current = now or self._clock()
            expired: list[ReservationId] = []
            updated: list[Reservation] = []
            for reservation in self._reservations:
                if (
                    reservation.is_active
                    and reservation.is_overdue(current)
                    and not self._has_consumption(reservation)
                ):
                    reservation = reservation.expire()
                    expired.append(reservation.reservation_id)
                updated.append(reservation)

            record_watchdog_run()
            span.set_attribute("alfama.reservations.expired", len(expired))
            if expired:
                self._reservations = updated
                self._persist()

        record_reservations_expired(len(expired))
        for reservation_id in expired:
            logger.info("reservation_expired", extra={"reservation_id": reservation_id})
        return expired

    def pending_reservations(self) -> list[Reservation]:
        return self._with_status(ReservationStatus.PENDING)

    def confirmed_reservations(self) -> list[Reservation]:
        return self._with_status(ReservationStatus.CONFIRMED)

    def cancelled_reservations(self) -> list[Reservation]:
        return self._with_status(ReservationStatus.CANCELLED)

    def expired_reservations(self) -> list[Reservation]:
        return self._with_status(ReservationStatus.EXPIRED)

    def _transition(
        self,
        reservation_id: ReservationId,
        apply: Callable[[Reservation], Reservation],
        event: str,
    ) -> Reservation:
        with self._lock:
            reservation = self._find(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(f"reservation {reservation_id} not found")
            updated = apply(reservation)
            self._reservations = [
                updated if item.reservation_id == reservation_id else item
                for item in self._reservations
            ]
            self._persist()

        logger.info(event, extra={"reservation_id": reservation_id})
        self.check_timeouts()
        return self.get_reservation(reservation_id) or updated

    def _has_consumption(self, reservation: Reservation) -> bool:
        order = self._order_store.get_order(reservation.linked_order_id)
        return order is not None and len(order.items) > 0

    def _find(self, reservation_id: ReservationId) -> Reservation | None:
        return next(
            (item for item in self._reservations if item.reservation_id == reservation_id),
            None,
        )

    def _with_status(self, status: ReservationStatus) -> list[Reservation]:
        with self._lock:
            return [item for item in self._reservations if item.status == status]

    def _on_orders_changed(self) -> None:
        self.check_timeouts()

    def _load(self) -> list[Reservation]:
        # Undecodable bytes surface from the backend as UnicodeDecodeError, a
        # ValueError, and are treated like any other corrupt payload.
        try:
            payload = self._snapshot_store.load(RESERVATIONS_SNAPSHOT_KEY)
            return [] if payload is None else deserialize_reservations(payload)
        except PersistenceError:
            logger.exception("snapshot_load_failed", extra={"key": RESERVATIONS_SNAPSHOT_KEY})
            record_snapshot_failure(key=RESERVATIONS_SNAPSHOT_KEY, operation="load")
            self.persistence_enabled = False
            return []
        except (ValueError, KeyError, TypeError, AttributeError):
            logger.exception("snapshot_load_failed", extra={"key": RESERVATIONS_SNAPSHOT_KEY})
            record_snapshot_failure(key=RESERVATIONS_SNAPSHOT_KEY, operation="decode")
            return []

    def _persist(self) -> None:
        if not self.persistence_enabled:
            return
        try:
            self._snapshot_store.save(
                RESERVATIONS_SNAPSHOT_KEY,
                serialize_reservations(self._reservations),
            )
        except PersistenceError:
            logger.exception("snapshot_save_failed", extra={"key": RESERVATIONS_SNAPSHOT_KEY})
            record_snapshot_failure(key=RESERVATIONS_SNAPSHOT_KEY, operation="save")
            self.persistence_enabled = False


def _validate_details(details: ReservationDetails) -> None:
    if not details.customer_name.strip():
        raise ValidationError("customer name is required")
    try:
        parse_clock_time(details.reserved_time)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    if details.party_size < 1:
        raise ValidationError("party size must be >= 1")
