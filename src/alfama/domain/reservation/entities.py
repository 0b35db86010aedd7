from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum

from alfama.domain.common.clock import elapsed, wall_time
from alfama.domain.common.ids import OrderId, ReservationId

EXPIRY_GRACE_PERIOD = timedelta(minutes=30)


class ReservationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class TableType(str, Enum):
    STANDARD = "standard"
    WINDOW = "window"
    PRIVATE = "private"
    TERRACE = "terrace"


def parse_clock_time(value: str) -> time:
    hours, sep, minutes = value.partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit():
        raise ValueError(f"reserved_time must be HH:MM, got {value!r}")
    return time(int(hours), int(minutes))


@dataclass(frozen=True)
class ReservationDetails:
    customer_name: str
    email: str
    phone: str
    reserved_date: date
    reserved_time: str
    party_size: int = 2
    table_type: TableType = TableType.STANDARD
    notes: str | None = None
    requested_products: list[str] = field(default_factory=list)
    requested_services: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Reservation:
    reservation_id: ReservationId
    customer_name: str
    email: str
    phone: str
    reserved_date: date
    reserved_time: str
    party_size: int
    table_type: TableType
    linked_order_id: OrderId
    status: ReservationStatus
    created_at: datetime
    notes: str | None = None
    requested_products: list[str] = field(default_factory=list)
    requested_services: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        parse_clock_time(self.reserved_time)
        if self.party_size < 1:
            raise ValueError("party_size must be >= 1")

    @property
    def is_active(self) -> bool:
        return self.status in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)

    def scheduled_at(self, tz: tzinfo | None) -> datetime:
        return wall_time(self.reserved_date, parse_clock_time(self.reserved_time), tz)

    def is_overdue(self, now: datetime) -> bool:
        return elapsed(self.scheduled_at(now.tzinfo), now) > EXPIRY_GRACE_PERIOD

    def confirm(self) -> Reservation:
        return replace(self, status=ReservationStatus.CONFIRMED)

    def cancel(self) -> Reservation:
        return replace(self, status=ReservationStatus.CANCELLED)

    def expire(self) -> Reservation:
        if not self.is_active:
            raise ReservationTransitionError(
                f"cannot expire reservation from status={self.status.value}"
            )
        return replace(self, status=ReservationStatus.EXPIRED)


def create_confirmed_reservation(
    reservation_id: ReservationId,
    details: ReservationDetails,
    linked_order_id: OrderId,
    now: datetime,
) -> Reservation:
    return Reservation(
        reservation_id=reservation_id,
        customer_name=details.customer_name.strip(),
        email=details.email,
        phone=details.phone,
        reserved_date=details.reserved_date,
        reserved_time=details.reserved_time,
        party_size=details.party_size,
        table_type=details.table_type,
        linked_order_id=linked_order_id,
        status=ReservationStatus.CONFIRMED,
        created_at=now,
        notes=details.notes,
        requested_products=list(details.requested_products),
        requested_services=list(details.requested_services),
    )


class ReservationTransitionError(Exception):
    pass
