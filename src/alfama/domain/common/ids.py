from __future__ import annotations

from typing import NewType

OrderId = NewType("OrderId", str)
MenuItemId = NewType("MenuItemId", str)
ReservationId = NewType("ReservationId", str)
