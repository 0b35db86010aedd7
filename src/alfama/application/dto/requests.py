from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from alfama.domain.menu.entities import ItemCategory
from alfama.domain.order.entities import PaymentMethod
from alfama.domain.reservation.entities import TableType


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class OpenOrderRequest(CamelBaseModel):
    customer_name: str


class AddItemRequest(CamelBaseModel):
    item_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    unit_price_text: str
    category: ItemCategory
    description: str = ""
    image_ref: str | None = None
    quantity: int = Field(default=1, ge=1)


class UpdateQuantityRequest(CamelBaseModel):
    quantity: int


class CloseOrderRequest(CamelBaseModel):
    payment_method: PaymentMethod | None = None
    notes: str | None = None
    already_paid: bool = True


class MarkPaidRequest(CamelBaseModel):
    payment_method: PaymentMethod | None = None


class CreateReservationRequest(CamelBaseModel):
    customer_name: str
    email: str = ""
    phone: str = ""
    reserved_date: date
    reserved_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    party_size: int = Field(default=2, ge=1)
    table_type: TableType = TableType.STANDARD
    notes: str | None = None
    requested_products: list[str] = Field(default_factory=list)
    requested_services: list[str] = Field(default_factory=list)
