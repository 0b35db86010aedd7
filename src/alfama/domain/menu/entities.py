from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from alfama.domain.common.ids import MenuItemId
from alfama.domain.common.money import parse_price


class ItemCategory(str, Enum):
    STARTER = "starter"
    MAIN = "main"
    DESSERT = "dessert"
    DRINK = "drink"


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    name: str
    price_text: str
    category: ItemCategory
    description: str = ""
    image_ref: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")

    @property
    def unit_price(self) -> Decimal:
        return parse_price(self.price_text)
