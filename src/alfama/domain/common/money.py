from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOL = "€"

_CENTS = Decimal("0.01")
_LEADING_NUMBER = re.compile(r"[-+]?\d+(?:\.\d+)?")


def parse_price(text: str) -> Decimal:
    """Read the amount out of a localized price label such as ``"8,50 €"``.

    Either ``,`` or ``.`` may be the decimal separator. When both appear, the
    right-most one is the decimal separator and the other groups thousands.
    Only the leading numeric part is read, so trailing text is ignored.
    """
    raw = text.replace(CURRENCY_SYMBOL, "").strip()
    if "," in raw and "." in raw:
        if raw.rfind(",") > raw.rfind("."):
            raw = raw.replace(".", "").replace(",", ".")
        else:
            raw = raw.replace(",", "")
    else:
        raw = raw.replace(",", ".")

    match = _LEADING_NUMBER.match(raw)
    if match is None:
        raise ValueError(f"cannot parse price from {text!r}")
    return Decimal(match.group(0))


def format_price(amount: Decimal) -> str:
    return f"{amount.quantize(_CENTS, rounding=ROUND_HALF_UP)}{CURRENCY_SYMBOL}"
