"""Conversions between integer cents and pt-BR decimal-comma amounts."""
from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

_AMOUNT_RE = re.compile(r"^-?\d+(\.\d+)?$")
_CENT = Decimal("0.01")


def _clean_amount(text: str) -> str:
    text = text.replace("R$", "").replace("\xa0", "").replace(" ", "").strip()
    if "," in text:
        # 1.234,56 -> 1234.56
        return text.replace(".", "").replace(",", ".")
    if text.count(".") > 1:
        return text.replace(".", "")
    return text


def try_parse_cents(value: str | int | float | Decimal | None) -> int | None:
    """Parse a monetary amount into cents, or ``None`` when it is not a number.

    Strings use the pt-BR convention (``"12,34"``, ``"1.234,56"``, ``"R$ 5,00"``);
    a single dot with no comma is read as a decimal point (``"12.50"``).
    Numeric values are amounts in reais.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return None
    elif isinstance(value, str):
        text = _clean_amount(value)
        if not _AMOUNT_RE.match(text):
            return None
        amount = Decimal(text)
    else:
        return None
    if not amount.is_finite():
        return None
    return int((amount.quantize(_CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def parse_cents(value: str | int | float | Decimal | None, default: int = 0) -> int:
    parsed = try_parse_cents(value)
    return default if parsed is None else parsed


def format_cents(cents: int) -> str:
    """Format cents as a bare decimal-comma string: ``1234 -> "12,34"``."""
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(int(cents)), 100)
    return f"{sign}{reais},{centavos:02d}"


def format_brl(cents: int) -> str:
    """Display form with thousands separators: ``123456 -> "R$ 1.234,56"``."""
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(int(cents)), 100)
    grouped = f"{reais:,}".replace(",", ".")
    return f"{sign}R$ {grouped},{centavos:02d}"
