"""Cleaning helpers for sheet cells and payload values."""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

import pandas as pd


_WS = re.compile(r"\s+")
_CURRENCY_CHARS = ("₹", "Rs.", "INR")


def is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def normalize_header(value: object) -> str:
    """Collapse whitespace, trim and lowercase a header cell."""

    if is_missing(value):
        return ""
    return _WS.sub(" ", str(value)).strip().lower()


def to_text(value: object) -> str:
    """Render a cell as display text; integral floats lose their ``.0``."""

    if is_missing(value):
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def parse_number(value: object) -> tuple[Decimal, bool]:
    """Parse a numeric cell.

    Returns ``(number, ok)``. Blank cells are ``(0, True)``; unparseable cells
    are ``(0, False)`` so callers can record the coercion.
    """

    if is_missing(value):
        return Decimal("0"), True
    if isinstance(value, bool):
        return Decimal(int(value)), True
    if isinstance(value, Decimal):
        return (value, True) if value.is_finite() else (Decimal("0"), False)
    if isinstance(value, int):
        return Decimal(value), True
    if isinstance(value, float):
        return Decimal(str(value)), True
    text = str(value).strip()
    for token in _CURRENCY_CHARS:
        text = text.replace(token, "")
    text = text.replace(",", "").strip()
    try:
        number = Decimal(text)
    except (InvalidOperation, ValueError):
        return Decimal("0"), False
    if not number.is_finite():
        return Decimal("0"), False
    return number, True


def to_decimal(value: object) -> Decimal:
    return parse_number(value)[0]


def to_int(value: object) -> int:
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
