"""Display formatting shared by the renderer, duplicate check and reports."""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from .cleaning import to_decimal, to_text


_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_DMY_DATE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
_DMY_FIXED = re.compile(r"^\d{2}[/-]\d{2}[/-]\d{4}$")


def group_indian(digits: str) -> str:
    """Group an integer digit string as 12,34,567."""

    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_amount(value: object, digits: int = 2) -> str:
    """en-IN amount text with a fixed number of decimals."""

    number = to_decimal(value).quantize(Decimal("1").scaleb(-digits), rounding=ROUND_HALF_UP)
    sign = "-" if number < 0 else ""
    text = f"{abs(number):.{digits}f}"
    whole, _, frac = text.partition(".")
    grouped = group_indian(whole)
    return f"{sign}{grouped}.{frac}" if digits else f"{sign}{grouped}"


def format_count(value: object) -> str:
    number = to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if number < 0 else ""
    return sign + group_indian(str(abs(int(number))))


def format_percent(value: object) -> str:
    """Percent without trailing zeros: 45, 9, 4.5."""

    number = to_decimal(value)
    if number == number.to_integral_value():
        return str(int(number))
    return format(number.normalize(), "f")


def format_date(value: object) -> str:
    """Display a date as DD-MM-YYYY.

    ``DD/MM/YYYY`` keeps its order with dashes, ``YYYY-MM-DD`` (optionally
    with a time part) is transposed, anything else passes through.
    """

    if isinstance(value, datetime):
        return value.strftime("%d-%m-%Y")
    if isinstance(value, date):
        return value.strftime("%d-%m-%Y")
    text = to_text(value)
    if _DMY_FIXED.match(text):
        return text.replace("/", "-")
    match = _ISO_DATE.match(text)
    if match:
        year, month, day = match.groups()
        return f"{day}-{month}-{year}"
    return text


def parse_date(value: object) -> date | None:
    """Parse ISO, ``YYYY-MM-DD``, ``DD/MM/YYYY`` or ``DD-MM-YYYY`` text."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = to_text(value)
    if not text:
        return None
    try:
        match = _ISO_DATE.match(text)
        if match:
            year, month, day = (int(p) for p in match.groups())
            return date(year, month, day)
        match = _DMY_DATE.match(text)
        if match:
            day, month, year = (int(p) for p in match.groups())
            return date(year, month, day)
    except ValueError:
        return None
    return None
