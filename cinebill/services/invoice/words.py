"""Indian-English amount-in-words conversion."""

from __future__ import annotations

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP

from .cleaning import to_decimal


TOO_LARGE = "Amount too large"
MAX_WORDS_AMOUNT = 999_999_999

_ONES = [
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
    "Seventeen", "Eighteen", "Nineteen",
]
_TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]


def _two_digits(n: int) -> str:
    if n > 19:
        word = _TENS[n // 10]
        if n % 10:
            word += " " + _ONES[n % 10]
        return word
    return _ONES[n]


def number_to_words(num: int) -> str:
    """Whole number in the crore/lakh/thousand/hundred system."""

    if num == 0:
        return "Zero"
    if num > MAX_WORDS_AMOUNT:
        return TOO_LARGE

    crore = num // 10_000_000
    lakh = (num // 100_000) % 100
    thousand = (num // 1000) % 100
    hundred = (num // 100) % 10
    rest = num % 100

    parts: list[str] = []
    if crore:
        parts.append(f"{_two_digits(crore)} Crore")
    if lakh:
        parts.append(f"{_two_digits(lakh)} Lakh")
    if thousand:
        parts.append(f"{_two_digits(thousand)} Thousand")
    if hundred:
        parts.append(f"{_ONES[hundred]} Hundred")
    if rest:
        if parts:
            parts.append("and")
        parts.append(_two_digits(rest))
    return " ".join(parts)


def to_words(amount: object) -> str:
    """``"<words> Rupees [and <paise> Paise] only"`` for a currency amount.

    Amounts above 999,999,999 rupees yield ``"Amount too large"``. Negative
    amounts are spelt from their magnitude with a ``Minus`` prefix.
    """

    value = to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    prefix = ""
    if value < 0:
        prefix = "Minus "
        value = -value
    rupees = int(value.to_integral_value(rounding=ROUND_DOWN))
    paise = int((value - rupees) * 100)
    if rupees > MAX_WORDS_AMOUNT:
        return TOO_LARGE

    words = f"{prefix}{number_to_words(rupees)} Rupees"
    if paise > 0:
        words += f" and {number_to_words(paise)} Paise"
    return words + " only"


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:] if text else text
