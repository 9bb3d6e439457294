"""Exact all-fields duplicate detection against persisted invoices."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Union

from .formatting import format_amount
from .models import ComputedInvoice, RawInvoiceRecord, record_to_payload, resolve_identity, to_payload


LOGGER = logging.getLogger(__name__)

# Compared as stored. Absent keys compare as None on both sides.
COMPARED_FIELDS = (
    "clientName",
    "invoiceDate",
    "dueDate",
    "invoiceNo",
    "totalAmount",
    "subtotal",
    "gstAmount",
    "finalAmount",
    "share",
    "gstType",
    "gstRate",
    "clientEmail",
    "clientPhone",
    "clientAddress",
    "paymentTerms",
    "notes",
    "table",
    "otherDeduction",
)

# Compared through the display formatter so 5000 and "5,000.00" agree.
DISPLAY_FIELDS = ("totalShow", "totalAud", "totalCollection", "showTax")

Candidate = Union[ComputedInvoice, RawInvoiceRecord, Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class DuplicatePair:
    """A candidate that matches an existing invoice on every compared field."""

    candidate_index: int
    candidate: Any
    existing: Any


def _with_identity(data: Mapping[str, Any]) -> Dict[str, Any]:
    payload = dict(data)
    number = resolve_identity(payload)
    if number:
        payload["invoiceNo"] = number
    return payload


def candidate_payload(candidate: Candidate) -> Dict[str, Any]:
    if isinstance(candidate, ComputedInvoice):
        return to_payload(candidate)
    if isinstance(candidate, RawInvoiceRecord):
        return record_to_payload(candidate)
    return _with_identity(candidate)


def existing_payload(existing: Any) -> Dict[str, Any]:
    """Stored ``data`` with the invoice number resolved under ``invoiceNo``."""

    data = getattr(existing, "data", None)
    if data is None and isinstance(existing, Mapping):
        data = existing.get("data", existing)
    return _with_identity(data or {})


def _display(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    return format_amount(value)


def _table(payload: Mapping[str, Any]) -> Any:
    table = payload.get("table")
    if isinstance(table, (list, tuple)):
        return [dict(item) if isinstance(item, Mapping) else item for item in table]
    return table


def payloads_match(left: Mapping[str, Any], right: Mapping[str, Any]) -> bool:
    """True when every compared field is equal on both payloads."""

    for key in COMPARED_FIELDS:
        if key == "table":
            if _table(left) != _table(right):
                return False
        elif left.get(key) != right.get(key):
            return False
    for key in DISPLAY_FIELDS:
        if _display(left, key) != _display(right, key):
            return False
    return True


def find_duplicates(candidates: Sequence[Candidate], existing: Sequence[Any]) -> List[DuplicatePair]:
    """Compare every candidate with every existing invoice.

    All matches are reported, so one candidate may pair with several
    existing records.
    """

    existing_payloads = [(item, existing_payload(item)) for item in existing]
    pairs: List[DuplicatePair] = []
    for idx, candidate in enumerate(candidates):
        payload = candidate_payload(candidate)
        for item, stored in existing_payloads:
            if payloads_match(payload, stored):
                pairs.append(DuplicatePair(candidate_index=idx, candidate=candidate, existing=item))
    if pairs:
        LOGGER.warning("Found %s duplicate pair(s) among %s candidates", len(pairs), len(candidates))
    return pairs
