"""Data models for invoice extraction, derivation and exchange."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .cleaning import to_decimal, to_int, to_text


ZERO = Decimal("0")
DEFAULT_HSN_SAC = "997332"
DEFAULT_DESCRIPTION = "Theatrical Exhibition Rights"

LOGGER = logging.getLogger(__name__)


class GstType(str, Enum):
    """Mutually exclusive GST regimes."""

    CGST_SGST = "CGST/SGST"
    IGST = "IGST"

    @classmethod
    def parse(cls, value: object) -> "GstType":
        if isinstance(value, GstType):
            return value
        text = str(value or "").strip().upper().replace("_", "/")
        if text in ("IGST",):
            return cls.IGST
        if text in ("CGST/SGST", "GST", "CGST", "SGST"):
            return cls.CGST_SGST
        raise ValueError(f"unknown gst type: {value!r}")


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """One day of screenings for an invoice."""

    date: str
    show: int = 0
    aud: int = 0
    collection: Decimal = ZERO
    deduction: str = ""
    deduction_amt: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class RawInvoiceRecord:
    """Normalized invoice row prior to any computation.

    Aggregates hold the sheet-declared totals when present, otherwise the sum
    over all day groups of the source row.
    """

    invoice_number: str = ""
    client_name: str = ""
    client_address: str = ""
    pan_no: str = ""
    gstin_no: str = ""
    property: str = ""
    centre: str = ""
    place_of_service: str = ""
    business_territory: str = ""
    invoice_date: str = ""
    movie_name: str = ""
    movie_version: str = ""
    language: str = ""
    screen_format: str = ""
    release_week: str = ""
    cinema_week: str = ""
    screening_from: str = ""
    screening_to: str = ""
    hsn_sac_code: str = DEFAULT_HSN_SAC
    description: str = DEFAULT_DESCRIPTION
    table: tuple[LedgerEntry, ...] = ()
    total_show: Decimal = ZERO
    total_aud: Decimal = ZERO
    total_collection: Decimal = ZERO
    show_tax: Decimal = ZERO
    other_deduction: Decimal = ZERO
    due_date: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    payment_terms: str | None = None
    notes: str | None = None
    remark: str | None = None

    def with_changes(self, **changes: Any) -> "RawInvoiceRecord":
        """Return a new record with the given editable fields replaced."""

        return replace(self, **changes)


class InvoiceParameters(BaseModel):
    """User-chosen computation parameters applied uniformly to a batch."""

    model_config = ConfigDict(frozen=True)

    share_percent: Decimal = Field(default=Decimal("45"))
    gst_type: GstType = GstType.CGST_SGST
    gst_rate: Decimal = Field(default=Decimal("18"))

    @field_validator("share_percent", "gst_rate", mode="before")
    @classmethod
    def _as_decimal(cls, value: object) -> Decimal:
        return to_decimal(value)

    @field_validator("gst_type", mode="before")
    @classmethod
    def _as_gst_type(cls, value: object) -> GstType:
        return GstType.parse(value)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "InvoiceParameters":
        data = data or {}
        kwargs: Dict[str, Any] = {}
        if data.get("share_percent") is not None:
            kwargs["share_percent"] = data["share_percent"]
        if data.get("gst_type") is not None:
            kwargs["gst_type"] = data["gst_type"]
        if data.get("gst_rate") is not None:
            kwargs["gst_rate"] = data["gst_rate"]
        return cls(**kwargs)


@dataclass(frozen=True, slots=True)
class ComputedInvoice:
    """A record, its parameters and every derived monetary figure."""

    record: RawInvoiceRecord
    params: InvoiceParameters
    total_collection: Decimal
    total_deduction: Decimal
    net_collection: Decimal
    distribution_consideration: Decimal
    taxable_amount: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    net_amount: Decimal
    amount_in_words: str
    cgst_rate: Decimal = ZERO
    sgst_rate: Decimal = ZERO
    igst_rate: Decimal = ZERO

    @property
    def gst_amount(self) -> Decimal:
        return self.cgst + self.sgst + self.igst


@dataclass(slots=True)
class CoercionIssue:
    """A numeric cell that could not be parsed and was read as zero."""

    row: int
    column: str
    value: object


@dataclass(slots=True)
class ExtractionResult:
    """Outcome of turning a cell grid into invoice records."""

    records: List[RawInvoiceRecord]
    header_row: int
    columns: Dict[str, int]
    missing_columns: List[str]
    day_groups: List[Any] = field(default_factory=list)
    skipped_rows: List[int] = field(default_factory=list)
    issues: List[CoercionIssue] = field(default_factory=list)


# --- payload codec -------------------------------------------------------

_TEXT_KEYS: Dict[str, str] = {
    "client_name": "clientName",
    "client_address": "clientAddress",
    "pan_no": "panNo",
    "gstin_no": "gstinNo",
    "property": "property",
    "centre": "centre",
    "place_of_service": "placeOfService",
    "business_territory": "businessTerritory",
    "invoice_date": "invoiceDate",
    "movie_name": "movieName",
    "movie_version": "movieVersion",
    "language": "language",
    "screen_format": "screenFormat",
    "release_week": "releaseWeek",
    "cinema_week": "cinemaWeek",
    "screening_from": "screeningFrom",
    "screening_to": "screeningTo",
    "hsn_sac_code": "hsnSacCode",
    "description": "description",
}

_OPTIONAL_KEYS: Dict[str, str] = {
    "due_date": "dueDate",
    "client_email": "clientEmail",
    "client_phone": "clientPhone",
    "payment_terms": "paymentTerms",
    "notes": "notes",
    "remark": "remark",
}

_AMOUNT_KEYS: Dict[str, str] = {
    "total_show": "totalShow",
    "total_aud": "totalAud",
    "total_collection": "totalCollection",
    "show_tax": "showTax",
    "other_deduction": "otherDeduction",
}

_ALIASES: Dict[str, tuple[str, ...]] = {
    "screeningFrom": ("screeningDateFrom",),
    "screeningTo": ("screeningDateTo",),
    "releaseWeek": ("week",),
}

IDENTITY_KEYS = ("invoiceNo", "In_no", "Invoice No", "invoiceId")


def _number(value: Decimal) -> float | int:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def ledger_to_payload(entry: LedgerEntry) -> Dict[str, Any]:
    return {
        "date": entry.date,
        "show": entry.show,
        "aud": entry.aud,
        "collection": _number(entry.collection),
        "deduction": entry.deduction,
        "deductionAmt": _number(entry.deduction_amt),
    }


def record_to_payload(record: RawInvoiceRecord) -> Dict[str, Any]:
    """Serialize a record into the camelCase shape stored by the backend."""

    payload: Dict[str, Any] = {"invoiceNo": record.invoice_number}
    for attr, key in _TEXT_KEYS.items():
        payload[key] = getattr(record, attr)
    payload["table"] = [ledger_to_payload(e) for e in record.table]
    for attr, key in _AMOUNT_KEYS.items():
        payload[key] = _number(getattr(record, attr))
    for attr, key in _OPTIONAL_KEYS.items():
        value = getattr(record, attr)
        if value is not None:
            payload[key] = value
    return payload


def to_payload(computed: ComputedInvoice) -> Dict[str, Any]:
    """Serialize a computed invoice including parameters and derived totals."""

    payload = record_to_payload(computed.record)
    params = computed.params
    payload.update(
        {
            "share": _number(params.share_percent),
            "gstType": params.gst_type.value,
            "gstRate": _number(params.gst_rate),
            "totalAmount": float(computed.total_collection),
            "subtotal": float(computed.taxable_amount),
            "gstAmount": float(computed.gst_amount),
            "finalAmount": float(computed.net_amount),
            "netAmount": float(computed.net_amount),
            "amountInWords": computed.amount_in_words,
        }
    )
    return payload


def resolve_identity(data: Mapping[str, Any]) -> str:
    for key in IDENTITY_KEYS:
        text = to_text(data.get(key))
        if text:
            return text
    return ""


def _lookup(data: Mapping[str, Any], key: str) -> Any:
    if key in data:
        return data[key]
    for alias in _ALIASES.get(key, ()):
        if alias in data:
            return data[alias]
    return None


def ledger_from_payload(item: Mapping[str, Any]) -> LedgerEntry:
    return LedgerEntry(
        date=to_text(item.get("date")),
        show=to_int(item.get("show")),
        aud=to_int(item.get("aud")),
        collection=to_decimal(item.get("collection")),
        deduction=to_text(item.get("deduction")),
        deduction_amt=to_decimal(item.get("deductionAmt")),
    )


def record_from_payload(data: Mapping[str, Any]) -> RawInvoiceRecord:
    """Rebuild a record from backend data, resolving identity aliases once."""

    kwargs: Dict[str, Any] = {"invoice_number": resolve_identity(data)}
    for attr, key in _TEXT_KEYS.items():
        value = _lookup(data, key)
        if value is not None and to_text(value):
            kwargs[attr] = to_text(value)
    for attr, key in _AMOUNT_KEYS.items():
        kwargs[attr] = to_decimal(data.get(key))
    for attr, key in _OPTIONAL_KEYS.items():
        value = data.get(key)
        kwargs[attr] = None if value is None else to_text(value)
    table = data.get("table") or []
    kwargs["table"] = tuple(ledger_from_payload(item) for item in table if isinstance(item, Mapping))
    return RawInvoiceRecord(**kwargs)


def parameters_from_payload(
    data: Mapping[str, Any], default: InvoiceParameters | None = None
) -> InvoiceParameters:
    """Recover share/GST parameters from echoed data, keeping defaults otherwise."""

    base = default or InvoiceParameters()
    updates: Dict[str, Any] = {}
    share = data.get("share", data.get("distributionPercent"))
    if share not in (None, ""):
        updates["share_percent"] = share
    gst_type = data.get("gstType", data.get("taxType"))
    if gst_type not in (None, ""):
        try:
            updates["gst_type"] = GstType.parse(gst_type)
        except ValueError:
            LOGGER.warning("Ignoring unknown gstType %r in payload", gst_type)
    if data.get("gstRate") not in (None, ""):
        updates["gst_rate"] = data["gstRate"]
    if not updates:
        return base
    merged = base.model_dump()
    merged.update(updates)
    return InvoiceParameters(**merged)
