"""Invoice computation and document rendering service package."""

from .api import PreparedBatch, compute_invoices, prepare_invoices
from .compute import derive, recompute
from .duplicates import DuplicatePair, find_duplicates
from .extract import extract_records
from .models import (
    ComputedInvoice,
    GstType,
    InvoiceParameters,
    LedgerEntry,
    RawInvoiceRecord,
    parameters_from_payload,
    record_from_payload,
    to_payload,
)
from .render import DocumentModel, render
from .state import InvoiceState, advance
from .words import to_words

__all__ = [
    "ComputedInvoice",
    "DocumentModel",
    "DuplicatePair",
    "GstType",
    "InvoiceParameters",
    "InvoiceState",
    "LedgerEntry",
    "PreparedBatch",
    "RawInvoiceRecord",
    "advance",
    "compute_invoices",
    "derive",
    "extract_records",
    "find_duplicates",
    "parameters_from_payload",
    "prepare_invoices",
    "recompute",
    "record_from_payload",
    "render",
    "to_payload",
    "to_words",
]
