"""Computation helpers for revenue share and GST derivation."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from .models import ComputedInvoice, GstType, InvoiceParameters, RawInvoiceRecord
from .words import to_words


HUNDRED = Decimal("100")
TWO = Decimal("2")


def money(value: Decimal, digits: int = 2) -> Decimal:
    quant = Decimal("1").scaleb(-digits)
    return value.quantize(quant, rounding=ROUND_HALF_UP)


def resolve_total_collection(record: RawInvoiceRecord) -> Decimal:
    """Declared total when nonzero, else the ledger sum."""

    if record.total_collection != 0:
        return record.total_collection
    return sum((entry.collection for entry in record.table), Decimal("0"))


def derive(record: RawInvoiceRecord, params: InvoiceParameters | None = None) -> ComputedInvoice:
    """Compute every derived figure for ``record``.

    Each intermediate value is rounded half-up to 2 places before it feeds
    the next step. Out-of-range percentages are computed literally.
    """

    params = params or InvoiceParameters()

    total_collection = money(resolve_total_collection(record))
    total_deduction = money(record.show_tax + record.other_deduction)
    net_collection = money(total_collection - total_deduction)
    distribution = money(net_collection * params.share_percent / HUNDRED)
    taxable = distribution

    zero = Decimal("0.00")
    cgst = sgst = igst = zero
    cgst_rate = sgst_rate = igst_rate = Decimal("0")
    if params.gst_type is GstType.IGST:
        igst_rate = params.gst_rate
        igst = money(taxable * params.gst_rate / HUNDRED)
    else:
        cgst_rate = sgst_rate = params.gst_rate / TWO
        cgst = money(taxable * cgst_rate / HUNDRED)
        sgst = cgst

    net_amount = money(taxable + igst + cgst + sgst)

    return ComputedInvoice(
        record=record,
        params=params,
        total_collection=total_collection,
        total_deduction=total_deduction,
        net_collection=net_collection,
        distribution_consideration=distribution,
        taxable_amount=taxable,
        cgst=cgst,
        sgst=sgst,
        igst=igst,
        net_amount=net_amount,
        amount_in_words=to_words(net_amount),
        cgst_rate=cgst_rate,
        sgst_rate=sgst_rate,
        igst_rate=igst_rate,
    )


def recompute(invoice: ComputedInvoice, params: InvoiceParameters | None = None, **changes) -> ComputedInvoice:
    """Produce a fresh invoice after editing record fields or parameters."""

    record = invoice.record.with_changes(**changes) if changes else invoice.record
    return derive(record, params or invoice.params)
