"""Arrange a computed invoice into a fixed-layout document model.

The renderer performs no arithmetic: every number it shows comes from the
``ComputedInvoice`` or the record it wraps. The only layout switch between
screen preview and PDF export is the ``export_mode`` flag.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Tuple

from cinebill.core.errors import RenderError
from cinebill.core.profiles import DEFAULT_ISSUER, IssuerProfile

from .formatting import format_amount, format_count, format_date, format_percent, parse_date
from .models import ComputedInvoice, GstType
from .words import capitalize_first


LEDGER_COLUMNS = ("Date", "Show", "Aud.", "Collection", "Deduction")
PARTICULAR_COLUMNS = ("Particulars", "Amount")
ROW_HEIGHT = 22.0
EXPORT_BASELINE_OFFSET = -2.5
MAX_RANGE_DAYS = 62
SIGNATURE_CAPTION = "(Authorised Signatory)"


@dataclass(frozen=True, slots=True)
class LabeledValue:
    label: str
    value: str


@dataclass(frozen=True, slots=True)
class HeaderBlock:
    firm_name: str
    lines: Tuple[str, ...]
    logo_path: str | None = None


@dataclass(frozen=True, slots=True)
class DetailBlock:
    left: Tuple[LabeledValue, ...]
    right: Tuple[LabeledValue, ...]


@dataclass(frozen=True, slots=True)
class DualRow:
    """One visual row: five ledger cells beside a particulars label/amount."""

    left: Tuple[str, str, str, str, str]
    right: Tuple[str, str]


@dataclass(frozen=True, slots=True)
class DualTable:
    left_header: Tuple[str, ...]
    right_header: Tuple[str, ...]
    rows: Tuple[DualRow, ...]
    footer: DualRow


@dataclass(frozen=True, slots=True)
class TermsBlock:
    remark: str
    terms: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SignatureBlock:
    signatory: str
    caption: str = SIGNATURE_CAPTION
    stamp_path: str | None = None
    signature_path: str | None = None


@dataclass(frozen=True, slots=True)
class LayoutHints:
    export_mode: bool = False
    row_height: float = ROW_HEIGHT
    cell_baseline_offset: float = 0.0


@dataclass(frozen=True, slots=True)
class DocumentModel:
    """Ordered sections of one rendered invoice."""

    invoice_number: str
    title: str
    header: HeaderBlock
    details: DetailBlock
    table: DualTable
    hsn: Tuple[LabeledValue, ...]
    amount_in_words: str
    terms: TermsBlock
    signature: SignatureBlock
    layout: LayoutHints = field(default_factory=LayoutHints)

    @property
    def sections(self) -> Tuple[str, ...]:
        return ("header", "details", "table", "hsn", "amount_in_words", "terms", "signature")


def terms_and_conditions(issuer: IssuerProfile) -> Tuple[str, ...]:
    return (
        f"Payment is due within {issuer.payment_due_days} days from the date invoice. "
        f"Interest @{issuer.late_interest} will be charged for payment delayed beyond that period.",
        f"All cheques / drafts should be crossed and made payable to {issuer.firm_name}",
        f"Bank Detail: - {issuer.bank_name} A/C No.: {issuer.bank_account} IFSC CODE: {issuer.bank_ifsc}",
        f"BRANCH: {issuer.bank_branch}",
        f"Subject to {issuer.jurisdiction} jurisdiction",
    )


def _header(issuer: IssuerProfile) -> HeaderBlock:
    lines = (
        *issuer.address_lines,
        issuer.email,
        f"GST- {issuer.gst}",
        f"PAN No:- {issuer.pan}",
        f"LLP Reg. No.- {issuer.reg_no}",
    )
    return HeaderBlock(firm_name=issuer.firm_name, lines=lines, logo_path=issuer.logo_path)


def _details(invoice: ComputedInvoice) -> DetailBlock:
    r = invoice.record
    left = (
        LabeledValue("M/s", r.client_name),
        LabeledValue("Address", r.client_address),
        LabeledValue("PAN No.", r.pan_no),
        LabeledValue("GSTIN No.", r.gstin_no),
        LabeledValue("Property", r.property),
        LabeledValue("Centre", r.centre),
        LabeledValue("Place of Service", r.place_of_service),
        LabeledValue("Business Territory", r.business_territory),
    )
    screening = f"From {format_date(r.screening_from)} To {format_date(r.screening_to)}"
    right = (
        LabeledValue("Invoice No.", r.invoice_number),
        LabeledValue("Invoice Date", r.invoice_date),
        LabeledValue("Movie Name", r.movie_name),
        LabeledValue("Movie Version", r.movie_version),
        LabeledValue("Language", r.language),
        LabeledValue("Screen Formate", r.screen_format),
        LabeledValue("Release Week", r.release_week),
        LabeledValue("Cinema Week", r.cinema_week),
        LabeledValue("Screening Date", screening),
    )
    return DetailBlock(left=left, right=right)


def _ledger_rows(invoice: ComputedInvoice, expand_range: bool) -> List[Tuple[str, str, str, str, str]]:
    record = invoice.record
    rows = [
        (format_date(e.date), str(e.show), str(e.aud), format_amount(e.collection), "")
        for e in record.table
    ]
    if not expand_range:
        return rows

    start = parse_date(record.screening_from)
    end = parse_date(record.screening_to)
    if start is None or end is None or end < start or (end - start).days >= MAX_RANGE_DAYS:
        return rows

    by_date = {row[0]: row for row in rows}
    expanded = []
    day = start
    while day <= end:
        label = day.strftime("%d-%m-%Y")
        expanded.append(by_date.get(label, (label, "0", "0", format_amount(0), "")))
        day += timedelta(days=1)
    return expanded


def _deduction_rows(invoice: ComputedInvoice) -> List[Tuple[str, str, str, str, str]]:
    record = invoice.record
    rows = []
    if record.show_tax != 0:
        rows.append(("Show Tax", "", "", "", format_amount(record.show_tax)))
    if record.other_deduction != 0:
        rows.append(("Others", "", "", "", format_amount(record.other_deduction)))
    return rows


def _particulars(invoice: ComputedInvoice) -> List[Tuple[str, str]]:
    share = format_percent(invoice.params.share_percent)
    rows = [
        ("Total Collection", format_amount(invoice.total_collection)),
        ("Total Deduction", format_amount(invoice.total_deduction)),
        ("Net Collection", format_amount(invoice.net_collection)),
        (f"Dist. Consideration @{share}%", format_amount(invoice.distribution_consideration)),
        ("Taxable Amount", format_amount(invoice.taxable_amount)),
    ]
    if invoice.params.gst_type is GstType.IGST:
        rows.append((f"IGST @ {format_percent(invoice.igst_rate)}%", format_amount(invoice.igst)))
    else:
        rows.append((f"CGST @ {format_percent(invoice.cgst_rate)}%", format_amount(invoice.cgst)))
        rows.append((f"SGST @ {format_percent(invoice.sgst_rate)}%", format_amount(invoice.sgst)))
    return rows


def _dual_table(invoice: ComputedInvoice, expand_range: bool) -> DualTable:
    left = _ledger_rows(invoice, expand_range) + _deduction_rows(invoice)
    right = _particulars(invoice)
    height = max(len(left), len(right))
    blank_left = ("", "", "", "", "")
    blank_right = ("", "")
    left += [blank_left] * (height - len(left))
    right += [blank_right] * (height - len(right))

    record = invoice.record
    footer = DualRow(
        left=(
            "Total",
            format_count(record.total_show),
            format_count(record.total_aud),
            format_amount(invoice.total_collection),
            format_amount(invoice.total_deduction),
        ),
        right=("Net Amount", format_amount(invoice.net_amount)),
    )
    return DualTable(
        left_header=LEDGER_COLUMNS,
        right_header=PARTICULAR_COLUMNS,
        rows=tuple(DualRow(left=l, right=r) for l, r in zip(left, right)),
        footer=footer,
    )


def render(
    invoice: ComputedInvoice,
    *,
    issuer: IssuerProfile = DEFAULT_ISSUER,
    export_mode: bool = False,
    remark: str | None = None,
    expand_screening_range: bool = False,
) -> DocumentModel:
    """Lay out ``invoice`` as a DocumentModel.

    Args:
        invoice: Computed invoice to display.
        issuer: Firm identity printed in the header, terms and signature.
        export_mode: Layout hint for the PDF rasterizer.
        remark: Overrides the record's remark line.
        expand_screening_range: Show one ledger row for every day between
            the screening dates, zero-filled where no data exists.
    """

    if not isinstance(invoice, ComputedInvoice):
        raise RenderError(f"expected ComputedInvoice, got {type(invoice).__name__}")

    record = invoice.record
    number = record.invoice_number
    hints = LayoutHints(
        export_mode=export_mode,
        row_height=ROW_HEIGHT,
        cell_baseline_offset=EXPORT_BASELINE_OFFSET if export_mode else 0.0,
    )
    return DocumentModel(
        invoice_number=number,
        title=f"Invoice {number}".strip(),
        header=_header(issuer),
        details=_details(invoice),
        table=_dual_table(invoice, expand_screening_range),
        hsn=(
            LabeledValue("HSN/SAC Code", record.hsn_sac_code),
            LabeledValue("Description", record.description),
        ),
        amount_in_words=capitalize_first(invoice.amount_in_words),
        terms=TermsBlock(
            remark=(record.remark or "") if remark is None else remark,
            terms=terms_and_conditions(issuer),
        ),
        signature=SignatureBlock(
            signatory=issuer.signatory,
            stamp_path=issuer.stamp_path,
            signature_path=issuer.signature_path,
        ),
        layout=hints,
    )
