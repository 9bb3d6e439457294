"""Tests for the fixed invoice document layout."""

from __future__ import annotations

from decimal import Decimal

import pytest

from cinebill.core.errors import RenderError
from cinebill.core.profiles import DEFAULT_ISSUER
from cinebill.services.invoice import InvoiceParameters, LedgerEntry, RawInvoiceRecord, derive, prepare_invoices, render


@pytest.fixture
def first_invoice(sample_grid):
    return prepare_invoices(sample_grid, year=2025).invoices[0]


def test_sections_in_fixed_order(first_invoice) -> None:
    doc = render(first_invoice)

    assert doc.sections == ("header", "details", "table", "hsn", "amount_in_words", "terms", "signature")
    assert doc.invoice_number == "FFS001"
    assert doc.header.firm_name == DEFAULT_ISSUER.firm_name
    assert doc.signature.signatory == f"For {DEFAULT_ISSUER.firm_name}"


def test_particulars_order_and_values(first_invoice) -> None:
    doc = render(first_invoice)

    right = [row.right for row in doc.table.rows]
    assert right == [
        ("Total Collection", "12,000.50"),
        ("Total Deduction", "600.00"),
        ("Net Collection", "11,400.50"),
        ("Dist. Consideration @45%", "5,130.23"),
        ("Taxable Amount", "5,130.23"),
        ("CGST @ 9%", "461.72"),
        ("SGST @ 9%", "461.72"),
    ]
    assert doc.table.footer.right == ("Net Amount", "6,053.67")


def test_ledger_side_padded_with_deductions(first_invoice) -> None:
    left = [row.left for row in render(first_invoice).table.rows]

    assert left[0] == ("23-05-2025", "4", "120", "12,000.50", "")
    assert left[1] == ("Show Tax", "", "", "", "500.00")
    assert left[2] == ("Others", "", "", "", "100.00")
    assert left[3:] == [("", "", "", "", "")] * 4


def test_footer_totals(first_invoice) -> None:
    footer = render(first_invoice).table.footer
    assert footer.left == ("Total", "4", "120", "12,000.50", "600.00")


def test_igst_replaces_split_rows() -> None:
    record = RawInvoiceRecord(invoice_number="X1", client_name="PVR", total_collection=Decimal("10000"))
    invoice = derive(record, InvoiceParameters(gst_type="IGST"))

    labels = [row.right[0] for row in render(invoice).table.rows]

    assert labels[-1] == "IGST @ 18%"
    assert not any(label.startswith(("CGST", "SGST")) for label in labels)


def test_long_ledger_pads_particulars() -> None:
    table = tuple(
        LedgerEntry(date=f"{day:02d}/05/2025", show=1, aud=10, collection=Decimal("100"))
        for day in range(1, 11)
    )
    invoice = derive(RawInvoiceRecord(client_name="PVR", table=table))

    rows = render(invoice).table.rows

    assert len(rows) == 10
    assert rows[-1].right == ("", "")


def test_details_and_words(first_invoice) -> None:
    doc = render(first_invoice)

    right = {item.label: item.value for item in doc.details.right}
    assert right["Screening Date"] == "From 23-05-2025 To 24-05-2025"
    assert right["Movie Name"] == "NARIVETTA"
    assert doc.amount_in_words == "Six Thousand and Fifty Three Rupees and Sixty Seven Paise only"
    assert doc.hsn[0].value == "997332"


def test_export_mode_only_changes_layout_hints(first_invoice) -> None:
    screen = render(first_invoice)
    export = render(first_invoice, export_mode=True)

    assert screen.layout.cell_baseline_offset == 0.0
    assert export.layout.export_mode is True
    assert export.layout.cell_baseline_offset < 0
    assert export.table == screen.table
    assert export.details == screen.details


def test_expand_screening_range_zero_fills(sample_grid) -> None:
    invoice = prepare_invoices(sample_grid, year=2025).invoices[0]

    rows = [row.left for row in render(invoice, expand_screening_range=True).table.rows]

    assert rows[0] == ("23-05-2025", "4", "120", "12,000.50", "")
    assert rows[1] == ("24-05-2025", "0", "0", "0.00", "")
    assert rows[2][0] == "Show Tax"


def test_remark_override(first_invoice) -> None:
    assert render(first_invoice).terms.remark == ""
    assert render(first_invoice, remark="Paid in part").terms.remark == "Paid in part"
    assert len(render(first_invoice).terms.terms) == 5


def test_render_rejects_raw_records() -> None:
    with pytest.raises(RenderError):
        render(RawInvoiceRecord(client_name="PVR"))
