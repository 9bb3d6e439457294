"""Unit tests for invoice PDF output."""

# Module responsibilities:
# - Ensure rendered invoices draw to a readable single-page PDF.
# - Validate merge, ZIP bundling and file naming helpers.

from __future__ import annotations

import zipfile
from decimal import Decimal
from pathlib import Path

import pytest

from cinebill.services.invoice import InvoiceParameters, LedgerEntry, RawInvoiceRecord, derive, render
from cinebill_io.pdf_io import PdfProcessingError, bundle_zip, merge_pdfs, read_info, write_document_pdf
from cinebill_io.utils.paths import pdf_filename, unique_path


def _document(number: str = "FFS001", days: int = 2):
    table = tuple(
        LedgerEntry(date=f"{d:02d}/05/2025", show=4, aud=100 + d, collection=Decimal("1000.50"))
        for d in range(1, days + 1)
    )
    record = RawInvoiceRecord(
        invoice_number=number,
        client_name="PVR LIMITED",
        client_address="1ST FLOOR, CITY CENTER MALL, VIDHAN SABHA ROAD, SADDU, RAIPUR, CHHATISGARH",
        table=table,
        show_tax=Decimal("120"),
    )
    return render(derive(record, InvoiceParameters()), export_mode=True)


def test_write_document_pdf_single_page(tmp_path: Path) -> None:
    out = write_document_pdf(_document(), tmp_path / "Invoice_FFS001.pdf")

    info = read_info(out)
    assert info.page_count == 1
    assert info.metadata.get("Title") == "Invoice FFS001"


def test_long_ledger_flows_onto_next_page(tmp_path: Path) -> None:
    out = write_document_pdf(_document(days=31), tmp_path / "long.pdf")

    assert read_info(out).page_count >= 2


def test_merge_and_zip(tmp_path: Path) -> None:
    first = write_document_pdf(_document("A1"), tmp_path / "Invoice_A1.pdf")
    second = write_document_pdf(_document("A2"), tmp_path / "Invoice_A2.pdf")

    merged = merge_pdfs([first, second], tmp_path / "all.pdf")
    assert read_info(merged).page_count == 2

    archive = bundle_zip([first, second], tmp_path / "batch.zip")
    with zipfile.ZipFile(archive) as zf:
        assert sorted(zf.namelist()) == ["Invoice_A1.pdf", "Invoice_A2.pdf"]


def test_read_info_rejects_garbage(tmp_path: Path) -> None:
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"not a pdf")
    with pytest.raises(PdfProcessingError):
        read_info(path)


def test_read_info_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_info(tmp_path / "missing.pdf")


def test_pdf_filename_falls_back_to_position() -> None:
    assert pdf_filename("FFS001", 0) == "Invoice_FFS001.pdf"
    assert pdf_filename("", 2) == "Invoice_3.pdf"
    assert pdf_filename("INV/07 A", 0) == "Invoice_INV_07_A.pdf"


def test_unique_path_avoids_collisions(tmp_path: Path) -> None:
    taken: set[str] = set()
    first = unique_path(tmp_path, "Invoice_1.pdf", taken)
    second = unique_path(tmp_path, "Invoice_1.pdf", taken)
    assert first.name == "Invoice_1.pdf"
    assert second.name == "Invoice_1_2.pdf"
