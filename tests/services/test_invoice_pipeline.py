"""End-to-end batch runs with an in-memory invoice store."""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Any, Mapping, Sequence

import pytest

from cinebill.core.errors import DuplicateBlocked, ExtractionError
from cinebill.core.pipeline import InvoicePipeline
from cinebill.services.invoice import InvoiceState, to_payload
from cinebill.services.store import PersistedInvoice, StoreRetryableError


class FakeStore:
    def __init__(self, existing: Sequence[PersistedInvoice] = (), fail_create: bool = False) -> None:
        self.invoices = list(existing)
        self.fail_create = fail_create
        self.uploads: list[tuple[Path, list[Mapping[str, Any]]]] = []

    def list_invoices(self) -> list[PersistedInvoice]:
        return list(self.invoices)

    def create_invoices(self, sheet_path: Path, records: Sequence[Mapping[str, Any]]) -> list[str]:
        if self.fail_create:
            raise StoreRetryableError("Request timed out")
        self.uploads.append((Path(sheet_path), list(records)))
        ids = []
        for record in records:
            number = str(record["invoiceNo"])
            self.invoices.append(
                PersistedInvoice(_id=f"id-{number}", invoice_id=number, data=dict(record, movieName="NARIVETTA (ECHO)"))
            )
            ids.append(number)
        return ids


@pytest.fixture
def workbook(make_workbook) -> Path:
    return make_workbook()


def _existing_copy_of_first(workbook: Path, tmp_path: Path) -> PersistedInvoice:
    local = InvoicePipeline().run(workbook, out_dir=tmp_path / "probe", year=2025)
    return PersistedInvoice(_id="old", invoice_id="FFS001", data=to_payload(local.items[0].invoice))


def test_local_export_writes_one_pdf_per_invoice(workbook: Path, tmp_path: Path) -> None:
    stages: list[str] = []
    out = tmp_path / "out"

    result = InvoicePipeline().run(
        workbook,
        out_dir=out,
        year=2025,
        zip_name="batch",
        combined=True,
        progress_cb=lambda stage, _detail: stages.append(stage),
    )

    assert [p.name for p in result.pdf_paths] == ["Invoice_FFS001.pdf", "Invoice_FFS002.pdf"]
    assert all(item.state is InvoiceState.DRAFT for item in result.items)
    assert result.combined_path == out / "Invoices_combined.pdf"
    with zipfile.ZipFile(result.zip_path) as bundle:
        assert sorted(bundle.namelist()) == ["Invoice_FFS001.pdf", "Invoice_FFS002.pdf"]
    assert stages[0] == "1/5 read"
    assert stages[-1] == "5/5 export"
    assert "3/5 duplicates" not in stages


def test_persist_uses_echoed_data(workbook: Path, tmp_path: Path) -> None:
    store = FakeStore()

    result = InvoicePipeline(store=store).run(workbook, out_dir=tmp_path / "out", year=2025, persist=True)

    assert result.created_ids == ["FFS001", "FFS002"]
    assert all(item.state is InvoiceState.PERSISTED for item in result.items)
    assert all(item.source == "store" for item in result.items)
    assert result.items[0].invoice.record.movie_name == "NARIVETTA (ECHO)"
    assert str(result.items[0].invoice.net_amount) == "6053.67"
    assert store.uploads[0][0] == workbook


def test_store_failure_keeps_local_drafts(workbook: Path, tmp_path: Path) -> None:
    result = InvoicePipeline(store=FakeStore(fail_create=True)).run(
        workbook, out_dir=tmp_path / "out", year=2025, persist=True
    )

    assert all(item.state is InvoiceState.DRAFT for item in result.items)
    assert any("store unavailable" in w for w in result.warnings)
    assert len(result.pdf_paths) == 2


def test_duplicate_warn_policy_still_exports(workbook: Path, tmp_path: Path) -> None:
    store = FakeStore([_existing_copy_of_first(workbook, tmp_path)])

    result = InvoicePipeline(store=store).run(workbook, out_dir=tmp_path / "out", year=2025)

    assert [p.candidate_index for p in result.duplicates] == [0]
    assert any("FFS001" in w for w in result.warnings)
    assert len(result.pdf_paths) == 2


def test_duplicate_skip_policy(workbook: Path, tmp_path: Path) -> None:
    store = FakeStore([_existing_copy_of_first(workbook, tmp_path)])

    result = InvoicePipeline(store=store).run(
        workbook, out_dir=tmp_path / "out", year=2025, persist=True, duplicate_policy="skip"
    )

    assert result.items[0].skipped
    assert [p.name for p in result.pdf_paths] == ["Invoice_FFS002.pdf"]
    assert [r["invoiceNo"] for r in store.uploads[0][1]] == ["FFS002"]


def test_duplicate_block_policy(workbook: Path, tmp_path: Path) -> None:
    store = FakeStore([_existing_copy_of_first(workbook, tmp_path)])
    out = tmp_path / "out"

    with pytest.raises(DuplicateBlocked) as exc_info:
        InvoicePipeline(store=store).run(workbook, out_dir=out, year=2025, duplicate_policy="block")

    assert len(exc_info.value.pairs) == 1
    assert not out.exists() or not list(out.glob("*.pdf"))


def test_unreadable_source(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError) as exc_info:
        InvoicePipeline().run(tmp_path / "missing.xlsx", year=2025)
    assert exc_info.value.reason == ExtractionError.UNREADABLE_SOURCE


def test_corrupt_workbook_is_unreadable_source(tmp_path: Path) -> None:
    broken = tmp_path / "broken.xlsx"
    broken.write_bytes(b"PK\x03\x04 truncated workbook body")

    with pytest.raises(ExtractionError) as exc_info:
        InvoicePipeline().run(broken, year=2025)
    assert exc_info.value.reason == ExtractionError.UNREADABLE_SOURCE


def test_unknown_duplicate_policy(workbook: Path) -> None:
    with pytest.raises(ValueError):
        InvoicePipeline().run(workbook, year=2025, duplicate_policy="merge")
