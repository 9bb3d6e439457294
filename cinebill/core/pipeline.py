"""Workbook-to-PDF batch pipeline with optional duplicate checks and persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List

from cinebill.config import ColumnConfig
from cinebill.services.invoice import (
    ComputedInvoice,
    InvoiceParameters,
    InvoiceState,
    advance,
    derive,
    find_duplicates,
    parameters_from_payload,
    prepare_invoices,
    record_from_payload,
    render,
    to_payload,
)
from cinebill.services.invoice.duplicates import DuplicatePair
from cinebill.services.store import InvoiceStoreClient, StoreError, select_created
from cinebill_io import bundle_zip, merge_pdfs, pdf_filename, read_grid, unique_path, write_document_pdf
from cinebill_io.pdf_io import PdfProcessingError

from .errors import DuplicateBlocked, ExportError, ExtractionError
from .logger import get_logger
from .profiles import DEFAULT_ISSUER, IssuerProfile, ensure_work_dirs


ProgressCB = Callable[[str, str], None]
DUPLICATE_POLICIES = ("warn", "skip", "block")


@dataclass
class BatchItem:
    index: int
    invoice: ComputedInvoice
    state: InvoiceState = InvoiceState.DRAFT
    pdf_path: Path | None = None
    skipped: bool = False
    source: str = "local"

    @property
    def invoice_number(self) -> str:
        return self.invoice.record.invoice_number


@dataclass
class BatchResult:
    items: List[BatchItem]
    duplicates: List[DuplicatePair] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    created_ids: List[str] = field(default_factory=list)
    zip_path: Path | None = None
    combined_path: Path | None = None

    @property
    def pdf_paths(self) -> List[Path]:
        return [item.pdf_path for item in self.items if item.pdf_path is not None]


class InvoicePipeline:
    """Coordinates Read -> Extract/Derive -> Duplicate check -> Persist -> Export."""

    def __init__(
        self,
        logger=None,
        store: InvoiceStoreClient | None = None,
        issuer: IssuerProfile | None = None,
        column_config: ColumnConfig | None = None,
    ) -> None:
        self.logger = logger or get_logger()
        self.store = store
        self.issuer = issuer or DEFAULT_ISSUER
        self.column_config = column_config
        self.work_dirs = ensure_work_dirs()

    def run(
        self,
        workbook: Path,
        params: InvoiceParameters | None = None,
        out_dir: Path | None = None,
        *,
        year: int,
        persist: bool = False,
        duplicate_policy: str = "warn",
        zip_name: str | None = None,
        combined: bool = False,
        expand_screening_range: bool = False,
        progress_cb: ProgressCB | None = None,
    ) -> BatchResult:
        def progress(stage: str, detail: str = ""):
            if progress_cb:
                progress_cb(stage, detail)
            self.logger.info("%s - %s", stage, detail)

        if duplicate_policy not in DUPLICATE_POLICIES:
            raise ValueError(f"duplicate_policy must be one of {DUPLICATE_POLICIES}")
        params = params or InvoiceParameters()
        out_dir = Path(out_dir) if out_dir else self.work_dirs["out"]
        workbook = Path(workbook)

        # 1. Read
        progress("1/5 read", f"loading {workbook.name}")
        try:
            grid = read_grid(workbook)
        except (FileNotFoundError, ValueError) as e:
            raise ExtractionError(ExtractionError.UNREADABLE_SOURCE, str(e)) from e

        # 2. Extract & derive
        progress("2/5 compute", "extracting rows")
        batch = prepare_invoices(grid, year=year, params=params, config=self.column_config)
        result = BatchResult(items=[BatchItem(index=i, invoice=inv) for i, inv in enumerate(batch.invoices)])
        if batch.issues:
            result.warnings.append(f"{len(batch.issues)} non-numeric cells were read as 0")
        progress("2/5 compute", f"{len(result.items)} invoices")

        # 3. Duplicate check against a fresh snapshot
        if self.store is not None:
            progress("3/5 duplicates", "comparing with stored invoices")
            self._check_duplicates(result, duplicate_policy)

        # 4. Persist
        if persist and self.store is not None:
            progress("4/5 persist", "uploading invoices")
            self._persist(result, workbook, params)
            persisted = sum(1 for item in result.items if item.state is InvoiceState.PERSISTED)
            progress("4/5 persist", f"{persisted} persisted")

        # 5. Render & export, sequentially in input order
        progress("5/5 export", f"writing PDFs to {out_dir}")
        taken: set[str] = set()
        for item in result.items:
            if item.skipped:
                continue
            document = render(
                item.invoice,
                issuer=self.issuer,
                export_mode=True,
                expand_screening_range=expand_screening_range,
            )
            target = unique_path(out_dir, pdf_filename(item.invoice_number, item.index), taken)
            try:
                item.pdf_path = write_document_pdf(document, target)
            except PdfProcessingError as e:
                raise ExportError(str(e)) from e

        pdfs = result.pdf_paths
        if pdfs and zip_name:
            name = zip_name if zip_name.lower().endswith(".zip") else f"{zip_name}.zip"
            result.zip_path = bundle_zip(pdfs, out_dir / name)
        if pdfs and combined:
            try:
                result.combined_path = merge_pdfs(pdfs, out_dir / "Invoices_combined.pdf")
            except PdfProcessingError as e:
                raise ExportError(str(e)) from e
        progress("5/5 export", f"{len(pdfs)} PDFs written")
        return result

    def _check_duplicates(self, result: BatchResult, policy: str) -> None:
        try:
            snapshot = self.store.list_invoices()
        except StoreError as e:
            msg = f"duplicate check skipped, store unavailable: {e}"
            self.logger.warning(msg)
            result.warnings.append(msg)
            return

        drafts = [item for item in result.items if item.state is InvoiceState.DRAFT]
        pairs = find_duplicates([item.invoice for item in drafts], snapshot)
        # Map pair indices back to batch positions.
        result.duplicates = [
            DuplicatePair(candidate_index=drafts[p.candidate_index].index, candidate=p.candidate, existing=p.existing)
            for p in pairs
        ]
        if not result.duplicates:
            return
        flagged = sorted({p.candidate_index for p in result.duplicates})
        if policy == "block":
            raise DuplicateBlocked(f"{len(flagged)} invoice(s) already exist in the store", result.duplicates)
        for idx in flagged:
            item = result.items[idx]
            label = item.invoice_number or f"#{idx + 1}"
            if policy == "skip":
                item.skipped = True
                result.warnings.append(f"invoice {label} skipped as duplicate")
            else:
                result.warnings.append(f"invoice {label} duplicates a stored invoice")

    def _persist(self, result: BatchResult, workbook: Path, params: InvoiceParameters) -> None:
        pending = [item for item in result.items if not item.skipped and item.state is InvoiceState.DRAFT]
        if not pending:
            return
        for item in pending:
            item.state = advance(item.state, InvoiceState.SUBMITTED)

        try:
            created = self.store.create_invoices(workbook, [to_payload(item.invoice) for item in pending])
            echoed = select_created(self.store.list_invoices(), created)
        except StoreError as e:
            msg = f"store unavailable, continuing with local data: {e}"
            self.logger.warning(msg)
            result.warnings.append(msg)
            for item in pending:
                item.state = advance(item.state, InvoiceState.DRAFT)
            return

        result.created_ids = created
        by_number: Dict[str, Any] = {}
        for inv in echoed:
            number = record_from_payload(inv.data).invoice_number or inv.invoice_id
            by_number.setdefault(number, inv)
        created_set = set(created)
        for item in pending:
            number = item.invoice_number
            stored = by_number.get(number)
            if stored is not None:
                item.invoice = derive(record_from_payload(stored.data), parameters_from_payload(stored.data, params))
                item.source = "store"
                item.state = advance(item.state, InvoiceState.PERSISTED)
            elif number and number in created_set:
                item.state = advance(item.state, InvoiceState.PERSISTED)
            else:
                item.state = advance(item.state, InvoiceState.DRAFT)
                result.warnings.append(f"invoice {number or f'#{item.index + 1}'} was not persisted")
