"""Public entry points for the invoice engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from cinebill.config import ColumnConfig

from .compute import derive
from .extract import extract_records
from .models import CoercionIssue, ComputedInvoice, InvoiceParameters, RawInvoiceRecord


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PreparedBatch:
    """Records extracted from one sheet and their computed invoices."""

    records: List[RawInvoiceRecord]
    invoices: List[ComputedInvoice]
    missing_columns: List[str] = field(default_factory=list)
    skipped_rows: List[int] = field(default_factory=list)
    issues: List[CoercionIssue] = field(default_factory=list)


def compute_invoices(
    records: Sequence[RawInvoiceRecord], params: InvoiceParameters | None = None
) -> List[ComputedInvoice]:
    params = params or InvoiceParameters()
    return [derive(record, params) for record in records]


def prepare_invoices(
    grid: Sequence[Sequence[object]],
    *,
    year: int,
    params: InvoiceParameters | None = None,
    config: ColumnConfig | None = None,
) -> PreparedBatch:
    """Extract every invoice row of ``grid`` and derive its figures."""

    result = extract_records(grid, year=year, config=config)
    invoices = compute_invoices(result.records, params)
    LOGGER.info("Prepared %s invoices", len(invoices))
    return PreparedBatch(
        records=result.records,
        invoices=invoices,
        missing_columns=result.missing_columns,
        skipped_rows=result.skipped_rows,
        issues=result.issues,
    )
