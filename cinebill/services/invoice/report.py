"""Reporting utilities over persisted invoices."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from cinebill.core.errors import ReportError

from .cleaning import to_decimal, to_text
from .compute import derive
from .duplicates import existing_payload
from .formatting import parse_date
from .models import InvoiceParameters, parameters_from_payload, record_from_payload


LOGGER = logging.getLogger(__name__)

SHEET_NAME = "Invoice Report"
LEADING_COLUMNS = ("SR. NO", "LANGUAGE", "CINEMA NAME", "City", "CIRCUIT")
TRAILING_COLUMNS = ("TOTAL", "Show Tax", "NET", "%", "SHARE", "IGST", "CGST", "SGST", "TOTAL NET")
_COLUMN_WIDTHS = {
    "SR. NO": 8,
    "LANGUAGE": 12,
    "CINEMA NAME": 30,
    "City": 15,
    "CIRCUIT": 15,
    "%": 8,
}
_DEFAULT_WIDTH = 12


@dataclass(slots=True)
class ReportSummary:
    total_invoices: int
    total_revenue: Decimal
    this_month_invoices: int
    this_month_revenue: Decimal
    last_month_invoices: int
    last_month_revenue: Decimal


def _created_at(invoice: Any) -> Any:
    if isinstance(invoice, Mapping):
        return invoice.get("createdAt")
    return getattr(invoice, "created_at", None)


def invoice_date(invoice: Any) -> date | None:
    """Invoice date from the data, falling back to the creation timestamp."""

    data = existing_payload(invoice)
    return parse_date(data.get("invoiceDate")) or parse_date(_created_at(invoice))


def filter_invoices(
    invoices: Sequence[Any],
    start: date | None = None,
    end: date | None = None,
    movie: str | None = None,
) -> List[Any]:
    """Select invoices inside ``[start, end]`` and/or for ``movie``.

    The date filter applies only when both bounds are given; invoices with
    no parseable date are then excluded.
    """

    selected = []
    for inv in invoices:
        if start is not None and end is not None:
            when = invoice_date(inv)
            if when is None or not (start <= when <= end):
                continue
        if movie and existing_payload(inv).get("movieName") != movie:
            continue
        selected.append(inv)
    return selected


def _date_key(label: str) -> tuple:
    parsed = parse_date(label)
    return (0, parsed, label) if parsed else (1, date.min, label)


def report_dates(invoices: Sequence[Any]) -> List[str]:
    labels = set()
    for inv in invoices:
        for row in existing_payload(inv).get("table") or []:
            label = to_text(row.get("date")) if isinstance(row, Mapping) else ""
            if label:
                labels.add(label)
    return sorted(labels, key=_date_key)


def _money(value: Decimal) -> float:
    return float(value)


def build_report_rows(
    invoices: Sequence[Any], default_params: InvoiceParameters | None = None
) -> tuple[List[str], List[Dict[str, Any]]]:
    """One row per invoice with per-date collections and derived money."""

    dates = report_dates(invoices)
    header = [*LEADING_COLUMNS, *dates, *TRAILING_COLUMNS]
    rows: List[Dict[str, Any]] = []
    for idx, inv in enumerate(invoices, start=1):
        data = existing_payload(inv)
        computed = derive(record_from_payload(data), parameters_from_payload(data, default_params))
        record = computed.record
        daily: Dict[str, Decimal] = {}
        for entry in record.table:
            if entry.date and entry.collection:
                daily[entry.date] = entry.collection

        row: Dict[str, Any] = {
            "SR. NO": idx,
            "LANGUAGE": record.language,
            "CINEMA NAME": record.property,
            "City": record.centre,
            "CIRCUIT": record.business_territory,
        }
        for label in dates:
            row[label] = _money(daily.get(label, Decimal("0")))
        row.update(
            {
                "TOTAL": _money(computed.total_collection),
                "Show Tax": _money(record.show_tax),
                "NET": _money(computed.net_collection),
                "%": _money(computed.params.share_percent),
                "SHARE": _money(computed.distribution_consideration),
                "IGST": _money(computed.igst),
                "CGST": _money(computed.cgst),
                "SGST": _money(computed.sgst),
                "TOTAL NET": _money(computed.net_amount),
            }
        )
        rows.append(row)
    return header, rows


def _slug(text: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", text)


def report_filename(start: date | None = None, end: date | None = None, movie: str | None = None) -> str:
    name = "Invoice_Report"
    if start is not None and end is not None:
        name += f"_{start.strftime('%d-%m-%Y')}_to_{end.strftime('%d-%m-%Y')}"
    if movie:
        name += f"_{_slug(movie)}"
    if (start is None and end is None) and movie:
        name = f"Invoice_Report_{_slug(movie)}_AllDates"
    return name + ".xlsx"


def export_report(
    invoices: Sequence[Any],
    output_dir: Path,
    *,
    start: date | None = None,
    end: date | None = None,
    movie: str | None = None,
    default_params: InvoiceParameters | None = None,
) -> Path:
    """Filter ``invoices`` and write the report workbook into ``output_dir``."""

    if not ((start is not None and end is not None) or movie):
        raise ReportError("select at least one filter (date range or movie name)")
    selected = filter_invoices(invoices, start, end, movie)
    if not selected:
        raise ReportError("no invoices match the selected filters")

    header, rows = build_report_rows(selected, default_params)

    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / report_filename(start, end, movie)

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME
    ws.append(header)
    for row in rows:
        ws.append([row.get(col) for col in header])
    for col_idx, col in enumerate(header, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = _COLUMN_WIDTHS.get(col, _DEFAULT_WIDTH)
        if col not in ("SR. NO", "LANGUAGE", "CINEMA NAME", "City", "CIRCUIT", "%"):
            for cell in ws.iter_rows(min_row=2, min_col=col_idx, max_col=col_idx):
                cell[0].number_format = "0.00"

    wb.save(path)
    LOGGER.info("Report written: %s (%s invoices)", path, len(rows))
    return path


def _previous_month(today: date) -> tuple[int, int]:
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


def summarize(invoices: Sequence[Any], today: date | None = None) -> ReportSummary:
    """Invoice counts and collection revenue overall, this month and last."""

    today = today or date.today()
    last_year, last_month = _previous_month(today)
    summary = ReportSummary(0, Decimal("0"), 0, Decimal("0"), 0, Decimal("0"))
    for inv in invoices:
        revenue = to_decimal(existing_payload(inv).get("totalCollection"))
        summary.total_invoices += 1
        summary.total_revenue += revenue
        when = invoice_date(inv)
        if when is None:
            continue
        if (when.year, when.month) == (today.year, today.month):
            summary.this_month_invoices += 1
            summary.this_month_revenue += revenue
        elif (when.year, when.month) == (last_year, last_month):
            summary.last_month_invoices += 1
            summary.last_month_revenue += revenue
    return summary
