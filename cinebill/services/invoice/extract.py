"""Turn a spreadsheet cell grid into normalized invoice records."""

from __future__ import annotations

import logging
from collections import Counter
from decimal import Decimal
from typing import Any, Dict, List, Sequence

from cinebill.config import ColumnConfig, load_column_config
from cinebill.core.errors import ExtractionError

from .cleaning import parse_number, to_text
from .columns import ColumnMap, DayGroup, guess_invoice_number, locate_header_row, map_columns
from .models import (
    DEFAULT_DESCRIPTION,
    DEFAULT_HSN_SAC,
    CoercionIssue,
    ExtractionResult,
    LedgerEntry,
    RawInvoiceRecord,
)


LOGGER = logging.getLogger(__name__)

_TEXT_FIELDS = (
    "client_address",
    "pan_no",
    "gstin_no",
    "property",
    "centre",
    "place_of_service",
    "business_territory",
    "invoice_date",
    "movie_name",
    "movie_version",
    "language",
    "screen_format",
    "release_week",
    "cinema_week",
    "screening_from",
    "screening_to",
)


def day_token_to_date(token: str, year: int) -> str:
    """Rewrite a ``DD-MM`` header token as ``DD/MM/<year>``."""

    day, month = token.split("-", 1)
    return f"{day}/{month}/{year}"


class _RowReader:
    """Reads one data row, collecting numeric coercion issues."""

    def __init__(self, row: Sequence[object], row_index: int, header: Sequence[object], issues: List[CoercionIssue]):
        self.row = row
        self.row_index = row_index
        self.header = header
        self.issues = issues

    def cell(self, idx: int | None) -> object:
        if idx is None or idx < 0 or idx >= len(self.row):
            return None
        return self.row[idx]

    def text(self, idx: int | None) -> str:
        return to_text(self.cell(idx))

    def number(self, idx: int | None) -> Decimal:
        value = self.cell(idx)
        number, ok = parse_number(value)
        if not ok:
            column = to_text(self.header[idx]) if idx is not None and idx < len(self.header) else str(idx)
            self.issues.append(CoercionIssue(row=self.row_index, column=column, value=value))
        return number


def _declared_or_sum(declared: Decimal, values: List[Decimal]) -> Decimal:
    if declared != 0:
        return declared
    return sum(values, Decimal("0"))


def extract_rows(
    grid: Sequence[Sequence[object]],
    header_index: int,
    column_map: ColumnMap,
    *,
    year: int,
    defaults: Dict[str, str] | None = None,
    issues: List[CoercionIssue] | None = None,
    skipped: List[int] | None = None,
) -> List[RawInvoiceRecord]:
    """Build one record per data row below ``header_index``.

    Rows with an empty client-name cell are skipped. A ledger entry is only
    emitted for days with a nonzero show, audience or collection value, while
    derived totals sum the raw values of every day group.
    """

    header = list(grid[header_index])
    cols = column_map.columns
    defaults = defaults or {}
    issues = issues if issues is not None else []
    skipped = skipped if skipped is not None else []
    records: List[RawInvoiceRecord] = []

    for offset, row in enumerate(grid[header_index + 1:], start=header_index + 1):
        row = list(row or ())
        reader = _RowReader(row, offset, header, issues)
        client_name = reader.text(cols.get("client_name"))
        if not client_name:
            skipped.append(offset)
            continue

        kwargs: Dict[str, Any] = {"client_name": client_name}
        for name in _TEXT_FIELDS:
            kwargs[name] = reader.text(cols.get(name))

        if "invoice_number" in cols:
            kwargs["invoice_number"] = reader.text(cols["invoice_number"])
        else:
            kwargs["invoice_number"] = guess_invoice_number(row)

        kwargs["hsn_sac_code"] = reader.text(cols.get("hsn_sac_code")) or defaults.get("hsn_sac_code", DEFAULT_HSN_SAC)
        kwargs["description"] = reader.text(cols.get("description")) or defaults.get("description", DEFAULT_DESCRIPTION)

        table: List[LedgerEntry] = []
        shows: List[Decimal] = []
        auds: List[Decimal] = []
        collections: List[Decimal] = []
        for group in column_map.day_groups:
            show = reader.number(group.show_col)
            aud = reader.number(group.aud_col)
            collection = reader.number(group.coll_col)
            shows.append(show)
            auds.append(aud)
            collections.append(collection)
            if show == 0 and aud == 0 and collection == 0:
                continue
            table.append(
                LedgerEntry(
                    date=day_token_to_date(group.token, year),
                    show=int(show),
                    aud=int(aud),
                    collection=collection,
                )
            )

        kwargs["table"] = tuple(table)
        kwargs["total_show"] = _declared_or_sum(reader.number(cols.get("total_show")), shows)
        kwargs["total_aud"] = _declared_or_sum(reader.number(cols.get("total_aud")), auds)
        kwargs["total_collection"] = _declared_or_sum(reader.number(cols.get("total_collection")), collections)
        kwargs["show_tax"] = reader.number(cols.get("show_tax"))
        kwargs["other_deduction"] = reader.number(cols.get("other_deduction"))

        records.append(RawInvoiceRecord(**kwargs))

    return records


def extract_records(
    grid: Sequence[Sequence[object]],
    *,
    year: int,
    config: ColumnConfig | None = None,
) -> ExtractionResult:
    """Locate the header, resolve columns and extract every invoice row.

    Raises:
        ExtractionError: no header row, a required column is absent, or no
            data rows remain after skipping blank client names.
    """

    config = config or load_column_config()
    rows = [list(r) if r is not None else [] for r in grid]
    header_index = locate_header_row(rows, config.header_marker)
    header = rows[header_index]
    LOGGER.info("Header row located at index %s", header_index)

    column_map = map_columns(header, config)
    LOGGER.info(
        "Resolved columns: %s; missing: %s; day groups: %s",
        sorted(column_map.columns),
        column_map.missing,
        [g.token for g in column_map.day_groups],
    )
    if "invoice_number" not in column_map.columns:
        LOGGER.warning("No invoice number column recognised; guessing from row values")

    issues: List[CoercionIssue] = []
    skipped: List[int] = []
    records = extract_rows(
        rows,
        header_index,
        column_map,
        year=year,
        defaults=config.defaults,
        issues=issues,
        skipped=skipped,
    )
    if skipped:
        LOGGER.info("Skipped %s rows without a client name", len(skipped))
    if issues:
        per_column = Counter(issue.column for issue in issues)
        LOGGER.warning("Non-numeric cells read as 0: %s", dict(per_column))
    if not records:
        raise ExtractionError(ExtractionError.NO_DATA_ROWS, "no data found below the header row")

    return ExtractionResult(
        records=records,
        header_row=header_index,
        columns=dict(column_map.columns),
        missing_columns=list(column_map.missing),
        day_groups=list(column_map.day_groups),
        skipped_rows=skipped,
        issues=issues,
    )


__all__ = ["DayGroup", "day_token_to_date", "extract_records", "extract_rows"]
