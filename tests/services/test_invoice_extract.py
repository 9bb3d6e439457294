"""Tests for turning sheet grids into invoice records."""

from __future__ import annotations

from decimal import Decimal

import pytest

from cinebill.config import load_column_config
from cinebill.core.errors import ExtractionError
from cinebill.services.invoice.columns import (
    extract_day_groups,
    guess_invoice_number,
    locate_header_row,
    resolve_column,
)
from cinebill.services.invoice.extract import day_token_to_date, extract_records


def test_locate_header_row_collapses_whitespace_and_case() -> None:
    grid = [["Weekly sheet"], [None, "  Bill   TO "], ["PVR"]]
    assert locate_header_row(grid) == 1


def test_locate_header_row_without_marker() -> None:
    with pytest.raises(ExtractionError) as exc_info:
        locate_header_row([["CLIENT", "AMOUNT"], ["PVR", 10]])
    assert exc_info.value.reason == ExtractionError.NO_HEADER_FOUND


def test_resolve_column_tolerates_trailing_space_and_case() -> None:
    candidates = load_column_config().columns["invoice_number"]

    assert resolve_column(["BILL TO", "Invoice No. "], candidates) == 1
    assert resolve_column(["invoice no.", "BILL TO"], candidates) == 0
    assert resolve_column(["BILL TO", "ADDRESS"], candidates) is None


def test_extract_day_groups_in_header_order() -> None:
    header = ["23-05 SHOW", "23-05 AUD", "23-05 COLL", "24-05 SHOW", "24-05 AUD", "24-05 COLL"]

    groups = extract_day_groups(header, load_column_config().day_group_regex)

    assert [(g.token, g.show_col, g.aud_col, g.coll_col) for g in groups] == [
        ("23-05", 0, 1, 2),
        ("24-05", 3, 4, 5),
    ]


def test_day_token_uses_given_year() -> None:
    assert day_token_to_date("23-05", 2025) == "23/05/2025"
    assert day_token_to_date("01-12", 2026) == "01/12/2026"


def test_extract_records_sample(sample_grid) -> None:
    result = extract_records(sample_grid, year=2025)

    assert result.header_row == 2
    assert [r.invoice_number for r in result.records] == ["FFS001", "FFS002"]
    assert result.skipped_rows == [4]

    first = result.records[0]
    assert first.client_name == "PVR LIMITED"
    assert first.property == "City Center"
    assert first.business_territory == "CI"
    assert first.hsn_sac_code == "997332"
    assert first.description == "Theatrical Exhibition Rights"
    assert len(first.table) == 1
    assert first.table[0].date == "23/05/2025"
    assert first.table[0].collection == Decimal("12000.50")
    assert first.total_show == Decimal("4")
    assert first.total_aud == Decimal("120")
    assert first.total_collection == Decimal("12000.50")
    assert first.show_tax == Decimal("500")
    assert first.other_deduction == Decimal("100")


def test_zero_days_are_omitted_but_partial_days_kept(sample_grid) -> None:
    second = extract_records(sample_grid, year=2025).records[1]

    # 24-05 has shows but no collection: still a ledger row.
    assert [(e.date, e.show, e.aud, e.collection) for e in second.table] == [
        ("23/05/2025", 3, 80, Decimal("4800")),
        ("24/05/2025", 2, 0, Decimal("0")),
    ]


def test_declared_total_wins_over_ledger_sum(sample_grid) -> None:
    second = extract_records(sample_grid, year=2025).records[1]
    assert second.total_collection == Decimal("5000")
    assert second.total_show == Decimal("5")


def test_non_numeric_cells_coerce_to_zero_and_are_recorded(sample_grid) -> None:
    sample_grid[3][15] = "n/a"

    result = extract_records(sample_grid, year=2025)

    assert result.records[0].table[0].aud == 0
    assert [(i.row, i.column, i.value) for i in result.issues] == [(3, "23-05 AUD", "n/a")]


def test_no_data_rows(sample_grid) -> None:
    grid = sample_grid[:3]
    with pytest.raises(ExtractionError) as exc_info:
        extract_records(grid, year=2025)
    assert exc_info.value.reason == ExtractionError.NO_DATA_ROWS


def test_invoice_number_guessed_when_no_header(sample_grid) -> None:
    for row in sample_grid[2:]:
        del row[0]

    records = extract_records(sample_grid, year=2025).records

    # Best effort: the first alphanumeric-only cell is the PAN.
    assert records[0].invoice_number == "AAFCA4593G"


def test_guess_invoice_number_skips_punctuated_values() -> None:
    assert guess_invoice_number(["PVR LIMITED", "12,000", 7.0, "FF01"]) == "FF01"
    assert guess_invoice_number(["-", "A"]) == ""
