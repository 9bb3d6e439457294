from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List, Sequence

import pytest
from openpyxl import Workbook

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import cinebill.core.logger as core_logger
import cinebill.core.profiles as core_profiles


HEADER = [
    "In_no",
    "BILL TO",
    "ADDRESS",
    "PAN NO.",
    "GST NUMBER",
    "CINEMA NAME",
    "CENTRE",
    "PLACE OF SERVICE",
    "CIRCUIT",
    "Movie Name",
    "Language",
    "Invoice Date",
    "Screening Date From",
    "Screening Date To",
    "23-05 SHOW",
    "23-05 AUD",
    "23-05 COLL",
    "24-05 SHOW",
    "24-05 AUD",
    "24-05 COLL",
    "TOTAL SHOW",
    "TOTAL AUDIENCE",
    "TOTAL COLLECTION",
    "SHOW TAX",
    "OTHERS",
]


def _row(number, client, cinema, day1, day2, totals, show_tax, others) -> list:
    return [
        number,
        client,
        "1ST FLOOR, CITY CENTER MALL, RAIPUR",
        "AAFCA4593G",
        "22AAFCA4593G1ZT",
        cinema,
        "RAIPUR",
        "CHHATISGARH",
        "CI",
        "NARIVETTA",
        "HINDI",
        "23/06/2025",
        "23/05/2025",
        "24/05/2025",
        *day1,
        *day2,
        *totals,
        show_tax,
        others,
    ]


def build_sample_grid() -> List[list]:
    """Title rows, a header, two invoices and one row without a client."""

    return [
        ["FIRST FILM STUDIOS - WEEKLY COLLECTION"],
        [],
        list(HEADER),
        _row("FFS001", "PVR LIMITED", "City Center", (4, 120, "12,000.50"), (0, 0, 0), (None, None, None), 500, 100),
        _row(None, None, None, (1, 1, 1), (0, 0, 0), (None, None, None), 0, 0),
        _row("FFS002", "INOX LEISURE", "Magneto", (3, 80, 4800), (2, 0, 0), (5, 80, 5000), 0, 0),
    ]


@pytest.fixture
def sample_grid() -> List[list]:
    return build_sample_grid()


def write_workbook(path: Path, rows: Sequence[Sequence[object]]) -> Path:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(list(row))
    wb.save(path)
    return path


@pytest.fixture
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
    def _make(rows: Sequence[Sequence[object]] | None = None, name: str = "collections.xlsx") -> Path:
        return write_workbook(tmp_path / name, rows if rows is not None else build_sample_grid())

    return _make


@pytest.fixture(autouse=True)
def _isolated_work_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep logs and default output out of the project workspace."""

    work = tmp_path / "work"
    monkeypatch.setattr(core_profiles, "_work_dir", lambda: work)
    monkeypatch.setattr(core_logger, "_work_dir", lambda: work)
    monkeypatch.setattr(core_logger, "_LOGGER", None, raising=False)
    return work
