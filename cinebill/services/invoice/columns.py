"""Header resolution for uploaded invoice sheets."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from cinebill.config import ColumnConfig
from cinebill.core.errors import ExtractionError

from .cleaning import normalize_header, to_text


_INVOICE_TOKEN = re.compile(r"^[A-Za-z0-9]{2,}$")


@dataclass(frozen=True, slots=True)
class DayGroup:
    """Show/Audience/Collection column triplet for one ``DD-MM`` day."""

    token: str
    show_col: int
    aud_col: int
    coll_col: int


@dataclass(slots=True)
class ColumnMap:
    """Resolved column indices for one header row."""

    columns: Dict[str, int]
    missing: List[str]
    day_groups: List[DayGroup]


def locate_header_row(grid: Sequence[Sequence[object]], marker: str = "bill to") -> int:
    """Return the index of the first row holding the ``marker`` cell."""

    wanted = normalize_header(marker)
    for idx, row in enumerate(grid):
        if any(normalize_header(cell) == wanted for cell in row or ()):
            return idx
    raise ExtractionError(
        ExtractionError.NO_HEADER_FOUND,
        f"no header row containing {marker!r} found",
    )


def resolve_column(header_row: Sequence[object], candidates: Iterable[str]) -> int | None:
    """Index of the first header matching a candidate, in candidate priority."""

    normalized = [normalize_header(cell) for cell in header_row]
    for candidate in candidates:
        wanted = normalize_header(candidate)
        if wanted in normalized:
            return normalized.index(wanted)
    return None


def resolve_contains(header_row: Sequence[object], fragment: str) -> int | None:
    wanted = normalize_header(fragment)
    for idx, cell in enumerate(header_row):
        if wanted and wanted in normalize_header(cell):
            return idx
    return None


def extract_day_groups(header_row: Sequence[object], pattern: re.Pattern[str] | str) -> List[DayGroup]:
    """Find ``DD-MM SHOW`` headers; the next two columns are AUD and COLL.

    Groups are returned in header column order.
    """

    regex = re.compile(pattern, re.IGNORECASE) if isinstance(pattern, str) else pattern
    normalized = [normalize_header(cell) for cell in header_row]
    groups: List[DayGroup] = []
    i = 0
    while i < len(normalized):
        match = regex.match(normalized[i])
        if match:
            token = f"{match.group(1)}-{match.group(2)}"
            groups.append(DayGroup(token=token, show_col=i, aud_col=i + 1, coll_col=i + 2))
            i += 3
            continue
        i += 1
    return groups


def map_columns(header_row: Sequence[object], config: ColumnConfig) -> ColumnMap:
    """Resolve every configured field against ``header_row``."""

    columns: Dict[str, int] = {}
    missing: List[str] = []
    for canonical, candidates in config.columns.items():
        idx = resolve_column(header_row, candidates)
        if idx is None:
            missing.append(canonical)
        else:
            columns[canonical] = idx
    for canonical, fragment in config.contains.items():
        idx = resolve_contains(header_row, fragment)
        if idx is None:
            missing.append(canonical)
        else:
            columns[canonical] = idx

    for name in config.required:
        if name not in columns:
            raise ExtractionError(
                ExtractionError.MISSING_REQUIRED_COLUMN,
                f"required column {name!r} not found in header",
            )

    return ColumnMap(
        columns=columns,
        missing=missing,
        day_groups=extract_day_groups(header_row, config.day_group_regex),
    )


def guess_invoice_number(row: Sequence[object]) -> str:
    """Best-effort invoice number: first alphanumeric-only cell of 2+ chars.

    Used only when no invoice-number header is recognised. It can pick up an
    unrelated value such as a PAN on sheets laid out differently.
    """

    for cell in row:
        text = to_text(cell)
        if _INVOICE_TOKEN.match(text):
            return text
    return ""
