"""Excel input helpers."""

# Module responsibilities:
# - Load the first sheet of an uploaded workbook as a raw 2-D cell grid.
# - Leave header detection to the invoice extractor; no inference happens here.
# - Emit structured logs for traceability.

from __future__ import annotations

from pathlib import Path
from typing import List, Union
import zipfile

import pandas as pd

from .utils.log import get_logger

logger = get_logger("excel_reader")

SheetType = Union[str, int, None]
SUPPORTED_SUFFIXES = {".xlsx", ".xlsm", ".xls", ".csv"}


def _cell(value: object) -> object:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return value
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


def read_grid(path: Path, sheet: SheetType = None) -> List[List[object]]:
    """Load a workbook sheet as rows of cell values.

    Args:
        path: Path to the workbook (``.xlsx``, ``.xls`` or ``.csv``).
        sheet: Sheet name or index; defaults to the first sheet.

    Returns:
        List of rows; blank cells are ``None``.

    Raises:
        FileNotFoundError: When the file does not exist.
        ValueError: When the file type is unsupported or pandas cannot parse it.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Source workbook not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported workbook type: {suffix or path.name}")

    logger.info("Reading workbook grid", extra={"path": str(path), "sheet": sheet})

    try:
        if suffix == ".csv":
            df = pd.read_csv(path, header=None, dtype=object, keep_default_na=True)
        else:
            df = pd.read_excel(path, sheet_name=0 if sheet is None else sheet, header=None, dtype=object)
    except ValueError as exc:
        logger.error("Failed to read workbook", extra={"error": str(exc)})
        raise
    except zipfile.BadZipFile as exc:
        logger.error("Workbook is not a valid archive", extra={"path": str(path), "error": str(exc)})
        raise ValueError(f"Workbook is corrupt or not an Excel file: {path.name}") from exc

    if isinstance(df, dict):
        raise ValueError("read_grid expects a single sheet; received multiple sheets")

    grid = [[_cell(v) for v in row] for row in df.itertuples(index=False, name=None)]
    logger.info("Workbook grid loaded", extra={"rows": len(grid), "columns": df.shape[1]})
    return grid
