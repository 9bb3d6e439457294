"""Filesystem helpers for batch export output."""

# Module responsibilities:
# - Derive per-invoice PDF file names that stay stable across a batch.
# - Resolve output paths without silently overwriting earlier files.

from __future__ import annotations

import re
from pathlib import Path
from typing import Set

_UNSAFE = re.compile(r"[\\/:*?\"<>|\s]+")


def pdf_filename(invoice_number: str, position: int) -> str:
    """``Invoice_<number>.pdf``, or the 1-based batch position when unnumbered.

    Args:
        invoice_number: Invoice number of the record, possibly empty.
        position: Zero-based index of the invoice in the batch.
    """

    number = _UNSAFE.sub("_", (invoice_number or "").strip()).strip("_")
    return f"Invoice_{number or position + 1}.pdf"


def unique_path(directory: Path, filename: str, taken: Set[str] | None = None) -> Path:
    """Return ``directory/filename`` with a numeric suffix if already used.

    Args:
        directory: Target directory; created when missing.
        filename: Desired file name.
        taken: Names already claimed in this batch; updated in place.
    """

    directory.mkdir(parents=True, exist_ok=True)
    taken = taken if taken is not None else set()
    stem, suffix = Path(filename).stem, Path(filename).suffix
    candidate = filename
    counter = 2
    while candidate in taken or (directory / candidate).exists():
        candidate = f"{stem}_{counter}{suffix}"
        counter += 1
    taken.add(candidate)
    return directory / candidate
