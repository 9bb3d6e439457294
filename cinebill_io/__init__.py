"""`cinebill_io` top-level package exports the IO helpers for workbook and PDF flows."""

# Module responsibilities:
# - Re-export high-level interfaces for workbook reading and PDF output so consumers have a stable API surface.
# - Provide package version placeholder for future packaging.

from __future__ import annotations

from .excel_reader import read_grid
from .pdf_io import (
    PdfInfo,
    PdfProcessingError,
    bundle_zip,
    merge_pdfs,
    read_info,
    write_document_pdf,
)
from .utils.paths import pdf_filename, unique_path

__all__ = [
    "read_grid",
    "PdfInfo",
    "PdfProcessingError",
    "bundle_zip",
    "merge_pdfs",
    "read_info",
    "write_document_pdf",
    "pdf_filename",
    "unique_path",
]

__version__ = "0.1.0"
