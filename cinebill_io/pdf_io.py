"""PDF drawing, inspection and bundling utilities."""

# Module responsibilities:
# - Draw a rendered invoice DocumentModel onto an A4 page with reportlab.
# - Read page count/metadata and merge batch PDFs with PyPDF2.
# - Pack a batch of PDFs into a ZIP archive.
# - Guard against encrypted or malformed PDFs with explicit failures.

from __future__ import annotations

import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Mapping, Sequence

from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PdfReadError
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from .utils.log import get_logger

logger = get_logger("pdf_io")

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
MARGIN = 12 * mm
# Screen pixels in the layout hints map to points at this scale.
PX_TO_PT = 0.6

# Share of each table half taken by its columns.
_LEDGER_WIDTHS = (0.24, 0.11, 0.11, 0.24, 0.30)
_PARTICULAR_WIDTHS = (0.60, 0.40)
_LEFT_SHARE = 0.58


class PdfProcessingError(RuntimeError):
    """Raised when PDF operations fail."""


@dataclass(frozen=True)
class PdfInfo:
    """Metadata summary for a PDF file."""

    path: Path
    page_count: int
    metadata: Dict[str, str]
    encrypted: bool


class _Page:
    """Cursor over a reportlab canvas that starts a new page when full."""

    def __init__(self, c: canvas.Canvas, row_height: float, baseline_offset: float) -> None:
        self.c = c
        self.width, self.height = A4
        self.y = self.height - MARGIN
        self.row_height = row_height
        self.baseline_offset = baseline_offset

    def ensure(self, needed: float) -> None:
        if self.y - needed < MARGIN:
            self.c.showPage()
            self.y = self.height - MARGIN

    def text_y(self, row_bottom: float, size: float) -> float:
        return row_bottom + (self.row_height - size) / 2 + 1 + self.baseline_offset

    def cell(self, x: float, w: float, row_bottom: float, text: str, *, align: str = "left", bold: bool = False, size: float = 8) -> None:
        if not text:
            return
        self.c.setFont(FONT_BOLD if bold else FONT, size)
        ty = self.text_y(row_bottom, size)
        if align == "right":
            self.c.drawRightString(x + w - 2, ty, text)
        elif align == "center":
            self.c.drawCentredString(x + w / 2, ty, text)
        else:
            self.c.drawString(x + 2, ty, text)


def _image(c: canvas.Canvas, path: str | None, x: float, y: float, w: float, h: float) -> None:
    if not path:
        return
    if not Path(path).exists():
        logger.warning("Image asset missing", extra={"path": path})
        return
    c.drawImage(path, x, y, width=w, height=h, preserveAspectRatio=True, mask="auto")


def _draw_header(page: _Page, document, logo: str | None) -> None:
    c = page.c
    header = document.header
    _image(c, logo or header.logo_path, MARGIN, page.y - 24 * mm, 30 * mm, 24 * mm)
    center = page.width / 2 + 15 * mm
    c.setFont(FONT_BOLD, 14)
    c.drawCentredString(center, page.y - 6 * mm, header.firm_name)
    c.setFont(FONT, 8)
    line_y = page.y - 11 * mm
    for line in header.lines:
        c.drawCentredString(center, line_y, line)
        line_y -= 3.6 * mm
    page.y = min(page.y - 27 * mm, line_y - 2 * mm)


def _draw_details(page: _Page, document) -> None:
    c = page.c
    details = document.details
    col_w = (page.width - 2 * MARGIN) / 2
    line_h = 4.2 * mm
    top = page.y

    def column(items, x: float) -> float:
        y = top - line_h
        for item in items:
            wrapped = simpleSplit(item.value or "", FONT, 8, col_w - 32 * mm) or [""]
            c.setFont(FONT_BOLD, 8)
            c.drawString(x + 2, y, item.label)
            c.setFont(FONT, 8)
            for part in wrapped:
                c.drawString(x + 30 * mm, y, part)
                y -= line_h
        return y

    left_end = column(details.left, MARGIN)
    right_end = column(details.right, MARGIN + col_w)
    bottom = min(left_end, right_end) + line_h / 2
    c.setLineWidth(0.5)
    c.rect(MARGIN, bottom, 2 * col_w, top - bottom)
    c.line(MARGIN + col_w, bottom, MARGIN + col_w, top)
    page.y = bottom


def _columns(x: float, width: float, shares: Sequence[float]) -> list[tuple[float, float]]:
    out = []
    for share in shares:
        w = width * share
        out.append((x, w))
        x += w
    return out


def _draw_table_header(page: _Page, left_cols, right_cols, table) -> None:
    c = page.c
    rh = page.row_height
    bottom = page.y - rh
    for (x, w), label in zip(left_cols, table.left_header):
        c.rect(x, bottom, w, rh)
        page.cell(x, w, bottom, label, align="center", bold=True)
    for (x, w), label in zip(right_cols, table.right_header):
        c.rect(x, bottom, w, rh)
        page.cell(x, w, bottom, label, align="center", bold=True)
    page.y = bottom


def _draw_row(page: _Page, left_cols, right_cols, row, *, bold: bool = False, boxed: bool = False) -> None:
    c = page.c
    rh = page.row_height
    bottom = page.y - rh
    aligns = ("left", "center", "center", "right", "right")
    for (x, w), text, align in zip(left_cols, row.left, aligns):
        if boxed:
            c.rect(x, bottom, w, rh)
        else:
            c.line(x, bottom, x, bottom + rh)
        page.cell(x, w, bottom, text, align=align, bold=bold)
    for (x, w), text, align in zip(right_cols, row.right, ("left", "right")):
        if boxed:
            c.rect(x, bottom, w, rh)
        else:
            c.line(x, bottom, x, bottom + rh)
        page.cell(x, w, bottom, text, align=align, bold=bold)
    last_x, last_w = right_cols[-1]
    c.line(last_x + last_w, bottom, last_x + last_w, bottom + rh)
    page.y = bottom


def _draw_table(page: _Page, document) -> None:
    table = document.table
    total_w = page.width - 2 * MARGIN
    left_w = total_w * _LEFT_SHARE
    left_cols = _columns(MARGIN, left_w, _LEDGER_WIDTHS)
    right_cols = _columns(MARGIN + left_w, total_w - left_w, _PARTICULAR_WIDTHS)

    page.ensure(page.row_height * 3)
    _draw_table_header(page, left_cols, right_cols, table)
    for row in table.rows:
        if page.y - page.row_height < MARGIN + page.row_height:
            page.c.line(MARGIN, page.y, MARGIN + total_w, page.y)
            page.ensure(page.height)
            _draw_table_header(page, left_cols, right_cols, table)
        _draw_row(page, left_cols, right_cols, row)
    page.c.line(MARGIN, page.y, MARGIN + total_w, page.y)
    _draw_row(page, left_cols, right_cols, table.footer, bold=True, boxed=True)

    # HSN/SAC and description sit under the ledger half.
    for item in document.hsn:
        page.ensure(page.row_height)
        bottom = page.y - page.row_height
        label_w = left_w * 0.35
        page.c.rect(MARGIN, bottom, label_w, page.row_height)
        page.c.rect(MARGIN + label_w, bottom, left_w - label_w, page.row_height)
        page.cell(MARGIN, label_w, bottom, item.label, bold=True)
        page.cell(MARGIN + label_w, left_w - label_w, bottom, item.value)
        page.y = bottom


def _draw_footer(page: _Page, document, stamp: str | None, signature: str | None) -> None:
    c = page.c
    text_w = page.width - 2 * MARGIN
    words = simpleSplit(f"Amount in Words: {document.amount_in_words}", FONT_BOLD, 9, text_w)
    page.ensure(len(words) * 5 * mm + 60 * mm)
    page.y -= 6 * mm
    c.setFont(FONT_BOLD, 9)
    for line in words:
        c.drawString(MARGIN, page.y, line)
        page.y -= 5 * mm

    page.y -= 2 * mm
    c.setFont(FONT_BOLD, 8)
    c.drawString(MARGIN, page.y, "Remark:")
    c.setFont(FONT, 8)
    c.drawString(MARGIN + 14 * mm, page.y, document.terms.remark)
    page.y -= 5 * mm
    c.setFont(FONT_BOLD, 8)
    c.drawString(MARGIN, page.y, "Terms & Conditions :-")
    page.y -= 4.5 * mm
    c.setFont(FONT, 7.5)
    for idx, term in enumerate(document.terms.terms, start=1):
        for line in simpleSplit(f"{idx}. {term}", FONT, 7.5, text_w):
            c.drawString(MARGIN, page.y, line)
            page.y -= 3.8 * mm

    sig = document.signature
    right = page.width - MARGIN
    page.y -= 4 * mm
    c.setFont(FONT_BOLD, 9)
    c.drawRightString(right, page.y, sig.signatory)
    _image(c, stamp or sig.stamp_path, right - 95 * mm, page.y - 28 * mm, 30 * mm, 30 * mm)
    _image(c, signature or sig.signature_path, right - 40 * mm, page.y - 20 * mm, 35 * mm, 16 * mm)
    c.setFont(FONT, 8)
    c.drawRightString(right, page.y - 24 * mm, sig.caption)
    page.y -= 28 * mm


def write_document_pdf(document, out_path: Path, assets: Mapping[str, str | None] | None = None) -> Path:
    """Draw ``document`` (a rendered invoice DocumentModel) into ``out_path``.

    ``assets`` may override the ``logo``, ``stamp`` and ``signature`` image
    paths carried by the document.
    """

    assets = assets or {}
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    hints = document.layout
    c = canvas.Canvas(str(out_path), pagesize=A4)
    c.setTitle(document.title)
    c.setLineWidth(0.5)
    page = _Page(c, hints.row_height * PX_TO_PT, hints.cell_baseline_offset * PX_TO_PT)
    try:
        _draw_header(page, document, assets.get("logo"))
        _draw_details(page, document)
        _draw_table(page, document)
        _draw_footer(page, document, assets.get("stamp"), assets.get("signature"))
        c.showPage()
        c.save()
    except OSError as exc:
        raise PdfProcessingError(f"Failed to write PDF {out_path}: {exc}") from exc

    logger.info("Invoice PDF written", extra={"path": str(out_path), "invoice": document.invoice_number})
    return out_path


def _resolve_pdf_reader(path: Path) -> PdfReader:
    if not path.exists():
        raise FileNotFoundError(f"PDF file not found: {path}")
    try:
        reader = PdfReader(path)
    except PdfReadError as exc:
        raise PdfProcessingError(f"Failed to open PDF: {exc}") from exc
    if reader.is_encrypted:
        raise PdfProcessingError("Encrypted PDFs are not supported")
    return reader


def read_info(path: Path) -> PdfInfo:
    """Read metadata and page count for a PDF file."""

    path = Path(path)
    reader = _resolve_pdf_reader(path)
    metadata = {k.lstrip("/"): str(v) for k, v in (reader.metadata or {}).items()}
    page_count = len(reader.pages)

    logger.info(
        "PDF info read",
        extra={"path": str(path), "page_count": page_count},
    )
    return PdfInfo(
        path=path,
        page_count=page_count,
        metadata=metadata,
        encrypted=False,
    )


def merge_pdfs(paths: Iterable[Path], out_path: Path) -> Path:
    """Concatenate the pages of ``paths`` in order into ``out_path``."""

    sources = [Path(p) for p in paths]
    if not sources:
        raise ValueError("No PDFs provided for merge")

    writer = PdfWriter()
    for source in sources:
        reader = _resolve_pdf_reader(source)
        for page in reader.pages:
            writer.add_page(page)

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("wb") as fh:
        writer.write(fh)

    logger.info(
        "Merged PDFs",
        extra={"sources": [str(s) for s in sources], "output": str(out_path)},
    )
    return out_path


def bundle_zip(paths: Iterable[Path], out_path: Path) -> Path:
    """Pack ``paths`` into a ZIP archive, keeping their file names."""

    sources = [Path(p) for p in paths]
    if not sources:
        raise ValueError("No files provided for ZIP bundle")

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(out_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for source in sources:
            if not source.exists():
                raise FileNotFoundError(f"File not found for ZIP bundle: {source}")
            zf.write(source, arcname=source.name)

    logger.info("ZIP bundle written", extra={"output": str(out_path), "files": len(sources)})
    return out_path
