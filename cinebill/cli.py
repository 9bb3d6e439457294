"""Typer based command line entry points for CineBill."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer

from cinebill.core.errors import CineBillError, ConfigError, DuplicateBlocked, ExtractionError, ReportError
from cinebill.core.logger import get_logger
from cinebill.core.pipeline import DUPLICATE_POLICIES, InvoicePipeline
from cinebill.core.profiles import AppSettings, get_profile, load_settings
from cinebill.services.invoice import (
    InvoiceParameters,
    derive,
    find_duplicates,
    parameters_from_payload,
    prepare_invoices,
    recompute,
    record_from_payload,
    to_payload,
)
from cinebill.services.invoice.formatting import format_amount
from cinebill.services.invoice.models import resolve_identity
from cinebill.services.invoice.report import export_report, summarize
from cinebill.services.store import InvoiceStoreClient, StoreConfig, StoreError, search_invoices
from cinebill_io import read_grid

app = typer.Typer(help="Invoice computation, PDF export and reporting for CineBill.")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    level_value = getattr(logging, log_level.upper(), None)
    if not isinstance(level_value, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")

    logging.getLogger().setLevel(level_value)
    get_logger(level=level_value).setLevel(level_value)


def _fail(message: str, code: int) -> typer.Exit:
    typer.secho(message, fg=typer.colors.RED)
    return typer.Exit(code=code)


def _load_settings(config: Optional[Path]) -> AppSettings:
    try:
        return load_settings(config)
    except ConfigError as exc:
        raise _fail(f"Unable to load configuration: {exc}", 2) from exc


def _parameters(
    settings: AppSettings,
    share: Optional[float],
    gst_type: Optional[str],
    gst_rate: Optional[float],
    base: Optional[InvoiceParameters] = None,
) -> InvoiceParameters:
    values = base.model_dump() if base is not None else dict(settings.parameters)
    if share is not None:
        values["share_percent"] = share
    if gst_type is not None:
        values["gst_type"] = gst_type
    if gst_rate is not None:
        values["gst_rate"] = gst_rate
    try:
        return InvoiceParameters.from_mapping(values)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid invoice parameters: {exc}") from exc


def _store(settings: AppSettings) -> InvoiceStoreClient:
    try:
        return InvoiceStoreClient(StoreConfig.from_mapping(settings.store))
    except ConfigError as exc:
        raise _fail(f"Unable to configure invoice store: {exc}", 2) from exc


def _parse_day(value: Optional[str], name: str) -> Optional[date]:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:  # noqa: BLE001 - user input validation
        raise typer.BadParameter(f"{name} must be in YYYY-MM-DD format") from exc


_CONFIG_OPTION = typer.Option(None, "--config", help="profiles.yaml override", exists=True, dir_okay=False)
_SHARE_OPTION = typer.Option(None, "--share", help="Distribution share percent")
_GST_TYPE_OPTION = typer.Option(None, "--gst-type", help="CGST/SGST or IGST")
_GST_RATE_OPTION = typer.Option(None, "--gst-rate", help="GST rate percent")
_YEAR_OPTION = typer.Option(None, "--year", help="Year completing DD-MM day columns")


@app.command("preview")
def cli_preview(
    workbook: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False, resolve_path=True),
    year: Optional[int] = _YEAR_OPTION,
    share: Optional[float] = _SHARE_OPTION,
    gst_type: Optional[str] = _GST_TYPE_OPTION,
    gst_rate: Optional[float] = _GST_RATE_OPTION,
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Print the computed invoices of a workbook as JSON."""

    settings = _load_settings(config)
    params = _parameters(settings, share, gst_type, gst_rate)
    try:
        batch = prepare_invoices(read_grid(workbook), year=year or settings.ledger_year, params=params)
    except (ExtractionError, ValueError) as exc:
        raise _fail(f"No data found: {exc}", 2) from exc
    typer.echo(json.dumps([to_payload(inv) for inv in batch.invoices], ensure_ascii=False, indent=2))


@app.command("export")
def cli_export(
    workbook: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False, resolve_path=True),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Directory for generated PDFs", resolve_path=True),
    zip_name: Optional[str] = typer.Option(None, "--zip", help="Bundle PDFs into this ZIP file name"),
    combined: bool = typer.Option(False, "--combined", help="Also write one merged PDF"),
    persist: bool = typer.Option(False, "--persist", help="Upload invoices to the store before export"),
    check_duplicates: bool = typer.Option(False, "--check-duplicates", help="Compare with stored invoices first"),
    duplicate_policy: str = typer.Option("warn", "--duplicate-policy", help="warn, skip or block"),
    expand_range: bool = typer.Option(False, "--expand-range", help="One ledger row per screening day"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Issuer profile name"),
    year: Optional[int] = _YEAR_OPTION,
    share: Optional[float] = _SHARE_OPTION,
    gst_type: Optional[str] = _GST_TYPE_OPTION,
    gst_rate: Optional[float] = _GST_RATE_OPTION,
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Render every invoice of a workbook to PDF."""

    if duplicate_policy not in DUPLICATE_POLICIES:
        raise typer.BadParameter("duplicate-policy must be one of warn, skip, block")
    settings = _load_settings(config)
    params = _parameters(settings, share, gst_type, gst_rate)
    try:
        issuer = get_profile(profile, config)
    except ConfigError as exc:
        raise _fail(f"Unable to load issuer profile: {exc}", 2) from exc
    store = _store(settings) if (persist or check_duplicates) else None

    pipeline = InvoicePipeline(store=store, issuer=issuer)
    try:
        result = pipeline.run(
            workbook,
            params,
            output,
            year=year or settings.ledger_year,
            persist=persist,
            duplicate_policy=duplicate_policy,
            zip_name=zip_name,
            combined=combined,
            expand_screening_range=expand_range,
            progress_cb=lambda stage, detail: typer.secho(f"{stage}: {detail}", err=True),
        )
    except ExtractionError as exc:
        raise _fail(f"No data found: {exc}", 2) from exc
    except DuplicateBlocked as exc:
        raise _fail(f"Export blocked: {exc}", 1) from exc
    except CineBillError as exc:
        raise _fail(f"Export failed: {exc}", 1) from exc

    for warning in result.warnings:
        typer.secho(f"warning: {warning}", fg=typer.colors.YELLOW)
    typer.echo(f"PDFs written: {len(result.pdf_paths)}")
    for path in result.pdf_paths:
        typer.echo(f"  {path}")
    if result.zip_path:
        typer.echo(f"ZIP: {result.zip_path}")
    if result.combined_path:
        typer.echo(f"Combined PDF: {result.combined_path}")


@app.command("duplicates")
def cli_duplicates(
    workbook: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False, resolve_path=True),
    year: Optional[int] = _YEAR_OPTION,
    share: Optional[float] = _SHARE_OPTION,
    gst_type: Optional[str] = _GST_TYPE_OPTION,
    gst_rate: Optional[float] = _GST_RATE_OPTION,
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Report invoices of a workbook that already exist in the store."""

    settings = _load_settings(config)
    params = _parameters(settings, share, gst_type, gst_rate)
    try:
        batch = prepare_invoices(read_grid(workbook), year=year or settings.ledger_year, params=params)
    except (ExtractionError, ValueError) as exc:
        raise _fail(f"No data found: {exc}", 2) from exc
    try:
        existing = _store(settings).list_invoices()
    except StoreError as exc:
        raise _fail(f"Invoice store unavailable: {exc}", 1) from exc

    pairs = find_duplicates(batch.invoices, existing)
    if not pairs:
        typer.echo("No duplicates found")
        return
    for pair in pairs:
        number = pair.candidate.record.invoice_number or f"#{pair.candidate_index + 1}"
        typer.echo(f"{number} duplicates stored invoice {pair.existing.id}")
    raise typer.Exit(code=1)


@app.command("list")
def cli_list(
    search: Optional[str] = typer.Option(None, "--search", help="Filter by client name or invoice number"),
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """List stored invoices."""

    settings = _load_settings(config)
    try:
        invoices = _store(settings).list_invoices()
    except StoreError as exc:
        raise _fail(f"Invoice store unavailable: {exc}", 1) from exc
    if search:
        invoices = search_invoices(invoices, search)
    for inv in invoices:
        data = inv.data
        typer.echo(
            f"{inv.id}\t{resolve_identity(data) or inv.invoice_id}\t{data.get('clientName', '')}\t"
            f"{data.get('invoiceDate', '')}\t{data.get('totalCollection', 0)}"
        )
    typer.echo(f"{len(invoices)} invoice(s)")
    summary = summarize(invoices)
    typer.echo(
        f"Revenue: total {format_amount(summary.total_revenue)}, "
        f"this month {summary.this_month_invoices} / {format_amount(summary.this_month_revenue)}, "
        f"last month {summary.last_month_invoices} / {format_amount(summary.last_month_revenue)}"
    )


@app.command("edit")
def cli_edit(
    invoice_id: str = typer.Argument(..., help="Store _id of the invoice"),
    movie_name: Optional[str] = typer.Option(None, "--movie-name"),
    movie_version: Optional[str] = typer.Option(None, "--movie-version"),
    language: Optional[str] = typer.Option(None, "--language"),
    screen_format: Optional[str] = typer.Option(None, "--screen-format"),
    release_week: Optional[str] = typer.Option(None, "--release-week"),
    cinema_week: Optional[str] = typer.Option(None, "--cinema-week"),
    share: Optional[float] = _SHARE_OPTION,
    gst_type: Optional[str] = _GST_TYPE_OPTION,
    gst_rate: Optional[float] = _GST_RATE_OPTION,
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Change movie details or share/GST of a stored invoice and recompute it."""

    changes = {
        key: value
        for key, value in {
            "movie_name": movie_name,
            "movie_version": movie_version,
            "language": language,
            "screen_format": screen_format,
            "release_week": release_week,
            "cinema_week": cinema_week,
        }.items()
        if value is not None
    }
    if not changes and share is None and gst_type is None and gst_rate is None:
        raise _fail("Nothing to edit: pass at least one field or parameter option", 2)

    settings = _load_settings(config)
    store = _store(settings)
    try:
        invoices = store.list_invoices()
    except StoreError as exc:
        raise _fail(f"Invoice store unavailable: {exc}", 1) from exc
    target = next((inv for inv in invoices if inv.id == invoice_id), None)
    if target is None:
        raise _fail(f"Invoice {invoice_id} not found", 1)

    stored_params = parameters_from_payload(target.data, _parameters(settings, None, None, None))
    params = _parameters(settings, share, gst_type, gst_rate, base=stored_params)
    current = derive(record_from_payload(target.data), stored_params)
    updated = recompute(current, params, **changes)

    payload = dict(target.data)
    payload.update(to_payload(updated))
    try:
        store.update_invoice(invoice_id, payload)
    except StoreError as exc:
        raise _fail(f"Update failed: {exc}", 1) from exc
    typer.echo(
        f"Updated {invoice_id}: {updated.record.invoice_number} "
        f"net {format_amount(current.net_amount)} -> {format_amount(updated.net_amount)}"
    )


@app.command("delete")
def cli_delete(
    invoice_id: str = typer.Argument(..., help="Store _id of the invoice"),
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Delete one stored invoice."""

    settings = _load_settings(config)
    try:
        _store(settings).delete_invoice(invoice_id)
    except StoreError as exc:
        raise _fail(f"Delete failed: {exc}", 1) from exc
    typer.echo(f"Deleted {invoice_id}")


@app.command("report")
def cli_report(
    start: Optional[str] = typer.Option(None, "--start", help="Start date YYYY-MM-DD"),
    end: Optional[str] = typer.Option(None, "--end", help="End date YYYY-MM-DD"),
    movie: Optional[str] = typer.Option(None, "--movie", help="Exact movie name"),
    output: Path = typer.Option(Path("."), "--output", "-o", help="Directory for the report", resolve_path=True),
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Export stored invoices to an Excel report."""

    start_day = _parse_day(start, "start")
    end_day = _parse_day(end, "end")
    settings = _load_settings(config)
    defaults = _parameters(settings, None, None, None)
    try:
        invoices = _store(settings).list_invoices()
    except StoreError as exc:
        raise _fail(f"Invoice store unavailable: {exc}", 1) from exc
    try:
        path = export_report(invoices, output, start=start_day, end=end_day, movie=movie, default_params=defaults)
    except ReportError as exc:
        raise _fail(f"Report not generated: {exc}", 2) from exc
    typer.echo(f"Report: {path}")


if __name__ == "__main__":  # pragma: no cover
    app()
