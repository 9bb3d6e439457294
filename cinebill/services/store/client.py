"""Client for the backend invoice store API."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Sequence

import requests

from cinebill.services.invoice.models import resolve_identity

from .config import StoreConfig
from .http import HttpClient
from .models import PersistedInvoice, StoreRequestError

LOGGER = logging.getLogger(__name__)

INVOICES_PATH = "/api/invoices"
UPLOAD_PATH = "/api/invoice-upload"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class InvoiceStoreClient:
    """List, create, update and delete persisted invoices."""

    def __init__(
        self,
        config: StoreConfig | None = None,
        *,
        session: requests.Session | None = None,
        http: HttpClient | None = None,
    ) -> None:
        self._config = config or StoreConfig()
        self._http = http or HttpClient(self._config, session=session)

    @classmethod
    def from_profile(cls, *, config_path: str | Path | None = None, session: requests.Session | None = None) -> "InvoiceStoreClient":
        return cls(StoreConfig.from_profile(config_path=config_path), session=session)

    def list_invoices(self) -> List[PersistedInvoice]:
        """Fetch a fresh snapshot of every persisted invoice."""

        response = self._http.request("GET", INVOICES_PATH)
        body = self._json(response)
        items = body.get("invoices", body.get("data")) if isinstance(body, Mapping) else body
        if not isinstance(items, list):
            raise StoreRequestError("Unexpected invoice list payload", payload={"body": body})
        invoices = [PersistedInvoice.from_mapping(item) for item in items if isinstance(item, Mapping)]
        LOGGER.info("Fetched %d invoices from store", len(invoices))
        return invoices

    def create_invoices(self, sheet_path: str | Path, records: Sequence[Mapping[str, Any]]) -> List[str]:
        """Upload the source sheet and record payloads; return created invoice ids."""

        path = Path(sheet_path)
        # Bytes rather than a file handle so retries resend the full body.
        files = {"excel": (path.name, path.read_bytes(), XLSX_MIME)}
        data = {"invoiceData": json.dumps(list(records), default=str)}
        response = self._http.request("POST", UPLOAD_PATH, data=data, files=files, expected_status=(200, 201))
        body = self._json(response)
        ids = body.get("invoiceIds") if isinstance(body, Mapping) else None
        if not isinstance(ids, list):
            raise StoreRequestError("Upload response has no invoiceIds", payload={"body": body})
        LOGGER.info("Store accepted %d of %d invoices", len(ids), len(records))
        return [str(i) for i in ids]

    def update_invoice(self, invoice_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        response = self._http.request("PUT", f"{INVOICES_PATH}/{invoice_id}", json_body={"data": dict(payload)})
        body = self._json(response)
        return body if isinstance(body, dict) else {"body": body}

    def delete_invoice(self, invoice_id: str) -> None:
        self._http.request("DELETE", f"{INVOICES_PATH}/{invoice_id}", expected_status=(200, 204))
        LOGGER.info("Deleted invoice %s", invoice_id)

    def _json(self, response: requests.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise StoreRequestError("Store returned invalid JSON", status_code=response.status_code) from exc


def select_created(invoices: Iterable[PersistedInvoice], invoice_ids: Iterable[str]) -> List[PersistedInvoice]:
    """Invoices whose ``invoiceId`` or stored invoice number is in ``invoice_ids``."""

    wanted = {str(i) for i in invoice_ids}
    selected = []
    for inv in invoices:
        number = resolve_identity(inv.data)
        if inv.invoice_id in wanted or (number and number in wanted):
            selected.append(inv)
    return selected


def search_invoices(invoices: Iterable[PersistedInvoice], term: str) -> List[PersistedInvoice]:
    """Case-insensitive substring match on client name or invoice number."""

    needle = (term or "").strip().lower()
    if not needle:
        return list(invoices)
    matches = []
    for inv in invoices:
        client = str(inv.data.get("clientName") or "")
        number = resolve_identity(inv.data) or inv.invoice_id
        if needle in client.lower() or needle in number.lower():
            matches.append(inv)
    return matches
