from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

from cinebill.core.errors import ConfigError
from cinebill.services.store import (
    InvoiceStoreClient,
    PersistedInvoice,
    RetryConfig,
    StoreConfig,
    StoreNotFound,
    StoreRequestError,
    StoreRetryableError,
    search_invoices,
    select_created,
)


@dataclass
class MockResponse:
    status_code: int = 200
    json_data: Any = None
    text_data: str | None = None

    def json(self) -> Any:
        if self.json_data is None:
            raise ValueError("JSON body not set")
        return self.json_data

    @property
    def content(self) -> bytes:
        if self.json_data is not None:
            return json.dumps(self.json_data).encode("utf-8")
        if self.text_data is not None:
            return self.text_data.encode("utf-8")
        return b""

    @property
    def text(self) -> str:
        if self.text_data is not None:
            return self.text_data
        if self.json_data is not None:
            return json.dumps(self.json_data)
        return ""


class FakeSession:
    def __init__(self, responses: list[MockResponse]) -> None:
        self._responses = responses
        self.headers: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self.call_kwargs: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> MockResponse:
        if not self._responses:
            raise AssertionError("No more responses queued")
        self.calls.append((method, url))
        self.call_kwargs.append(kwargs)
        return self._responses.pop(0)


def _build_client(responses: list[MockResponse]) -> tuple[InvoiceStoreClient, FakeSession]:
    config = StoreConfig(
        base_url="http://store.test",
        timeout_sec=1.0,
        retries=RetryConfig(max_attempts=3, backoff_ms=1, max_backoff_ms=1),
    )
    session = FakeSession(responses)
    return InvoiceStoreClient(config, session=session), session


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("cinebill.services.store.http.time.sleep", lambda *_: None)


def _stored(_id: str, number: str, client: str = "PVR LIMITED") -> dict[str, Any]:
    return {"_id": _id, "invoiceId": number, "data": {"invoiceNo": number, "clientName": client}, "createdAt": "2025-06-10"}


def test_list_invoices_accepts_wrapped_and_bare_lists() -> None:
    client, session = _build_client(
        [
            MockResponse(json_data={"invoices": [_stored("a1", "FFS001")]}),
            MockResponse(json_data=[_stored("a2", "FFS002")]),
        ]
    )

    first = client.list_invoices()
    second = client.list_invoices()

    assert first[0].id == "a1"
    assert first[0].data["clientName"] == "PVR LIMITED"
    assert second[0].invoice_id == "FFS002"
    assert session.calls[0] == ("GET", "http://store.test/api/invoices")


def test_list_invoices_rejects_unexpected_shape() -> None:
    client, _ = _build_client([MockResponse(json_data={"message": "ok"})])
    with pytest.raises(StoreRequestError):
        client.list_invoices()


def test_retry_on_server_error() -> None:
    client, session = _build_client(
        [
            MockResponse(status_code=503, text_data="busy"),
            MockResponse(json_data={"invoices": []}),
        ]
    )

    assert client.list_invoices() == []
    assert len(session.calls) == 2


def test_retries_exhausted() -> None:
    client, session = _build_client([MockResponse(status_code=500, text_data="boom") for _ in range(3)])

    with pytest.raises(StoreRetryableError) as exc_info:
        client.list_invoices()
    assert exc_info.value.status_code == 500
    assert len(session.calls) == 3


def test_client_error_is_not_retried() -> None:
    client, session = _build_client([MockResponse(status_code=400, json_data={"error": "bad"})])

    with pytest.raises(StoreRequestError) as exc_info:
        client.list_invoices()
    assert exc_info.value.payload == {"error": "bad"}
    assert len(session.calls) == 1


def test_delete_raises_not_found() -> None:
    client, session = _build_client([MockResponse(status_code=404, json_data={"error": "missing"})])

    with pytest.raises(StoreNotFound):
        client.delete_invoice("nope")
    assert session.calls[-1] == ("DELETE", "http://store.test/api/invoices/nope")


def test_create_invoices_uploads_sheet_and_records(tmp_path: Path) -> None:
    sheet = tmp_path / "collections.xlsx"
    sheet.write_bytes(b"xlsx-bytes")
    client, session = _build_client([MockResponse(status_code=201, json_data={"invoiceIds": ["FFS001", 2]})])

    ids = client.create_invoices(sheet, [{"invoiceNo": "FFS001"}, {"invoiceNo": "FFS002"}])

    assert ids == ["FFS001", "2"]
    method, url = session.calls[0]
    assert (method, url) == ("POST", "http://store.test/api/invoice-upload")
    kwargs = session.call_kwargs[0]
    assert kwargs["files"]["excel"][0] == "collections.xlsx"
    assert kwargs["files"]["excel"][1] == b"xlsx-bytes"
    assert json.loads(kwargs["data"]["invoiceData"])[1]["invoiceNo"] == "FFS002"


def test_update_invoice_wraps_payload() -> None:
    client, session = _build_client([MockResponse(json_data={"ok": True})])

    assert client.update_invoice("a1", {"movieName": "NARIVETTA"}) == {"ok": True}
    assert session.call_kwargs[0]["json"] == {"data": {"movieName": "NARIVETTA"}}


def test_select_created_and_search() -> None:
    invoices = [
        PersistedInvoice.from_mapping(_stored("a1", "FFS001")),
        PersistedInvoice.from_mapping(_stored("a2", "FFS002", client="INOX LEISURE")),
    ]

    assert [inv.id for inv in select_created(invoices, ["FFS002"])] == ["a2"]
    assert [inv.id for inv in search_invoices(invoices, "inox")] == ["a2"]
    assert [inv.id for inv in search_invoices(invoices, "ffs00")] == ["a1", "a2"]
    assert len(search_invoices(invoices, "  ")) == 2


def test_store_config_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CINEBILL_API_BASE_URL", "https://api.example/")
    monkeypatch.setenv("CINEBILL_API_RETRIES", "5")

    config = StoreConfig.from_mapping({"base_url": "http://ignored", "timeout_sec": 9, "retries": {"backoff_ms": 10}})

    assert config.base_url == "https://api.example"
    assert config.timeout_sec == 9.0
    assert config.retries.max_attempts == 5
    assert config.retries.backoff_ms == 10
    assert config.retries.max_backoff_ms == 8000


def test_store_config_rejects_bad_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CINEBILL_API_TIMEOUT_SEC", "soon")
    with pytest.raises(ConfigError):
        StoreConfig.from_mapping({})


def test_select_created_and_search_resolve_number_aliases() -> None:
    invoices = [
        PersistedInvoice(_id="a1", invoice_id="", data={"In_no": "FFS010", "clientName": "PVR"}),
        PersistedInvoice(_id="a2", invoice_id="", data={"Invoice No": "FFS011", "clientName": "INOX"}),
    ]

    assert [inv.id for inv in select_created(invoices, ["FFS010", "FFS011"])] == ["a1", "a2"]
    assert [inv.id for inv in search_invoices(invoices, "ffs011")] == ["a2"]
