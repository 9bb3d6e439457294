"""Domain models and exceptions for the backend invoice store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


class StoreError(RuntimeError):
    """Base error raised for invoice store failures."""

    def __init__(self, message: str, *, status_code: int | None = None, payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class StoreNotFound(StoreError):
    """Raised when the requested invoice does not exist."""


class StoreRetryableError(StoreError):
    """Raised for retryable I/O issues (network/server errors)."""


class StoreRequestError(StoreError):
    """Raised for non-retryable HTTP or protocol errors from the store."""


@dataclass(slots=True)
class PersistedInvoice:
    """Snapshot of one invoice as returned by the backend."""

    _id: str
    invoice_id: str
    data: dict[str, Any] = field(default_factory=dict)
    created_at: str | None = None

    @property
    def id(self) -> str:
        return self._id

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "PersistedInvoice":
        data = raw.get("data")
        return cls(
            _id=str(raw.get("_id") or ""),
            invoice_id=str(raw.get("invoiceId") or ""),
            data=dict(data) if isinstance(data, Mapping) else {},
            created_at=raw.get("createdAt"),
        )

    def to_mapping(self) -> dict[str, Any]:
        return {
            "_id": self._id,
            "invoiceId": self.invoice_id,
            "data": dict(self.data),
            "createdAt": self.created_at,
        }


__all__ = [
    "PersistedInvoice",
    "StoreError",
    "StoreNotFound",
    "StoreRequestError",
    "StoreRetryableError",
]
