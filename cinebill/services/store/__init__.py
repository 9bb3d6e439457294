"""Backend invoice store integration package."""

from .client import InvoiceStoreClient, search_invoices, select_created
from .config import RetryConfig, StoreConfig
from .models import (
    PersistedInvoice,
    StoreError,
    StoreNotFound,
    StoreRequestError,
    StoreRetryableError,
)

__all__ = [
    "InvoiceStoreClient",
    "PersistedInvoice",
    "RetryConfig",
    "StoreConfig",
    "StoreError",
    "StoreNotFound",
    "StoreRequestError",
    "StoreRetryableError",
    "search_invoices",
    "select_created",
]
