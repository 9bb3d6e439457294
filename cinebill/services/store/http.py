"""HTTP utilities for the backend invoice store."""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Iterable, Mapping

import requests
from requests import Response
from requests.exceptions import ConnectionError, RequestException, Timeout

from .config import StoreConfig
from .models import StoreNotFound, StoreRequestError, StoreRetryableError

LOGGER = logging.getLogger(__name__)

USER_AGENT = "CineBill/1.0"
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class HttpClient:
    """Request helper wrapping retries and backoff."""

    def __init__(
        self,
        config: StoreConfig,
        *,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", USER_AGENT)
        self._logger = logger or LOGGER

    @property
    def session(self) -> requests.Session:
        return self._session

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Mapping[str, object] | None = None,
        data: Mapping[str, object] | None = None,
        files: Mapping[str, Any] | None = None,
        expected_status: Iterable[int] = (200,),
        timeout: float | None = None,
        allow_retry: bool = True,
    ) -> Response:
        """Send ``method`` to ``path`` under the configured base URL.

        Timeouts, connection errors and 429/5xx answers are retried with
        exponential backoff; 404 raises ``StoreNotFound`` immediately.
        """

        url = self._compose_url(path)
        retry = self._config.retries
        attempts = max(1, retry.max_attempts) if allow_retry else 1
        base_backoff = max(0.05, retry.backoff_ms / 1000.0)
        max_backoff = max(base_backoff, retry.max_backoff_ms / 1000.0)
        timeout_value = timeout or self._config.timeout_sec
        expected = tuple(expected_status)
        last_error: StoreRetryableError | None = None

        for attempt in range(1, attempts + 1):
            try:
                response = self._session.request(
                    method,
                    url,
                    json=json_body,
                    data=data,
                    files=files,
                    timeout=timeout_value,
                )
            except Timeout as exc:
                last_error = StoreRetryableError("Request timed out", payload={"url": url})
                self._logger.warning("store.http timeout method=%s url=%s attempt=%d", method, url, attempt, exc_info=exc)
            except (ConnectionError, RequestException) as exc:
                last_error = StoreRetryableError("Request failed", payload={"url": url})
                self._logger.warning(
                    "store.http connection_error method=%s url=%s attempt=%d error=%s",
                    method,
                    url,
                    attempt,
                    type(exc).__name__,
                )
            else:
                status = response.status_code
                if status in expected:
                    return response
                payload = self._safe_json(response)
                if status == 404:
                    raise StoreNotFound("Invoice not found", status_code=status, payload=payload)
                if allow_retry and status in RETRYABLE_STATUS:
                    self._logger.warning(
                        "store.http retryable_status method=%s url=%s status=%d attempt=%d",
                        method,
                        url,
                        status,
                        attempt,
                    )
                    last_error = StoreRetryableError("Retryable response", status_code=status, payload=payload)
                else:
                    raise StoreRequestError(f"Unexpected status {status}", status_code=status, payload=payload)

            if attempt < attempts:
                self._sleep_with_backoff(base_backoff, max_backoff, attempt)

        if last_error is not None:
            raise last_error
        raise StoreRetryableError("Exhausted retries", payload={"url": url})

    def _compose_url(self, path: str) -> str:
        base = self._config.base_url.rstrip("/")
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{base}{path}"

    def _sleep_with_backoff(self, base: float, maximum: float, attempt: int) -> None:
        delay = min(maximum, base * (2 ** (attempt - 1)))
        jitter = random.uniform(0, delay / 2)
        time.sleep(delay + jitter)

    def _safe_json(self, response: Response) -> dict[str, object]:
        try:
            body = response.json()
        except ValueError:
            text = response.text
            if len(text) > 200:
                text = text[:200] + "..."
            return {"body": text}
        return body if isinstance(body, dict) else {"body": body}


__all__ = ["HttpClient", "RETRYABLE_STATUS"]
