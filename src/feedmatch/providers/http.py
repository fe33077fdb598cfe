"""Retrying httpx client shared by the provider modules."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

import httpx

from .base import ProviderError, ProviderNotFoundError, raise_if_cancelled

LOGGER = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_BACKOFF = 1.0
MAX_BACKOFF = 30.0
DEFAULT_TIMEOUT = 20.0
USER_AGENT = "feedmatch"


class ProviderHttpClient:
    """Thin wrapper around :class:`httpx.Client` with retry logic.

    404 responses raise :class:`ProviderNotFoundError` immediately, 429 waits
    for ``Retry-After`` and other failures are retried with exponential
    backoff before surfacing as :class:`ProviderError`.
    """

    def __init__(
        self,
        provider: str,
        base_url: str = "",
        *,
        timeout: float = DEFAULT_TIMEOUT,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.provider = provider
        self.base_url = base_url.rstrip("/")
        merged = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        merged.update(headers or {})
        self._client = httpx.Client(timeout=timeout, headers=merged, follow_redirects=True)

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if path.startswith("//"):
            return f"https:{path}"
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        cancel: threading.Event | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        url = self._url(path)
        last_exception: Exception | None = None
        backoff = RETRY_BACKOFF

        for attempt in range(MAX_RETRIES):
            raise_if_cancelled(cancel)
            try:
                response = self._client.request(method, url, **kwargs)
                if response.status_code == 404:
                    raise ProviderNotFoundError(f"{self.provider}: resource not found: {path}")
                if response.status_code == 429:
                    retry_after = _retry_after(response, backoff)
                    LOGGER.warning("%s rate limited, waiting %d seconds", self.provider, retry_after)
                    time.sleep(retry_after)
                    backoff = min(backoff * 2, MAX_BACKOFF)
                    continue
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code == 404:
                    raise ProviderNotFoundError(f"{self.provider}: resource not found: {path}") from exc
                last_exception = exc
                if attempt < MAX_RETRIES - 1:
                    LOGGER.debug(
                        "%s request failed (attempt %d/%d): %s", self.provider, attempt + 1, MAX_RETRIES, exc
                    )
                    time.sleep(backoff)
                    backoff = min(backoff * 2, MAX_BACKOFF)
            except httpx.RequestError as exc:
                last_exception = exc
                if attempt < MAX_RETRIES - 1:
                    LOGGER.debug(
                        "%s request error (attempt %d/%d): %s", self.provider, attempt + 1, MAX_RETRIES, exc
                    )
                    time.sleep(backoff)
                    backoff = min(backoff * 2, MAX_BACKOFF)

        raise ProviderError(
            f"{self.provider}: failed to fetch {path} after {MAX_RETRIES} attempts"
        ) from last_exception

    def get_json(self, path: str, *, cancel: threading.Event | None = None, **kwargs: Any) -> Any:
        response = self._request("GET", path, cancel=cancel, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"{self.provider}: malformed payload from {path}") from exc

    def post_json(self, path: str, *, cancel: threading.Event | None = None, **kwargs: Any) -> Any:
        response = self._request("POST", path, cancel=cancel, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"{self.provider}: malformed payload from {path}") from exc

    def get_bytes(self, url: str, *, cancel: threading.Event | None = None) -> bytes:
        response = self._request("GET", url, cancel=cancel)
        return response.content

    def close(self) -> None:
        self._client.close()


def _retry_after(response: httpx.Response, default: float) -> int:
    try:
        return int(response.headers.get("Retry-After", default))
    except (TypeError, ValueError):
        return int(default)
