"""HTTP client that injects API keys and rotates them on quota exhaustion."""

from __future__ import annotations

from typing import Mapping, Optional

import httpx
from pydantic import ValidationError
from rich.console import Console

from tunestream.models.youtube import ProviderErrorBody
from tunestream.services.credentials import CredentialPool, mask_credential

DEFAULT_TIMEOUT_SECONDS = 12.0
QUOTA_STATUS_CODE = 403
QUOTA_MARKERS = ("quota", "exceeded")

QueryParams = Mapping[str, str | int]


class ProviderError(RuntimeError):
    """Base exception for failures reported by the video provider."""

    status_code: int = 502
    error_code: str = "PROVIDER_ERROR"


class QuotaExhaustedError(ProviderError):
    """Raised when every configured API key has run out of quota."""

    status_code = 429
    error_code = "QUOTA_EXCEEDED"

    def __init__(self, message: str = "YouTube API quota exceeded for all configured keys.") -> None:
        super().__init__(message)


class ProviderRequestError(ProviderError):
    """Raised when the provider answers with a non-quota, non-success status."""

    def __init__(self, message: str, *, upstream_status: int) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class ResilientFetchClient:
    """Issue provider requests with the pool's current key, rotating on quota failures.

    Only quota failures are retried, and at most once per key in the pool. Any other
    error status is handed back to the caller untouched; transport errors and timeouts
    are logged and re-raised without touching the pool.
    """

    def __init__(
        self,
        pool: CredentialPool,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        console: Optional[Console] = None,
    ) -> None:
        self._pool = pool
        self._console = console or Console()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def pool(self) -> CredentialPool:
        return self._pool

    async def fetch_with_rotation(
        self,
        url: str,
        params: Optional[QueryParams] = None,
        *,
        has_credential: bool = False,
    ) -> httpx.Response:
        """Send a GET request to ``url``, appending the active key unless ``has_credential``.

        Parameters
        ----------
        url:
            Absolute endpoint URL.
        params:
            Query parameters without the API key.
        has_credential:
            When ``True`` the request already carries a key and is sent verbatim.

        Returns
        -------
        httpx.Response
            The first response that is not a quota failure, or the last quota failure
            once the whole pool is exhausted.

        Raises
        ------
        httpx.HTTPError
            On transport failures, including timeouts.
        """

        query = dict(params or {})
        if has_credential:
            return await self._send(url, query, key=None)

        max_attempts = len(self._pool)
        key = self._pool.current()
        attempt = 0
        while True:
            attempt += 1
            response = await self._send(url, {**query, "key": key}, key=key)
            if not self.is_quota_failure(response):
                return response

            self._pool.mark_exhausted(key)
            pool_exhausted = self._pool.all_exhausted()
            key = self._pool.rotate()
            if pool_exhausted:
                self._console.log("[red]All YouTube API keys have exhausted their quota.[/red]")
                return response
            if attempt >= max_attempts:
                return response
            self._console.log(f"Retrying {_operation(url)} with API key {mask_credential(key)}")

    @staticmethod
    def is_quota_failure(response: httpx.Response) -> bool:
        """Return ``True`` for a 403 whose error body reports an exceeded quota."""

        if response.status_code != QUOTA_STATUS_CODE:
            return False
        try:
            body = ProviderErrorBody.model_validate(response.json())
        except (ValueError, ValidationError):
            return False

        texts = [body.message, *body.reasons]
        return any(marker in text.lower() for text in texts for marker in QUOTA_MARKERS)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""

        if self._owns_client:
            await self._client.aclose()

    async def _send(self, url: str, params: Mapping[str, str | int], *, key: Optional[str]) -> httpx.Response:
        try:
            return await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            masked = mask_credential(key) if key else "embedded"
            self._console.log(
                f"[red]YouTube request failed:[/red] {_operation(url)} "
                f"({exc.__class__.__name__}: {exc}) key={masked}"
            )
            raise


def _operation(url: str) -> str:
    path = httpx.URL(url).path.rstrip("/")
    return path.rsplit("/", 1)[-1] or url


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "ProviderError",
    "ProviderRequestError",
    "QuotaExhaustedError",
    "ResilientFetchClient",
]
