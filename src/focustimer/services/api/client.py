"""HTTP client for the remote focus history service.

The service speaks PostgREST: tables are paths under the endpoint, filters
are query parameters (``id=eq.<id>``) and the anon/service key travels in
both the ``apikey`` and ``Authorization`` headers.
"""

import asyncio
from typing import Any

import httpx

from focustimer.models.config_models import APIConfig
from focustimer.services.config_service import get_config_service
from focustimer.utils.logger import get_logger


def _is_retryable(error: httpx.HTTPError) -> bool:
    # 4xx means the request itself is wrong; sending it again won't help
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code >= 500
    return isinstance(error, httpx.RequestError)


class APIClient:
    """Async client for a PostgREST-style row store."""

    def __init__(
        self,
        api_config: APIConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_config = api_config or get_config_service().config.api
        if not self.api_config.endpoint:
            raise ValueError("Remote history endpoint is not configured")
        self.base_url = self.api_config.endpoint.rstrip("/")
        self.transport = transport
        self.logger = get_logger("api")
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        key = self.api_config.key
        if key:
            headers.update({"apikey": key, "Authorization": f"Bearer {key}"})
        return headers

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._get_headers(),
                timeout=self.api_config.timeout,
                transport=self.transport,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying connection pool. Safe to call twice."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a request, retrying 5xx responses and transport failures.

        Waits 1, 2, 4... seconds between attempts, up to ``api.retry``
        retries. The last error is re-raised once attempts run out.
        """
        url = "/" + path.lstrip("/")
        attempts = self.api_config.retry + 1

        for attempt in range(attempts):
            try:
                response = await self._http().request(
                    method, url, json=json, params=params, headers=headers
                )
                response.raise_for_status()
                return response
            except httpx.HTTPError as e:
                if not _is_retryable(e) or attempt == attempts - 1:
                    raise
                delay = 2**attempt
                self.logger.warning(
                    "%s %s failed (%s), retrying in %ds", method, url, e, delay
                )
                await asyncio.sleep(delay)

        raise RuntimeError("unreachable")

    async def get(
        self, path: str, *, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self.request("POST", path, json=json, headers=headers)

    async def delete(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self.request("DELETE", path, params=params, headers=headers)


def get_client(api_config: APIConfig | None = None) -> APIClient:
    """Client for the configured remote history service."""
    return APIClient(api_config)
