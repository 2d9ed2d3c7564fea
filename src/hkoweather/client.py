"""Async client for the Hong Kong Observatory open-data weather API.

HKOClient performs exactly one HTTP GET per fetch() call. It never retries;
retries, backoff and caching live in hkoweather.retry and
hkoweather.service.

Example:
    Fetch the current weather report once::

        import asyncio
        from hkoweather import DataType, HKOClient, Language

        async def main():
            async with HKOClient() as client:
                data = await client.fetch(DataType.CURRENT_WEATHER, Language.EN)
                print(data["updateTime"])

        asyncio.run(main())
"""

import logging
from typing import Any, Optional

import httpx

from .exceptions import UpstreamHTTPError, UpstreamTransportError
from .types import DEFAULT_REQUEST_TIMEOUT, HKO_BASE_URL, DataType, Language

logger = logging.getLogger(__name__)


class HKOClient:
    """Single-attempt HTTP client for the HKO weather endpoint.

    Args:
        base_url: Upstream endpoint. Defaults to HKO_BASE_URL.
        timeout: HTTP request timeout in seconds. Defaults to 10.0.
        transport: Optional httpx transport, e.g. httpx.MockTransport in
            tests.

    Attributes:
        base_url: Upstream endpoint.
        _timeout: HTTP timeout in seconds.
        _client: Lazy-initialized httpx.AsyncClient.

    Example:
        Manual resource management::

            client = HKOClient(timeout=5.0)
            try:
                data = await client.fetch(DataType.LOCAL_FORECAST, Language.TC)
            finally:
                await client.close()
    """

    def __init__(
        self,
        *,
        base_url: str = HKO_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "HKOClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure the HTTP client is initialized.

        Lazily creates the httpx.AsyncClient so the client can be built
        outside a running event loop. Redirects are followed; only the
        final response is checked.

        Returns:
            The initialized httpx.AsyncClient instance.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client. Safe to call multiple times."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def build_params(data_type: DataType, language: Language) -> dict[str, str]:
        """Query parameters for one upstream request.

        Example:
            >>> HKOClient.build_params(DataType.CURRENT_WEATHER, Language.EN)
            {'dataType': 'rhrread', 'lang': 'en'}
        """
        return {"dataType": data_type.value, "lang": language.value}

    def build_url(self, data_type: DataType, language: Language) -> str:
        """Full upstream URL for a data type and language.

        Example:
            >>> HKOClient().build_url(DataType.LOCAL_FORECAST, Language.TC)
            'https://data.weather.gov.hk/weatherAPI/opendata/weather.php?dataType=flw&lang=tc'
        """
        return str(
            httpx.URL(self.base_url, params=self.build_params(data_type, language))
        )

    async def fetch(self, data_type: DataType, language: Language) -> dict[str, Any]:
        """Fetch one data type from the upstream.

        Args:
            data_type: Upstream resource to fetch.
            language: Localization of the content.

        Returns:
            Parsed JSON object.

        Raises:
            UpstreamHTTPError: If the upstream answers with a non-2xx status.
            UpstreamTransportError: On connection errors, timeouts, or a body
                that is not a JSON object.
        """
        client = await self._ensure_client()
        params = self.build_params(data_type, language)

        logger.debug(f"GET {self.base_url} {params}")
        try:
            response = await client.get(self.base_url, params=params)
        except httpx.RequestError as e:
            raise UpstreamTransportError(f"Request error: {e!r}") from e

        if not response.is_success:
            raise UpstreamHTTPError(response.status_code, response.reason_phrase)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamTransportError(f"Malformed response body: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamTransportError(
                f"Expected a JSON object, got {type(data).__name__}"
            )
        return data
