"""
HTTP Command Runner for the Data API SDK.

Posts commands to ``{endpoint}/api/json/{version}/{keyspace}[/{target}]``.
"""

import logging
from typing import Any, Self

import httpx

from ..exceptions import ConnectionError, DataAPIHttpError, TimeoutError, UnexpectedDataAPIResponseError
from ..options import DataAPIClientOptions
from ..protocol.command import parse_json_float
from .base import BaseCommandRunner

logger = logging.getLogger(__name__)


class HTTPCommandRunner(BaseCommandRunner):
    """
    HTTP-based command runner.

    Stateless: each command is an independent POST authenticated by the
    ``Token`` header. The underlying ``httpx.AsyncClient`` is created on
    first use or by ``connect()``.
    """

    def __init__(
        self,
        api_endpoint: str,
        keyspace: str,
        token: str | None = None,
        options: DataAPIClientOptions | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize HTTP runner.

        Args:
            api_endpoint: Data API URL (e.g., "http://localhost:8181")
            keyspace: Target keyspace
            token: Application token
            options: Client options (API version, timeout, user agent)
            transport: Custom httpx transport, mainly for tests
        """
        super().__init__(keyspace)
        self.options = options or DataAPIClientOptions()
        self.api_endpoint = api_endpoint.rstrip("/")
        self.token = token
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return f"{self.api_endpoint}/api/json/{self.options.api_version}/{self.keyspace}"

    @property
    def headers(self) -> dict[str, str]:
        h = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": self.options.user_agent,
        }
        if self.token:
            h["Token"] = self.token
        return h

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> Self:
        """Create the HTTP client. Returns self for fluent API."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.options.timeout,
                transport=self._transport,
            )
        return self

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _send_command(self, body: str, target: str | None) -> dict[str, Any]:
        if self._client is None:
            await self.connect()
        assert self._client is not None
        url = f"{self.base_url}/{target}" if target else self.base_url

        try:
            response = await self._client.post(url, content=body, headers=self.headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DataAPIHttpError(
                f"HTTP error: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
                body=e.response.text,
            )
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Request timed out after {self.options.timeout}s: {e}")
        except httpx.RequestError as e:
            raise ConnectionError(f"Request failed: {e}")

        try:
            data = response.json(parse_float=parse_json_float)
        except ValueError as e:
            raise UnexpectedDataAPIResponseError(f"Response is not JSON: {e}", response.text)
        if not isinstance(data, dict):
            raise UnexpectedDataAPIResponseError("Response is not a JSON object", data)
        return data
