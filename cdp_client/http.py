"""
Async HTTP transport for the CDP API.
"""

from typing import Any, Dict, Optional

import httpx

from cdp_client.auth import CdpAuth
from cdp_client.exceptions import TransportError


class HttpClient:
    """Sends authenticated JSON requests to the CDP API.

    Every call issues exactly one request with freshly minted tokens. There
    are no retries, and no timeout unless one is passed in.
    """

    def __init__(
        self,
        base_url: str,
        auth: CdpAuth,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: API base URL, e.g. ``https://api.cdp.coinbase.com/platform``.
            auth: Header factory for bearer and wallet auth tokens.
            timeout: Optional request timeout in seconds.
            transport: Optional httpx transport, mainly for tests.
        """
        self._base_url = base_url.rstrip("/")
        self._auth = auth
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request and decode the JSON response.

        Args:
            method: HTTP method.
            path: Path relative to the base URL.
            params: Optional query parameters (not covered by the token).
            json: Optional JSON body.

        Returns:
            The decoded JSON body, or None if the body is empty.

        Raises:
            TransportError: On a network failure or a non-2xx status.
        """
        method = method.upper()
        url = f"{self._base_url}{path}"
        headers = self._auth.headers(method, url, json)
        headers["Content-Type"] = "application/json"

        try:
            response = await self._client.request(
                method, url, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise TransportError(f"CDP {method} {path} failed: {e}") from e

        text = response.text
        if not response.is_success:
            raise TransportError(
                f"CDP {method} {path} -> {response.status_code}: {text}",
                status_code=response.status_code,
                body=text,
            )
        if not text:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"CDP {method} {path} returned invalid JSON: {e}",
                status_code=response.status_code,
                body=text,
            ) from e

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Send a GET request."""
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        """Send a POST request."""
        return await self.request("POST", path, json=json)
