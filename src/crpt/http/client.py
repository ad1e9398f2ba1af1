"""HTTP transport for JSON document submissions."""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class HttpTransport:
    """
    Synchronous HTTP transport built on httpx.

    Sends one request per call. Failed requests are logged and re-raised;
    retrying is left to the caller.
    """

    DEFAULT_TIMEOUT = httpx.Timeout(
        connect=10.0,
        read=30.0,
        write=10.0,
        pool=10.0,
    )

    def __init__(
        self,
        timeout: httpx.Timeout | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the HTTP transport.

        Args:
            timeout: Request timeout configuration
            headers: Default headers for all requests
            transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self._timeout = timeout or self.DEFAULT_TIMEOUT
        self._client = httpx.Client(
            timeout=self._timeout,
            headers=headers or {},
            transport=transport,
            follow_redirects=False,
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    def post_json(self, url: str, content: bytes, **kwargs: Any) -> httpx.Response:
        """
        POST an already encoded JSON body.

        Args:
            url: Request URL
            content: Encoded JSON body
            **kwargs: Additional arguments for httpx

        Returns:
            httpx.Response, whatever its status code

        Raises:
            httpx.HTTPError: If the request could not be completed
        """
        try:
            response = self._client.post(
                url,
                content=content,
                headers={"Content-Type": JSON_CONTENT_TYPE},
                **kwargs,
            )
        except httpx.HTTPError as e:
            logger.warning(f"POST {url} failed: {e}")
            raise

        logger.debug(f"POST {url} -> {response.status_code}")
        return response

    def close(self) -> None:
        """Close the HTTP client."""
        if not self._client.is_closed:
            self._client.close()
            logger.debug("HTTP transport closed")

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class AsyncHttpTransport:
    """Async version of HttpTransport."""

    def __init__(
        self,
        timeout: httpx.Timeout | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout or HttpTransport.DEFAULT_TIMEOUT
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            headers=headers or {},
            transport=transport,
            follow_redirects=False,
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def post_json(self, url: str, content: bytes, **kwargs: Any) -> httpx.Response:
        """POST an already encoded JSON body."""
        try:
            response = await self._client.post(
                url,
                content=content,
                headers={"Content-Type": JSON_CONTENT_TYPE},
                **kwargs,
            )
        except httpx.HTTPError as e:
            logger.warning(f"POST {url} failed: {e}")
            raise

        logger.debug(f"POST {url} -> {response.status_code}")
        return response

    async def close(self) -> None:
        """Close the HTTP client."""
        if not self._client.is_closed:
            await self._client.aclose()
            logger.debug("HTTP transport closed")

    async def __aenter__(self) -> "AsyncHttpTransport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
