"""
Document registration client.
Rate-limited sync and async clients sharing one submission contract.
"""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Any

import httpx

from crpt.config import Settings, get_settings
from crpt.errors import ConfigurationError, SubmissionValidationError
from crpt.http.client import AsyncHttpTransport, HttpTransport
from crpt.models import Document, DocumentRequest
from crpt.quota.limiter import (
    AsyncSlidingWindowLimiter,
    Clock,
    SlidingWindowLimiter,
    validate_limit,
    window_to_seconds,
)

logger = logging.getLogger(__name__)


def _validate_api_url(api_url: str | None) -> str:
    if not isinstance(api_url, str) or not api_url.strip():
        raise ConfigurationError("api_url cannot be None or empty")
    return api_url


def _validate_submission(document: Document | dict[str, Any] | None, signature: str | None) -> None:
    if document is None:
        raise SubmissionValidationError("document cannot be None")
    if not isinstance(signature, str) or not signature.strip():
        raise SubmissionValidationError("signature cannot be None or empty")


def _check_shared_limiter(
    limiter: SlidingWindowLimiter | AsyncSlidingWindowLimiter,
    request_limit: int,
    window: float | timedelta,
) -> None:
    if limiter.limit != request_limit or limiter.window_seconds != window_to_seconds(window):
        raise ConfigurationError(
            f"limiter is configured for {limiter.limit} requests per {limiter.window_seconds}s, "
            f"client asked for {request_limit} per {window_to_seconds(window)}s"
        )


class CrptClient:
    """
    Thread-safe client for the document registration API.

    Every call to create_document() reserves one slot in a sliding
    window limiter before the request goes out, so concurrent callers
    never exceed request_limit calls per window between them.

    Example:
        ```python
        with CrptClient(1.0, 5, "https://example.com/api") as client:
            response = client.create_document(document, "signature")
        ```
    """

    def __init__(
        self,
        window: float | timedelta,
        request_limit: int,
        api_url: str,
        *,
        limiter: SlidingWindowLimiter | None = None,
        timeout: httpx.Timeout | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
        clock: Clock = time.monotonic,
    ):
        """
        Initialize the client.

        Args:
            window: Window length in seconds, or a timedelta
            request_limit: Maximum requests per window
            api_url: Document creation endpoint
            limiter: Existing limiter to share with other clients; must
                match window and request_limit
            timeout: Request timeout configuration
            headers: Extra headers sent with every request
            transport: Optional httpx transport (used in tests)
            clock: Time source for a limiter created here

        Raises:
            ConfigurationError: If request_limit, window or api_url is invalid
        """
        validate_limit(request_limit)
        self.api_url = _validate_api_url(api_url)

        if limiter is None:
            self._limiter = SlidingWindowLimiter(request_limit, window, clock=clock)
            self._owns_limiter = True
        else:
            _check_shared_limiter(limiter, request_limit, window)
            self._limiter = limiter
            self._owns_limiter = False

        self._transport = HttpTransport(timeout=timeout, headers=headers, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> CrptClient:
        """Build a client from environment-backed settings."""
        settings = settings or get_settings()
        kwargs.setdefault("timeout", settings.http_timeout)
        return cls(settings.window_seconds, settings.request_limit, settings.api_url, **kwargs)

    @property
    def limiter(self) -> SlidingWindowLimiter:
        return self._limiter

    def __enter__(self) -> CrptClient:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP transport and the limiter if this client created it."""
        self._transport.close()
        if self._owns_limiter:
            self._limiter.close()

    def create_document(
        self,
        document: Document | dict[str, Any] | None,
        signature: str | None,
    ) -> httpx.Response:
        """
        Submit a document for registration.

        Blocks while the rate limit window is full. The slot is spent
        even if the request then fails.

        Args:
            document: Document to register
            signature: Detached signature for the document

        Returns:
            The endpoint's httpx.Response, unchecked

        Raises:
            SubmissionValidationError: If document or signature is missing
            pydantic.ValidationError: If a mapping does not form a valid document
            AdmissionCancelledError: If the limiter is closed while waiting
            httpx.HTTPError: If the request fails
        """
        _validate_submission(document, signature)
        request = DocumentRequest(document=document, signature=signature)

        self._limiter.acquire()

        body = request.to_json_bytes()
        logger.debug(f"Submitting document ({len(body)} bytes) to {self.api_url}")
        return self._transport.post_json(self.api_url, body)

    submit = create_document


class AsyncCrptClient:
    """Async version of CrptClient."""

    def __init__(
        self,
        window: float | timedelta,
        request_limit: int,
        api_url: str,
        *,
        limiter: AsyncSlidingWindowLimiter | None = None,
        timeout: httpx.Timeout | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = time.monotonic,
    ):
        validate_limit(request_limit)
        self.api_url = _validate_api_url(api_url)

        if limiter is None:
            self._limiter = AsyncSlidingWindowLimiter(request_limit, window, clock=clock)
            self._owns_limiter = True
        else:
            _check_shared_limiter(limiter, request_limit, window)
            self._limiter = limiter
            self._owns_limiter = False

        self._transport = AsyncHttpTransport(timeout=timeout, headers=headers, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> AsyncCrptClient:
        settings = settings or get_settings()
        kwargs.setdefault("timeout", settings.http_timeout)
        return cls(settings.window_seconds, settings.request_limit, settings.api_url, **kwargs)

    @property
    def limiter(self) -> AsyncSlidingWindowLimiter:
        return self._limiter

    async def __aenter__(self) -> AsyncCrptClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        await self._transport.close()
        if self._owns_limiter:
            await self._limiter.close()

    async def create_document(
        self,
        document: Document | dict[str, Any] | None,
        signature: str | None,
    ) -> httpx.Response:
        _validate_submission(document, signature)
        request = DocumentRequest(document=document, signature=signature)

        await self._limiter.acquire()

        body = request.to_json_bytes()
        logger.debug(f"Submitting document ({len(body)} bytes) to {self.api_url}")
        return await self._transport.post_json(self.api_url, body)

    submit = create_document
