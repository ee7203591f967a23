"""Outbound HTTP client with per-attempt timeout and exponential backoff."""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

import httpx

from ..config import DEFAULT_TIMEOUT_SECONDS, MAX_RETRIES
from ..logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class CallResult:
    """Tagged outcome of an outbound call for business callers."""

    success: bool
    status_code: int | None = None
    data: Any = None
    error: str | None = None


class IRetryClient(Protocol):
    """Outbound HTTP access with retry."""

    async def fetch_with_retry(
        self, method: str, url: str, max_retries: int | None = None, **kwargs: Any
    ) -> httpx.Response:
        """Send a request, retrying failures. Raises the last error."""
        ...

    async def request_result(
        self, method: str, url: str, max_retries: int | None = None, **kwargs: Any
    ) -> CallResult:
        """Like fetch_with_retry, but failures come back as CallResult."""
        ...

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        ...


class RetryClient:
    """httpx-based client. Attempt k waits backoff_base * 2**k before retrying."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = MAX_RETRIES,
        backoff_base: float = 1.0,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()
        self._sleep = sleep

    async def fetch_with_retry(
        self, method: str, url: str, max_retries: int | None = None, **kwargs: Any
    ) -> httpx.Response:
        """
        Send a request, retrying non-2xx responses and transport errors.

        Each attempt gets its own timeout. There is no wait after the final
        attempt.

        Raises:
            httpx.HTTPError: the error observed on the last attempt.
        """
        attempts = self._max_retries if max_retries is None else max_retries
        if attempts < 1:
            raise ValueError("max_retries must be at least 1")

        for attempt in range(attempts - 1):
            try:
                return await self._attempt(method, url, **kwargs)
            except httpx.HTTPError as e:
                self._log_failure(attempt, attempts, method, url, e)
            await self._sleep(self._backoff_base * 2**attempt)

        try:
            return await self._attempt(method, url, **kwargs)
        except httpx.HTTPError as e:
            self._log_failure(attempts - 1, attempts, method, url, e)
            raise

    @staticmethod
    def _log_failure(
        attempt: int, attempts: int, method: str, url: str, error: Exception
    ) -> None:
        logger.warning(
            "Attempt %s/%s for %s %s failed: %s", attempt + 1, attempts, method, url, error
        )

    async def _attempt(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """One request whose total duration, body included, is capped at the timeout."""
        try:
            response = await asyncio.wait_for(
                self._client.request(
                    method, url, timeout=httpx.Timeout(self._timeout), **kwargs
                ),
                self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise httpx.TimeoutException(
                f"Attempt exceeded {self._timeout}s"
            ) from e
        response.raise_for_status()
        return response

    async def request_result(
        self, method: str, url: str, max_retries: int | None = None, **kwargs: Any
    ) -> CallResult:
        """Like fetch_with_retry, but failures come back as CallResult."""
        try:
            response = await self.fetch_with_retry(
                method, url, max_retries=max_retries, **kwargs
            )
        except httpx.HTTPError as e:
            logger.error("Outbound call %s %s failed: %s", method, url, e)
            status_code = (
                e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
            )
            return CallResult(
                success=False,
                status_code=status_code,
                error=str(e) or type(e).__name__,
            )

        try:
            data = response.json()
        except ValueError:
            data = {"text": response.text}
        return CallResult(success=True, status_code=response.status_code, data=data)

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        if self._owns_client:
            await self._client.aclose()
