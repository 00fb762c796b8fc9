"""
Async HTTP client wrapper for upstream provider requests.
Single attempt per call: rate limits and errors fail fast so the
caller's fallback cascade can take over.
"""
from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from shared.config import Settings, get_settings
from shared.utils.errors import RateLimited, UpstreamUnavailable
from shared.utils.logging import get_logger
from shared.utils.metrics import PROVIDER_LATENCY, PROVIDER_REQUESTS

logger = get_logger(__name__)


class ProviderHTTPClient:
    """
    Async HTTP client tailored for the match and trends APIs.
    Handles timeouts, classifies failures, and records metrics per request.
    """

    def __init__(
        self,
        provider_name: str,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._provider = provider_name
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_s or settings.provider_request_timeout_s
        self._default_headers = headers or {}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        """Initialize the underlying httpx client."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._default_headers,
            timeout=httpx.Timeout(self._timeout, connect=5.0),
            follow_redirects=True,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Perform a GET request with metrics and structured logging.

        Args:
            path: API path relative to base_url.
            params: Query parameters.

        Returns:
            httpx.Response with a 2xx status.

        Raises:
            RateLimited: On HTTP 429.
            UpstreamUnavailable: On timeouts, transport errors and other non-2xx.
        """
        if not self._client:
            raise RuntimeError("ProviderHTTPClient not started. Call start() first.")

        start_time = time.perf_counter()
        status = "unknown"
        try:
            resp = await self._client.get(path, params=params)
            status = str(resp.status_code)

            if resp.status_code == 429:
                logger.warning("provider_rate_limited", provider=self._provider, path=path)
                raise RateLimited(self._provider, "Rate limited by upstream (429)")

            resp.raise_for_status()

            logger.debug(
                "provider_request_success",
                provider=self._provider,
                path=path,
                status=resp.status_code,
                latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            return resp

        except httpx.TimeoutException as exc:
            status = "timeout"
            logger.warning("provider_timeout", provider=self._provider, path=path)
            raise UpstreamUnavailable(self._provider, f"Timeout: {exc}") from exc

        except httpx.HTTPStatusError as exc:
            logger.warning(
                "provider_http_error",
                provider=self._provider,
                path=path,
                status=exc.response.status_code,
            )
            raise UpstreamUnavailable(
                self._provider, f"HTTP {exc.response.status_code}"
            ) from exc

        except httpx.HTTPError as exc:
            status = "error"
            logger.warning(
                "provider_request_error",
                provider=self._provider,
                path=path,
                error=str(exc),
            )
            raise UpstreamUnavailable(self._provider, str(exc)) from exc

        finally:
            PROVIDER_LATENCY.labels(provider=self._provider).observe(
                time.perf_counter() - start_time
            )
            PROVIDER_REQUESTS.labels(provider=self._provider, status=status).inc()
