"""
Async HTTP transport for registry downloads.

Wraps one shared ``httpx.AsyncClient``. Every failure surfaces as
:class:`~quantumpkg.exceptions.NetworkError`; the registry client decides
what that means for resolution (``NotFoundError`` for 404, ``FetchError``
for the rest).

Retries are off by default: a registry timeout ends the resolution. Rate
limiting (429) is always waited out, up to a fixed number of times, and
never counts as a retry attempt.
"""

from __future__ import annotations

import httpx
import random
import asyncio
from typing import Any, Dict, Optional

from quantumpkg.utils.logger import get_logger
from quantumpkg.__version__ import __version__
from quantumpkg.exceptions import NetworkError
from quantumpkg.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")

_MAX_RATE_LIMIT_WAITS = 5


class HTTPClient:
    """Shared async HTTP session.

    Args:
        timeout: Per-request timeout in seconds.
        max_retries: Extra attempts after a timeout, connection error or
            5xx response. ``0`` makes the first such failure final.
        verify_ssl: Verify TLS certificates.
        user_agent: ``User-Agent`` header; defaults to ``quantum-cli/<version>``.
        transport: ``httpx`` transport override, e.g. ``httpx.MockTransport``
            in tests. HTTP/2 is only negotiated with the default transport.

    Example:
        >>> async with HTTPClient(timeout=10) as http:
        ...     body = await http.get_bytes("https://registry.example/pkg.tar.gz")
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)

        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "HTTPClient":
        self._session()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    def _session(self) -> httpx.AsyncClient:
        """Return the ``httpx`` client, creating it on first use."""
        if self._client is None:
            options: Dict[str, Any] = {
                "timeout": httpx.Timeout(self.timeout),
                "verify": self.verify_ssl,
                "follow_redirects": True,
                "headers": {"User-Agent": self.user_agent},
            }
            if self._transport is None:
                options["http2"] = True
            else:
                options["transport"] = self._transport
            self._client = httpx.AsyncClient(**options)
        return self._client

    async def close(self) -> None:
        """Release the connection pool. The client can be reopened later."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """GET ``url`` and return the successful response.

        Raises:
            NetworkError: 404 or another 4xx (``status_code`` set), too many
                429 responses, or a transient failure that outlived
                :attr:`max_retries`.
        """
        target = url.strip().strip("\"'")
        client = self._session()

        attempt = 0
        rate_limit_waits = 0
        last_error: Optional[Exception] = None

        while True:
            try:
                response = await client.get(target, **kwargs)
            except httpx.TransportError as exc:
                # Timeouts and connection failures
                last_error = exc
                logger.warning(
                    "%s for %s (attempt %d of %d)",
                    type(exc).__name__,
                    target,
                    attempt + 1,
                    self.max_retries + 1,
                )
            except httpx.RequestError as exc:
                # Redirect loops and undecodable bodies do not improve on retry
                raise NetworkError(
                    f"{type(exc).__name__} for {target}: {exc}",
                    url=target,
                ) from exc
            else:
                if response.status_code == 429:
                    rate_limit_waits += 1
                    if rate_limit_waits > _MAX_RATE_LIMIT_WAITS:
                        raise NetworkError(
                            f"Still rate limited after {_MAX_RATE_LIMIT_WAITS} waits",
                            url=target,
                            status_code=429,
                        )
                    wait = _retry_after(response)
                    logger.warning("Rate limited by %s; waiting %ds", target, wait)
                    await asyncio.sleep(wait)
                    continue

                if response.status_code < 400:
                    return response

                if response.status_code < 500:
                    raise _client_error(response, target)

                last_error = httpx.HTTPStatusError(
                    f"HTTP {response.status_code}",
                    request=response.request,
                    response=response,
                )
                logger.warning(
                    "HTTP %d from %s (attempt %d of %d)",
                    response.status_code,
                    target,
                    attempt + 1,
                    self.max_retries + 1,
                )

            if attempt >= self.max_retries:
                break

            delay = 2**attempt + random.uniform(0.0, 0.3)
            logger.debug("Retrying %s in %.2fs", target, delay)
            await asyncio.sleep(delay)
            attempt += 1

        raise NetworkError(
            f"Request failed after {attempt + 1} attempt(s): {target}",
            url=target,
        ) from last_error

    async def get_bytes(self, url: str, **kwargs: Any) -> bytes:
        """GET ``url`` and return the raw body."""
        response = await self.get(url, **kwargs)
        return response.content


def _retry_after(response: httpx.Response) -> int:
    try:
        return max(0, int(response.headers.get("Retry-After", "1")))
    except ValueError:
        return 1


def _client_error(response: httpx.Response, url: str) -> NetworkError:
    if response.status_code == 404:
        return NetworkError(f"Resource not found: {url}", url=url, status_code=404)
    return NetworkError(
        f"HTTP {response.status_code} error for {url}",
        url=url,
        status_code=response.status_code,
        response_body=response.text,
    )
