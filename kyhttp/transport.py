"""
Transport layer: the capability that actually puts requests on the wire.

The executors only depend on the TransportClient protocol. HttpxTransport
is the default implementation, a long-lived ``httpx.AsyncClient`` whose
connection pool is shared by single sends and batch rounds alike.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol

import httpx

from .config import ClientConfig
from .exceptions import TransportError
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransportResult:
    """What a transport call yields: a status and body, or an error."""

    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    error: Optional[TransportError] = None


class TransportClient(Protocol):
    """Capability the executors use to perform network calls."""

    @property
    def in_flight(self) -> int:
        """Number of calls currently outstanding."""
        ...

    async def execute(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes],
    ) -> TransportResult: ...

    async def aclose(self) -> None: ...


def map_httpx_exception(exc: httpx.RequestError) -> TransportError:
    """
    Map an httpx request failure to TransportError.

    Args:
        exc: The original httpx exception

    Returns:
        TransportError describing the failure
    """
    if isinstance(exc, httpx.TimeoutException):
        return TransportError(f"Request timed out: {exc}")
    if isinstance(exc, httpx.TooManyRedirects):
        return TransportError(f"Too many redirects: {exc}")
    if isinstance(exc, (httpx.NetworkError, httpx.ConnectError)):
        return TransportError(f"Network error: {exc}")
    return TransportError(f"HTTP transport error: {exc}")


class HttpxTransport:
    """
    TransportClient backed by ``httpx.AsyncClient``.

    Concurrent calls are bounded by a semaphore of
    ``config.batch.max_concurrency`` slots. Transport failures are returned
    inside the TransportResult, never raised.
    """

    def __init__(
        self,
        config: ClientConfig,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.to_httpx_timeout(),
            follow_redirects=config.follow_redirects,
            max_redirects=config.max_redirects,
            headers=(
                {"User-Agent": config.user_agent} if config.user_agent else None
            ),
            transport=http_transport,
        )
        self._semaphore = asyncio.Semaphore(config.batch.max_concurrency)
        self._in_flight = 0
        self._closed = False

    @property
    def in_flight(self) -> int:
        """Calls started and not yet finished, including those waiting for a slot."""
        return self._in_flight

    async def execute(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes],
    ) -> TransportResult:
        self._in_flight += 1
        try:
            async with self._semaphore:
                response = await self._client.request(
                    method, url, headers=dict(headers), content=body
                )
        except httpx.RequestError as e:
            error = map_httpx_exception(e)
            error.__cause__ = e
            logger.debug(
                "Transport call failed",
                method=method,
                url=url,
                error=error.message,
            )
            return TransportResult(status=0, error=error)
        finally:
            self._in_flight -= 1

        return TransportResult(
            status=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        if not self._closed:
            await self._client.aclose()
            self._closed = True
