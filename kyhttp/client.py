"""
KyClient: the entry point wiring configuration, transport and executors.

```python
async with KyClient(ClientConfig(base_url="https://httpbin.org")) as client:
    data = await client.get("/get").query({"a": 1}).retry(2).send_json()

    client.get("/uuid").add_to_batch()
    client.get("/ip").add_to_batch()
    responses = await client.send_batch()
```
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Optional, Union

import httpx

from .batch import BatchExecutor, BatchQueue
from .config import ClientConfig
from .executor import SingleRequestExecutor
from .hooks import HookInvoker
from .logging_config import get_logger, setup_logging
from .request import HttpMethod, RequestBuilder, RequestSpec
from .response import JSONResponse, Response
from .transport import HttpxTransport, TransportClient

logger = get_logger(__name__)


class KyClient:
    """
    Fluent asynchronous HTTP client with retries and batch execution.

    The client owns a default BatchQueue (``client.batch``); other queues
    can be passed to ``send_batch`` explicitly.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[TransportClient] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config if config is not None else ClientConfig()
        self.batch = BatchQueue()
        self._transport = transport
        self._http_transport = http_transport
        self._executor: Optional[SingleRequestExecutor] = None
        self._batch_executor: Optional[BatchExecutor] = None
        self._closed = False

        if self.config.logging.configure:
            setup_logging(self.config.logging.level, self.config.logging.format)

    async def __aenter__(self) -> "KyClient":
        self._ensure_initialized()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _ensure_initialized(self) -> None:
        """Create the transport and executors if not already done."""
        if self._closed:
            raise RuntimeError("KyClient is closed")
        if self._executor is not None:
            return

        if self._transport is None:
            self._transport = HttpxTransport(self.config, self._http_transport)

        hooks = HookInvoker()
        self._executor = SingleRequestExecutor(self._transport, self.config.retry, hooks)
        self._batch_executor = BatchExecutor(self._transport, self.config.batch, hooks)

        logger.debug("KyClient initialized", base_url=self.config.base_url)

    async def close(self) -> None:
        """Close the transport and clean up resources."""
        if self._transport is not None and not self._closed:
            await self._transport.aclose()
            logger.debug("KyClient closed")
        self._closed = True

    # Builders

    def request(self, method: Union[HttpMethod, str], url: str) -> RequestBuilder:
        """Start a request bound to this client."""
        return RequestBuilder(self, retries=self.config.retry.default_retries).method(
            method, url
        )

    def get(self, url: str) -> RequestBuilder:
        return self.request(HttpMethod.GET, url)

    def post(self, url: str) -> RequestBuilder:
        return self.request(HttpMethod.POST, url)

    def put(self, url: str) -> RequestBuilder:
        return self.request(HttpMethod.PUT, url)

    def patch(self, url: str) -> RequestBuilder:
        return self.request(HttpMethod.PATCH, url)

    def delete(self, url: str) -> RequestBuilder:
        return self.request(HttpMethod.DELETE, url)

    def head(self, url: str) -> RequestBuilder:
        return self.request(HttpMethod.HEAD, url)

    def options(self, url: str) -> RequestBuilder:
        return self.request(HttpMethod.OPTIONS, url)

    # Execution

    async def send(self, spec: RequestSpec) -> Response:
        """
        Send one request, retrying transport failures and 5xx responses.

        Raises:
            RetriesExhausted: If no attempt was accepted
        """
        self._ensure_initialized()
        assert self._executor is not None
        return await self._executor.send(spec)

    async def send_json(self, spec: RequestSpec) -> Any:
        """Send one request and decode its body (None if it is not JSON)."""
        response = await self.send(spec)
        return response.json()

    async def send_batch(
        self, queue: Optional[BatchQueue] = None, ordered: bool = False
    ) -> list[Response]:
        """
        Run a batch over ``queue`` (default: ``self.batch``).

        Requests that exhaust their retries are returned with their last
        failing Response; nothing is raised for them.
        """
        self._ensure_initialized()
        assert self._batch_executor is not None
        return await self._batch_executor.run_batch(
            self.batch if queue is None else queue, ordered=ordered
        )

    async def send_batch_json(
        self, queue: Optional[BatchQueue] = None, ordered: bool = False
    ) -> list[JSONResponse]:
        """Like send_batch, with every body decoded (None if it is not JSON)."""
        responses = await self.send_batch(queue, ordered=ordered)
        return [JSONResponse.from_response(response) for response in responses]


@asynccontextmanager
async def create_client(
    config: Optional[ClientConfig] = None, **kwargs: Any
) -> AsyncGenerator[KyClient, None]:
    """
    Async context manager for creating and managing a KyClient.

    Args:
        config: Client configuration
        **kwargs: Passed through to KyClient

    Yields:
        Configured KyClient instance
    """
    client = KyClient(config, **kwargs)
    try:
        client._ensure_initialized()
        yield client
    finally:
        await client.close()
