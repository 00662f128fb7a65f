"""
Single-request execution with retries.

Attempts run strictly one after another: before hook, transport call,
after hook, classification. The first accepted response is returned; if
none is accepted within ``retries + 1`` attempts RetriesExhausted is raised.
"""

import uuid

from tenacity import RetryError

from .config import RetryConfig
from .exceptions import RetriesExhausted, TransportError
from .hooks import HookInvoker
from .logging_config import get_logger
from .request import RequestSpec
from .response import Response
from .retry_policies import AttemptRecord, AttemptState, RetryPolicy, rejection_error
from .transport import TransportClient, TransportResult

logger = get_logger(__name__)


class SingleRequestExecutor:
    """Runs one RequestSpec to completion under its retry budget."""

    def __init__(
        self,
        transport: TransportClient,
        retry_config: RetryConfig,
        hooks: HookInvoker,
    ):
        self._transport = transport
        self._retry_policy = RetryPolicy(retry_config)
        self._hooks = hooks

    async def _attempt(self, record: AttemptRecord) -> Response:
        spec = record.spec

        await self._hooks.invoke_before(spec)
        attempt = record.start()

        try:
            result = await self._transport.execute(
                spec.method.value, spec.target_url, spec.headers, spec.body
            )
        except TransportError as e:
            result = TransportResult(status=0, error=e)
        response = Response.from_result(result, spec, attempt)

        await self._hooks.invoke_after(response)

        if record.settle(response) is AttemptState.ACCEPTED:
            return response
        raise rejection_error(response)

    async def send(self, spec: RequestSpec) -> Response:
        """
        Execute ``spec`` until a response is accepted.

        Args:
            spec: The request to execute

        Returns:
            The first accepted Response (any status below 500)

        Raises:
            RetriesExhausted: If every attempt was rejected
        """
        request_id = str(uuid.uuid4())
        record = AttemptRecord(spec)
        log = logger.bind(
            request=request_id, method=spec.method.value, url=spec.target_url
        )

        async def attempt() -> Response:
            return await self._attempt(record)

        retry_wrapped = self._retry_policy.wrap_operation(
            attempt, spec.max_attempts, request_id
        )

        try:
            response = await retry_wrapped()
        except RetryError as e:
            last_exc = e.last_attempt.exception()
            log.warning(
                "Request failed after all attempts",
                attempts=record.attempts,
                status=record.last_response.status if record.last_response else None,
            )
            raise RetriesExhausted(
                f"Request failed after {spec.retries} retries",
                retries=spec.retries,
                response=record.last_response,
                request=spec,
            ) from last_exc

        log.debug("Request accepted", status=response.status, attempts=record.attempts)
        return response
